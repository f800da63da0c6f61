"""
Condo Billing - Condominium Model
O condomínio é a unidade cobrável (tenant)
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base


class Condominium(Base):
    """Modelo de Condomínio"""
    __tablename__ = "condominiums"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Síndico responsável
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    cnpj = Column(String(14))
    city = Column(String(120))
    state = Column(String(2))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relacionamentos
    owner = relationship("User")
    subscription = relationship(
        "Subscription",
        back_populates="condominium",
        uselist=False,
        cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "cnpj": self.cnpj,
            "city": self.city,
            "state": self.state,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
