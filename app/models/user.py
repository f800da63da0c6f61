"""
Condo Billing - User Models
Usuários, papéis (roles) e vínculos com condomínios
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base


class Role(str, Enum):
    """Papéis do sistema (conjunto fechado)"""
    SUPER_ADMIN = "super_admin"
    SINDICO = "sindico"
    PORTEIRO = "porteiro"
    MORADOR = "morador"


class User(Base):
    """Modelo de usuário"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255))

    is_active = Column(Boolean, default=True)

    last_login_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan", lazy="selectin")

    @property
    def role_names(self) -> list:
        return sorted(r.role for r in self.roles)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "is_active": self.is_active,
            "roles": self.role_names,
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class UserRole(Base):
    """Atribuição de papel (separada do usuário por segurança)"""
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=Role.MORADOR.value)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="roles")


class UserCondominium(Base):
    """Vínculo de porteiros/moradores com condomínios"""
    __tablename__ = "user_condominiums"
    __table_args__ = (
        UniqueConstraint("user_id", "condominium_id", name="uq_user_condominiums"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    condominium_id = Column(String(36), ForeignKey("condominiums.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
