"""
Condo Billing - Plan Model
Planos de assinatura (dados de referência, editados apenas pelo super admin)
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Boolean, DateTime, Text, Integer, Numeric

from app.database import Base

# Limite -1 significa ilimitado
UNLIMITED = -1


class PlanSlug(str, Enum):
    """Planos disponíveis"""
    START = "start"
    ESSENCIAL = "essencial"
    PROFISSIONAL = "profissional"
    ENTERPRISE = "enterprise"


class Plan(Base):
    """Modelo de Plano"""
    __tablename__ = "plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    slug = Column(String(30), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)

    # Cotas mensais
    notifications_limit = Column(Integer, nullable=False, default=10)
    warnings_limit = Column(Integer, nullable=False, default=10)
    fines_limit = Column(Integer, nullable=False, default=0)
    package_notifications_limit = Column(Integer, nullable=False, default=50)

    price = Column(Numeric(10, 2), nullable=False, default=0)

    is_active = Column(Boolean, default=True)
    display_order = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def limits(self) -> dict:
        """Limites no formato das colunas da assinatura"""
        return {
            "notifications_limit": self.notifications_limit,
            "warnings_limit": self.warnings_limit,
            "fines_limit": self.fines_limit,
            "package_notifications_limit": self.package_notifications_limit,
        }

    def to_dict(self):
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            **self.limits(),
            "price": float(self.price or 0),
            "is_active": self.is_active,
            "display_order": self.display_order,
        }
