"""
Condo Billing - Subscription Model
Assinatura do condomínio: plano, período de cobrança, trial e contadores de uso
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.plan import PlanSlug


class ResourceKind(str, Enum):
    """Recursos com cota mensal"""
    NOTIFICATION = "notification"
    WARNING = "warning"
    FINE = "fine"
    PACKAGE_NOTIFICATION = "package_notification"

    @property
    def prefix(self) -> str:
        """Prefixo das colunas na tabela subscriptions"""
        return f"{self.value}s"

    @property
    def has_extra(self) -> bool:
        """Apenas notificações de encomenda possuem créditos extras comprados"""
        return self is ResourceKind.PACKAGE_NOTIFICATION


class Subscription(Base):
    """
    Modelo de Assinatura
    Um para um com o condomínio (criada junto com ele)
    """
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    condominium_id = Column(
        String(36),
        ForeignKey("condominiums.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True
    )
    condominium = relationship("Condominium", back_populates="subscription")

    plan = Column(String(30), nullable=False, default=PlanSlug.START.value)
    active = Column(Boolean, nullable=False, default=True)

    # Trial e vitalício
    is_trial = Column(Boolean, nullable=False, default=False)
    trial_ends_at = Column(DateTime)
    is_lifetime = Column(Boolean, nullable=False, default=False)

    # Período de cobrança [start, end)
    current_period_start = Column(DateTime)
    current_period_end = Column(DateTime)

    # Limites e uso
    notifications_limit = Column(Integer, nullable=False, default=10)
    notifications_used = Column(Integer, nullable=False, default=0)
    warnings_limit = Column(Integer, nullable=False, default=10)
    warnings_used = Column(Integer, nullable=False, default=0)
    fines_limit = Column(Integer, nullable=False, default=0)
    fines_used = Column(Integer, nullable=False, default=0)
    package_notifications_limit = Column(Integer, nullable=False, default=50)
    package_notifications_used = Column(Integer, nullable=False, default=0)
    package_notifications_extra = Column(Integer, nullable=False, default=0)

    # Referência de assinatura recorrente no Mercado Pago (quando houver)
    mercado_pago_subscription_id = Column(String(100))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    invoices = relationship("Invoice", back_populates="subscription", cascade="all, delete-orphan")

    def used(self, kind: ResourceKind) -> int:
        return getattr(self, f"{kind.prefix}_used") or 0

    def limit(self, kind: ResourceKind) -> int:
        return getattr(self, f"{kind.prefix}_limit") or 0

    def extra(self, kind: ResourceKind) -> int:
        if not kind.has_extra:
            return 0
        return self.package_notifications_extra or 0

    def to_dict(self):
        return {
            "id": self.id,
            "condominium_id": self.condominium_id,
            "plan": self.plan,
            "active": self.active,
            "is_trial": self.is_trial,
            "trial_ends_at": self.trial_ends_at.isoformat() if self.trial_ends_at else None,
            "is_lifetime": self.is_lifetime,
            "current_period_start": self.current_period_start.isoformat() if self.current_period_start else None,
            "current_period_end": self.current_period_end.isoformat() if self.current_period_end else None,
            "notifications_limit": self.notifications_limit,
            "notifications_used": self.notifications_used,
            "warnings_limit": self.warnings_limit,
            "warnings_used": self.warnings_used,
            "fines_limit": self.fines_limit,
            "fines_used": self.fines_used,
            "package_notifications_limit": self.package_notifications_limit,
            "package_notifications_used": self.package_notifications_used,
            "package_notifications_extra": self.package_notifications_extra,
        }
