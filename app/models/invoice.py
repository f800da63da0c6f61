"""
Condo Billing - Invoice Model
Faturas da assinatura. Status gravado: pending | paid.
"vencida" (overdue) é sempre derivado de due_date, nunca persistido.
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, Date, Text, Numeric, Integer, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from app.database import Base


class InvoiceStatus(str, Enum):
    """Status persistido da fatura"""
    PENDING = "pending"
    PAID = "paid"


class EffectiveStatus(str, Enum):
    """Status exibido (derivado)"""
    PENDING = "pending"
    OVERDUE = "overdue"
    PAID = "paid"


class Invoice(Base):
    """Modelo de Fatura"""
    __tablename__ = "invoices"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'paid')", name="ck_invoices_status"),
        CheckConstraint(
            "(status = 'paid' AND paid_at IS NOT NULL) OR (status = 'pending' AND paid_at IS NULL)",
            name="ck_invoices_paid_at"
        ),
        Index("ix_invoices_due_date", "due_date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    subscription_id = Column(
        String(36),
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    condominium_id = Column(
        String(36),
        ForeignKey("condominiums.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Número legível: FAT-YYYY00001
    invoice_number = Column(String(20), unique=True)

    # Valor líquido (já com desconto aplicado)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=InvoiceStatus.PENDING.value, index=True)
    due_date = Column(Date, nullable=False)

    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    # Dados do pagamento (somente quando paga)
    paid_at = Column(DateTime)
    payment_method = Column(String(50))
    payment_reference = Column(String(255))

    description = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    subscription = relationship("Subscription", back_populates="invoices")
    condominium = relationship("Condominium")

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID.value

    def to_dict(self):
        return {
            "id": self.id,
            "subscription_id": self.subscription_id,
            "condominium_id": self.condominium_id,
            "invoice_number": self.invoice_number,
            "amount": float(self.amount),
            "status": self.status,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "period_start": self.period_start.isoformat() if self.period_start else None,
            "period_end": self.period_end.isoformat() if self.period_end else None,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class InvoiceSequence(Base):
    """Último número de fatura emitido em cada ano (FAT-YYYY#####)"""
    __tablename__ = "invoice_sequences"

    year = Column(Integer, primary_key=True, autoincrement=False)
    last_number = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
