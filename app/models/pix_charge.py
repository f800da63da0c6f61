"""
Condo Billing - PIX Charge Model
Registra as cobranças PIX geradas no Mercado Pago para cada fatura
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from app.database import Base


class PixCharge(Base):
    """
    Modelo de Cobrança PIX
    Criado somente após o gateway confirmar a criação do pagamento
    """
    __tablename__ = "pix_charges"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice = relationship("Invoice")

    # Dados do Mercado Pago
    gateway_payment_id = Column(String(50), unique=True, index=True)
    status = Column(String(30))  # Status retornado pelo MP
    status_detail = Column(String(100))

    qr_code = Column(Text)  # Código copia e cola
    ticket_url = Column(String(500))
    expires_at = Column(String(40))  # date_of_expiration como retornado pelo MP

    payer_email = Column(String(255))

    raw_response = Column(JSON)
    webhook_data = Column(JSON)  # Dados brutos recebidos do webhook

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "gateway_payment_id": self.gateway_payment_id,
            "status": self.status,
            "ticket_url": self.ticket_url,
            "expires_at": self.expires_at,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
