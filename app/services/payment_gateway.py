"""
Condo Billing - Mercado Pago Gateway
Encapsula o SDK do Mercado Pago. Qualquer falha remota vira RemoteUnavailable;
não há retentativa aqui, quem decide é o chamador.
"""
import logging
from dataclasses import dataclass, asdict
from typing import Optional

import mercadopago

from app.core.config import settings
from app.core.errors import RemoteUnavailable

logger = logging.getLogger(__name__)


@dataclass
class PixPayment:
    payment_id: str
    status: str
    qr_code: Optional[str]
    qr_code_base64: Optional[str]
    ticket_url: Optional[str]
    expiration_date: Optional[str]
    raw: dict

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("raw")
        return data


class MercadoPagoGateway:
    """Cliente do Mercado Pago (pagamentos PIX e consulta de pagamento)"""

    def __init__(self, access_token: Optional[str] = None):
        self.access_token = access_token or settings.MP_ACCESS_TOKEN
        self._sdk = None

    @property
    def sdk(self):
        if not self.access_token:
            logger.error("MP_ACCESS_TOKEN não configurado!")
            raise RemoteUnavailable("Configuração de pagamento incompleta. Contate o suporte.")
        if self._sdk is None:
            self._sdk = mercadopago.SDK(self.access_token)
        return self._sdk

    def _call(self, operation: str, func, *args) -> dict:
        try:
            response = func(*args)
        except Exception as e:
            logger.error(f"Erro de comunicação com Mercado Pago ({operation}): {e}")
            raise RemoteUnavailable(operation=operation, reason=str(e))

        status_code = response.get("status")
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            logger.error(f"Mercado Pago respondeu {status_code} em {operation}: {response.get('response')}")
            raise RemoteUnavailable(operation=operation, status=status_code)

        return response.get("response") or {}

    def create_pix_payment(self, payment_data: dict) -> PixPayment:
        payment = self._call("create_payment", self.sdk.payment().create, payment_data)

        transaction_data = (payment.get("point_of_interaction") or {}).get("transaction_data")
        if not transaction_data:
            logger.error(f"Pagamento {payment.get('id')} sem point_of_interaction")
            raise RemoteUnavailable(operation="create_payment", reason="point_of_interaction ausente")

        return PixPayment(
            payment_id=str(payment.get("id")),
            status=payment.get("status", ""),
            qr_code=transaction_data.get("qr_code"),
            qr_code_base64=transaction_data.get("qr_code_base64"),
            ticket_url=transaction_data.get("ticket_url"),
            expiration_date=payment.get("date_of_expiration"),
            raw=payment,
        )

    def get_payment(self, payment_id) -> dict:
        return self._call("get_payment", self.sdk.payment().get, payment_id)


def get_gateway() -> MercadoPagoGateway:
    """Dependency do FastAPI (substituída nos testes)"""
    return MercadoPagoGateway()
