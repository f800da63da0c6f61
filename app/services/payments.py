"""
Condo Billing - Payments Service
Geração de cobrança PIX para faturas e processamento do webhook do Mercado Pago

FLUXO:
1. Síndico solicita PIX de uma fatura pendente (POST /payments/pix)
2. Documento do pagador é validado antes de qualquer chamada remota
3. Mercado Pago gera QR Code com external_reference = id da fatura
4. Pagamento aprovado -> webhook -> fatura marcada como paga
"""
import logging
import traceback
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.config import settings
from app.core.documents import validate_document
from app.core.errors import AlreadyPaid, RemoteUnavailable
from app.core.error_notifier import notify_error_async
from app.models import PixCharge
from app.services.condominiums import get_condominium
from app.services.invoices import get_invoice, confirm_gateway_payment
from app.services.payment_gateway import MercadoPagoGateway

logger = logging.getLogger(__name__)


def _split_name(full_name: str):
    parts = (full_name or "").strip().split(" ", 1)
    return parts[0], parts[1] if len(parts) > 1 else ""


async def create_pix_charge(
    db: AsyncSession,
    gateway: MercadoPagoGateway,
    invoice_id: str,
    payer_email: str,
    payer_name: str,
    payer_document_type: Optional[str],
    payer_document_number: str
) -> dict:
    """Gera a cobrança PIX da fatura e registra o retorno do gateway"""
    invoice = await get_invoice(db, invoice_id)
    if invoice.is_paid:
        raise AlreadyPaid(invoice_id=invoice.id)

    document = validate_document(payer_document_number, payer_document_type)
    condominium = await get_condominium(db, invoice.condominium_id)
    document_type = "CNPJ" if len(document) == 14 else "CPF"
    first_name, last_name = _split_name(payer_name)

    payment_data = {
        "transaction_amount": float(invoice.amount),
        "description": f"Fatura {invoice.invoice_number} - {condominium.name}",
        "payment_method_id": "pix",
        "payer": {
            "email": payer_email,
            "first_name": first_name,
            "last_name": last_name,
            "identification": {"type": document_type, "number": document},
        },
        "external_reference": invoice.id,
    }
    if settings.MP_NOTIFICATION_URL:
        payment_data["notification_url"] = settings.MP_NOTIFICATION_URL

    try:
        pix = gateway.create_pix_payment(payment_data)
    except RemoteUnavailable as e:
        notify_error_async(
            error_type="PIX_ERROR",
            error_message=e.message,
            error_details=str(e.detail),
            condominium_id=invoice.condominium_id,
            invoice_id=invoice.id,
            endpoint="/api/payments/pix",
        )
        raise

    db.add(PixCharge(
        invoice_id=invoice.id,
        gateway_payment_id=pix.payment_id,
        status=pix.status,
        status_detail=pix.raw.get("status_detail"),
        qr_code=pix.qr_code,
        ticket_url=pix.ticket_url,
        expires_at=pix.expiration_date,
        payer_email=payer_email,
        raw_response=pix.raw,
    ))
    await db.flush()

    logger.info(f"PIX criado: pagamento {pix.payment_id} para fatura {invoice.invoice_number}")
    return pix.to_dict()


def _is_uuid(value) -> bool:
    try:
        uuid.UUID(str(value))
        return True
    except ValueError:
        return False


def _extract_payment_id(body: dict) -> Optional[str]:
    data = body.get("data") or {}
    if "id" in data:
        return str(data["id"])
    if "resource" in body:
        # Formato antigo
        return str(body["resource"]).split("/")[-1]
    return None


async def process_payment_notification(
    db: AsyncSession,
    gateway: MercadoPagoGateway,
    body: dict
) -> dict:
    """
    Processa uma notificação do Mercado Pago.

    Retorna um resumo do que foi feito; erros remotos propagam para o
    endpoint, que sempre responde 200.
    """
    notification_type = body.get("type") or body.get("topic")
    if notification_type != "payment":
        logger.info(f"Ignorando notificação do tipo: {notification_type}")
        return {"status": "ignored", "type": notification_type}

    payment_id = _extract_payment_id(body)
    if not payment_id:
        logger.warning("Webhook sem payment_id")
        return {"status": "no_payment_id"}

    payment = gateway.get_payment(payment_id)
    mp_status = payment.get("status", "")
    external_reference = payment.get("external_reference")
    logger.info(f"Dados do pagamento: status={mp_status}, ref={external_reference}")

    result = await db.execute(select(PixCharge).where(PixCharge.gateway_payment_id == payment_id))
    charge = result.scalar_one_or_none()
    if charge:
        charge.status = mp_status
        charge.status_detail = payment.get("status_detail")
        charge.webhook_data = payment

    if mp_status != "approved":
        await db.flush()
        return {"status": "processed", "payment_status": mp_status}

    if not external_reference or not _is_uuid(external_reference):
        logger.warning(f"external_reference inválido: {external_reference}")
        return {"status": "invalid_reference"}

    confirmed = await confirm_gateway_payment(
        db,
        external_reference,
        payment_id,
        payment.get("payment_type_id"),
    )
    await db.flush()
    return {"status": "processed", "payment_status": mp_status, "confirmed": confirmed}


def report_webhook_error(error: Exception, body: dict):
    logger.error(f"Erro no webhook: {error}")
    notify_error_async(
        error_type="WEBHOOK_ERROR",
        error_message=str(error),
        error_details=f"{traceback.format_exc()}\n\nBody: {body}",
        endpoint="/api/payments/webhook",
    )
