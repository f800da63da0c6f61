"""
Condo Billing - Payments API
Integração com Mercado Pago: geração de PIX e webhook de confirmação
"""
import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import User
from app.schemas import PixRequest, PixResponse
from app.api.auth import get_current_user
from app.services.authorization import Action, authorize
from app.services.invoices import get_invoice
from app.services.payment_gateway import MercadoPagoGateway, get_gateway
from app.services.payments import create_pix_charge, process_payment_notification, report_webhook_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/pix", response_model=PixResponse)
async def create_pix(
    request: PixRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    gateway: MercadoPagoGateway = Depends(get_gateway)
):
    """Gera QR Code PIX para pagamento da fatura"""
    invoice = await get_invoice(db, request.invoice_id)
    await authorize(db, user, Action.GENERATE_PIX, invoice.condominium_id)

    return await create_pix_charge(
        db,
        gateway,
        invoice_id=invoice.id,
        payer_email=request.payer_email,
        payer_name=request.payer_name,
        payer_document_type=request.payer_document_type,
        payer_document_number=request.payer_document_number
    )


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: MercadoPagoGateway = Depends(get_gateway)
):
    """
    Webhook do Mercado Pago.

    Sempre responde 200 para o MP não reenviar; falhas são logadas e
    notificadas por e-mail.
    """
    body = {}
    try:
        body = await request.json()
        logger.info(f"Webhook recebido: {body}")
        return await process_payment_notification(db, gateway, body)
    except Exception as e:
        await db.rollback()
        report_webhook_error(e, body)
        return {"status": "error", "message": str(e)}
