"""
Condo Billing - Invoices API
Listagem, estatísticas, fatura avulsa e baixa manual
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import User, Invoice, EffectiveStatus
from app.schemas import InvoiceCreate, PaymentRecordRequest, InvoiceResponse, InvoiceStatsResponse
from app.api.auth import get_current_user
from app.services.authorization import Action, authorize, accessible_condominium_ids
from app.services.discount import reconstruct_amounts
from app.services.invoices import (
    effective_status,
    days_until_due,
    get_invoice,
    list_invoices,
    load_invoice_stats,
    create_adhoc_invoice,
    record_payment
)
from app.services.preferences import get_invoice_sort
from app.utils.dates import today as utc_today

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def invoice_response(invoice: Invoice, today: Optional[date] = None) -> dict:
    """Fatura com status efetivo e valores reconstruídos do desconto"""
    today = today or utc_today()
    original, discount, percent = reconstruct_amounts(invoice.amount, invoice.description)
    return {
        **invoice.to_dict(),
        "effective_status": effective_status(invoice, today).value,
        "original_amount": float(original),
        "discount_value": float(discount),
        "discount_percent": float(percent) if percent is not None else None,
        "days_until_due": days_until_due(invoice, today),
    }


async def _scope(db: AsyncSession, user: User, condominium_id: Optional[str]):
    await authorize(db, user, Action.VIEW_INVOICES, condominium_id)
    if condominium_id:
        return [condominium_id]
    return await accessible_condominium_ids(db, user)


@router.get("", response_model=List[InvoiceResponse])
async def list_all(
    condominium_id: Optional[str] = None,
    status_filter: Optional[EffectiveStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Lista faturas (ordenação conforme preferência do usuário)"""
    scope = await _scope(db, user, condominium_id)
    sort_field, sort_direction = await get_invoice_sort(db, user.id)
    today = utc_today()

    invoices = await list_invoices(
        db,
        condominium_ids=scope,
        status=status_filter,
        search=search,
        sort_field=sort_field,
        sort_direction=sort_direction,
        today=today,
        limit=limit,
        offset=offset
    )
    return [invoice_response(invoice, today) for invoice in invoices]


@router.get("/stats", response_model=InvoiceStatsResponse)
async def stats(
    condominium_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Pendentes, pagas, vencidas e do mês (recalculadas a cada consulta)"""
    scope = await _scope(db, user, condominium_id)
    result = await load_invoice_stats(db, scope)
    return result.to_dict()


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def detail(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    invoice = await get_invoice(db, invoice_id)
    await authorize(db, user, Action.VIEW_INVOICES, invoice.condominium_id)
    return invoice_response(invoice)


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create(
    request: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Fatura avulsa"""
    await authorize(db, user, Action.CREATE_INVOICE, request.condominium_id)
    invoice = await create_adhoc_invoice(
        db,
        request.condominium_id,
        amount=request.amount,
        due_date=request.due_date,
        description=request.description
    )
    return invoice_response(invoice)


@router.post("/{invoice_id}/pay", response_model=InvoiceResponse)
async def pay(
    invoice_id: str,
    request: PaymentRecordRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Baixa manual (PIX fora do sistema, transferência, dinheiro)"""
    invoice = await get_invoice(db, invoice_id)
    await authorize(db, user, Action.RECORD_PAYMENT, invoice.condominium_id)
    invoice = await record_payment(
        db,
        invoice_id,
        method=request.payment_method,
        reference=request.payment_reference
    )
    return invoice_response(invoice)
