"""
Condo Billing - Invoices Service
Ciclo de vida das faturas: emissão, pagamento, status efetivo e estatísticas

Status gravado é apenas pending/paid. "Vencida" é calculado na leitura a
partir de due_date, sempre pela mesma função (effective_status).
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, or_, and_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from app.core.config import settings
from app.core.errors import AlreadyPaid, InvoiceNotFound, NoSubscriptionFound
from app.models import Invoice, InvoiceSequence, InvoiceStatus, EffectiveStatus, Subscription, Condominium
from app.utils.dates import utcnow, today as utc_today, add_months, start_of_month, end_of_month

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "FAT-"

# Badge "vence em N dias" aparece somente a partir desta distância
DUE_SOON_DAYS = 7

SORTABLE_FIELDS = {
    "due_date": Invoice.due_date,
    "created_at": Invoice.created_at,
    "amount": Invoice.amount,
    "invoice_number": Invoice.invoice_number,
}


# ============== STATUS ==============

def effective_status(invoice, today: Optional[date] = None) -> EffectiveStatus:
    """
    Status exibido da fatura.

    Aceita qualquer objeto com `status` e `due_date` (modelo ou linha de select).
    """
    today = today or utc_today()
    if invoice.status == InvoiceStatus.PAID.value:
        return EffectiveStatus.PAID
    if invoice.due_date < today:
        return EffectiveStatus.OVERDUE
    return EffectiveStatus.PENDING


def effective_status_clause(status: EffectiveStatus, today: date):
    """Mesmo predicado de effective_status, expresso em SQL para filtros"""
    if status == EffectiveStatus.PAID:
        return Invoice.status == InvoiceStatus.PAID.value
    if status == EffectiveStatus.OVERDUE:
        return and_(Invoice.status == InvoiceStatus.PENDING.value, Invoice.due_date < today)
    return and_(Invoice.status == InvoiceStatus.PENDING.value, Invoice.due_date >= today)


def days_until_due(invoice, today: Optional[date] = None) -> Optional[int]:
    """Dias até o vencimento, só para faturas pendentes que vencem em até 7 dias"""
    today = today or utc_today()
    if effective_status(invoice, today) != EffectiveStatus.PENDING:
        return None
    days = (invoice.due_date - today).days
    if days > DUE_SOON_DAYS:
        return None
    return days


# ============== NUMERAÇÃO ==============

async def _increment_sequence(db: AsyncSession, year: int) -> Optional[int]:
    result = await db.execute(
        update(InvoiceSequence)
        .where(InvoiceSequence.year == year)
        .values(last_number=InvoiceSequence.last_number + 1)
        .returning(InvoiceSequence.last_number)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one_or_none()


async def _create_sequence(db: AsyncSession, year: int):
    """Cria o contador do ano a partir do maior número já emitido"""
    prefix = f"{INVOICE_PREFIX}{year}"
    result = await db.execute(
        select(func.max(Invoice.invoice_number))
        .where(Invoice.invoice_number.like(f"{prefix}%"))
    )
    last = result.scalar()
    last_number = int(last[len(prefix):]) if last else 0

    if db.get_bind().dialect.name == "postgresql":
        insert = pg_insert
    else:
        insert = sqlite_insert
    # Outra sessão pode ter criado o contador ao mesmo tempo
    await db.execute(
        insert(InvoiceSequence)
        .values(year=year, last_number=last_number)
        .on_conflict_do_nothing(index_elements=[InvoiceSequence.year])
    )


async def next_invoice_number(db: AsyncSession, year: Optional[int] = None) -> str:
    """
    Reserva o próximo número sequencial do ano: FAT-YYYY00001.

    O contador é incrementado por um único UPDATE ... RETURNING, que trava a
    linha até o fim da transação; emissões simultâneas recebem números
    distintos.
    """
    year = year or utcnow().year

    sequence = await _increment_sequence(db, year)
    if sequence is None:
        await _create_sequence(db, year)
        sequence = await _increment_sequence(db, year)

    return f"{INVOICE_PREFIX}{year}{sequence:05d}"


# ============== CONSULTA ==============

async def get_invoice(db: AsyncSession, invoice_id: str) -> Invoice:
    result = await db.execute(
        select(Invoice)
        .where(Invoice.id == invoice_id)
        .execution_options(populate_existing=True)
    )
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise InvoiceNotFound(invoice_id=invoice_id)
    return invoice


async def list_invoices(
    db: AsyncSession,
    condominium_ids: Optional[List[str]] = None,
    status: Optional[EffectiveStatus] = None,
    search: Optional[str] = None,
    sort_field: Optional[str] = None,
    sort_direction: Optional[str] = None,
    today: Optional[date] = None,
    limit: int = 100,
    offset: int = 0
) -> List[Invoice]:
    """
    Lista faturas com filtros.

    condominium_ids=None significa sem restrição (super admin); lista vazia
    retorna nada. Ordenação vem da preferência do usuário.
    """
    today = today or utc_today()
    if condominium_ids is not None and not condominium_ids:
        return []

    query = select(Invoice).join(Condominium, Invoice.condominium_id == Condominium.id)

    if condominium_ids is not None:
        query = query.where(Invoice.condominium_id.in_(condominium_ids))

    if status:
        query = query.where(effective_status_clause(EffectiveStatus(status), today))

    if search:
        term = f"%{search}%"
        query = query.where(
            or_(
                Invoice.invoice_number.ilike(term),
                Invoice.description.ilike(term),
                Condominium.name.ilike(term),
            )
        )

    column = SORTABLE_FIELDS.get(sort_field or settings.DEFAULT_INVOICE_SORT_FIELD, Invoice.due_date)
    direction = (sort_direction or settings.DEFAULT_INVOICE_SORT_DIRECTION).lower()
    order = column.asc() if direction == "asc" else column.desc()

    query = query.order_by(order, Invoice.invoice_number.desc()).offset(offset).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


# ============== EMISSÃO ==============

async def create_invoice(
    db: AsyncSession,
    subscription: Subscription,
    amount: Decimal,
    due_date: date,
    period_start: date,
    period_end: date,
    description: Optional[str] = None
) -> Invoice:
    """Cria fatura pendente com número sequencial"""
    invoice = Invoice(
        subscription_id=subscription.id,
        condominium_id=subscription.condominium_id,
        invoice_number=await next_invoice_number(db),
        amount=Decimal(amount),
        status=InvoiceStatus.PENDING.value,
        due_date=due_date,
        period_start=period_start,
        period_end=period_end,
        description=description,
    )
    db.add(invoice)
    await db.flush()

    logger.info(f"Fatura {invoice.invoice_number} criada: R$ {invoice.amount} vence {due_date.isoformat()}")
    return invoice


async def create_adhoc_invoice(
    db: AsyncSession,
    condominium_id: str,
    amount: Decimal,
    due_date: date,
    description: Optional[str] = None,
    today: Optional[date] = None
) -> Invoice:
    """
    Fatura avulsa.

    O período vai de hoje até hoje + ADHOC_INVOICE_PERIOD_MONTHS, independente
    do período da assinatura.
    """
    today = today or utc_today()
    result = await db.execute(
        select(Subscription).where(Subscription.condominium_id == condominium_id)
    )
    subscription = result.scalar_one_or_none()
    if not subscription:
        logger.warning(f"Fatura avulsa recusada: condomínio {condominium_id} sem assinatura")
        raise NoSubscriptionFound(condominium_id=condominium_id)

    return await create_invoice(
        db,
        subscription,
        amount=amount,
        due_date=due_date,
        period_start=today,
        period_end=add_months(today, settings.ADHOC_INVOICE_PERIOD_MONTHS),
        description=description,
    )


# ============== PAGAMENTO ==============

async def _mark_paid(
    db: AsyncSession,
    invoice_id: str,
    method: str,
    reference: Optional[str],
    now: datetime
) -> bool:
    """pending -> paid em um único UPDATE condicional; False se nada mudou"""
    result = await db.execute(
        update(Invoice)
        .where(
            Invoice.id == invoice_id,
            Invoice.status == InvoiceStatus.PENDING.value
        )
        .values(
            status=InvoiceStatus.PAID.value,
            paid_at=now,
            payment_method=method,
            payment_reference=reference,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def record_payment(
    db: AsyncSession,
    invoice_id: str,
    method: str,
    reference: Optional[str] = None,
    now: Optional[datetime] = None
) -> Invoice:
    """Baixa manual. Fatura já paga gera AlreadyPaid e não é alterada."""
    now = now or utcnow()
    if not await _mark_paid(db, invoice_id, method, reference, now):
        invoice = await get_invoice(db, invoice_id)
        logger.warning(f"Pagamento recusado: fatura {invoice.invoice_number} já paga")
        raise AlreadyPaid(
            invoice_id=invoice.id,
            paid_at=invoice.paid_at.isoformat() if invoice.paid_at else None
        )

    invoice = await get_invoice(db, invoice_id)
    logger.info(f"Fatura {invoice.invoice_number} paga via {method}")
    return invoice


async def confirm_gateway_payment(
    db: AsyncSession,
    invoice_id: str,
    gateway_payment_id: str,
    payment_type: Optional[str] = None,
    now: Optional[datetime] = None
) -> bool:
    """
    Confirmação vinda do webhook do Mercado Pago.

    Notificações repetidas são comuns; a segunda não altera nada e retorna False.
    """
    now = now or utcnow()
    method = f"mercadopago_{payment_type or 'unknown'}"
    if await _mark_paid(db, invoice_id, method, str(gateway_payment_id), now):
        logger.info(f"Fatura {invoice_id} confirmada pelo gateway (pagamento {gateway_payment_id})")
        return True

    # Garante que a fatura existe antes de tratar como duplicada
    await get_invoice(db, invoice_id)
    logger.info(f"Confirmação duplicada ignorada para fatura {invoice_id}")
    return False


# ============== ESTATÍSTICAS ==============

@dataclass
class StatsBucket:
    count: int = 0
    total: Decimal = field(default_factory=lambda: Decimal("0"))

    def add(self, amount):
        self.count += 1
        self.total += Decimal(amount or 0)

    def to_dict(self) -> dict:
        return {"count": self.count, "total": float(self.total)}


@dataclass
class InvoiceStats:
    pending: StatsBucket = field(default_factory=StatsBucket)
    paid: StatsBucket = field(default_factory=StatsBucket)
    overdue: StatsBucket = field(default_factory=StatsBucket)
    this_month: StatsBucket = field(default_factory=StatsBucket)

    def to_dict(self) -> dict:
        return {
            "pending": self.pending.to_dict(),
            "paid": self.paid.to_dict(),
            "overdue": self.overdue.to_dict(),
            "this_month": self.this_month.to_dict(),
        }


def compute_invoice_stats(invoices: Iterable, today: Optional[date] = None) -> InvoiceStats:
    """
    Estatísticas em uma única passada.

    pending/paid/overdue são exclusivos pelo status efetivo; this_month conta
    todas as faturas com vencimento no mês corrente.
    """
    today = today or utc_today()
    month_start = start_of_month(today)
    month_end = end_of_month(today)

    stats = InvoiceStats()
    for invoice in invoices:
        status = effective_status(invoice, today)
        getattr(stats, status.value).add(invoice.amount)
        if month_start <= invoice.due_date <= month_end:
            stats.this_month.add(invoice.amount)
    return stats


async def load_invoice_stats(
    db: AsyncSession,
    condominium_ids: Optional[List[str]] = None,
    today: Optional[date] = None
) -> InvoiceStats:
    """Lê as faturas do escopo e calcula as estatísticas (nunca em cache)"""
    if condominium_ids is not None and not condominium_ids:
        return InvoiceStats()

    query = select(Invoice.status, Invoice.amount, Invoice.due_date)
    if condominium_ids is not None:
        query = query.where(Invoice.condominium_id.in_(condominium_ids))

    result = await db.execute(query)
    return compute_invoice_stats(result.all(), today)
