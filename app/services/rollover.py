"""
Condo Billing - Period Rollover
Virada de período das assinaturas: zera contadores, avança o período e
emite a fatura mensal dos planos pagos.

Executado pelo scheduler diário ou manualmente via /api/jobs/rollover.
"""
import logging
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from app.core.config import settings
from app.core.error_notifier import notify_error_async
from app.models import Subscription, Invoice, ResourceKind
from app.services.plans import get_plan
from app.services.invoices import create_invoice
from app.utils.dates import utcnow, add_months, format_br

logger = logging.getLogger(__name__)


async def _due_subscription_ids(db: AsyncSession, now: datetime) -> list:
    """Assinaturas ativas, não vitalícias, com período vencido até hoje (ou sem período)"""
    tomorrow = datetime.combine(now.date() + timedelta(days=1), time.min)
    result = await db.execute(
        select(Subscription.id)
        .where(
            Subscription.active == True,
            Subscription.is_lifetime == False,
            or_(
                Subscription.current_period_end.is_(None),
                Subscription.current_period_end < tomorrow
            )
        )
        .order_by(Subscription.created_at)
    )
    return list(result.scalars().all())


async def rollover_subscription(db: AsyncSession, subscription: Subscription, now: datetime) -> Optional[Invoice]:
    """Avança um período; retorna a fatura criada (se houver)"""
    today = now.date()
    period_end = add_months(now, 1)

    subscription.current_period_start = now
    subscription.current_period_end = period_end
    # Trial vencido deixa de ser trial; o novo período já é cobrado normalmente
    if subscription.is_trial and subscription.trial_ends_at and subscription.trial_ends_at <= now:
        subscription.is_trial = False
        subscription.trial_ends_at = None
    # Créditos extras comprados permanecem
    for kind in ResourceKind:
        setattr(subscription, f"{kind.prefix}_used", 0)

    plan = await get_plan(db, subscription.plan)
    price = Decimal(plan.price or 0)
    if price <= 0:
        return None

    existing = await db.execute(
        select(Invoice.id).where(
            Invoice.subscription_id == subscription.id,
            Invoice.period_start == today
        )
    )
    if existing.first():
        logger.info(f"Fatura do período {today.isoformat()} já existe para assinatura {subscription.id}")
        return None

    return await create_invoice(
        db,
        subscription,
        amount=price,
        due_date=today + timedelta(days=settings.INVOICE_DUE_DAYS),
        period_start=today,
        period_end=period_end.date(),
        description=f"Assinatura {plan.name} - {format_br(today)} a {format_br(period_end.date())}",
    )


async def run_period_rollover(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    """
    Processa todas as assinaturas com período encerrado.

    Cada assinatura é confirmada separadamente; uma falha é registrada
    e o job segue para a próxima.
    """
    now = now or utcnow()
    processed = 0
    invoices_created = 0
    errors = []

    for subscription_id in await _due_subscription_ids(db, now):
        try:
            result = await db.execute(
                select(Subscription)
                .where(Subscription.id == subscription_id)
                .execution_options(populate_existing=True)
            )
            subscription = result.scalar_one()
            invoice = await rollover_subscription(db, subscription, now)
            await db.commit()

            processed += 1
            if invoice:
                invoices_created += 1
        except Exception as e:
            await db.rollback()
            logger.error(f"Erro na virada da assinatura {subscription_id}: {e}")
            errors.append({"subscription_id": subscription_id, "error": str(e)})
            notify_error_async(
                error_type="ROLLOVER_ERROR",
                error_message=str(e),
                endpoint="run_period_rollover",
            )

    logger.info(
        f"Virada de período concluída: {processed} processadas, "
        f"{invoices_created} faturas, {len(errors)} erros"
    )
    return {"processed": processed, "invoices_created": invoices_created, "errors": errors}
