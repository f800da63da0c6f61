"""
Condo Billing - Subscriptions Service
Consulta e ciclo de vida da assinatura (trial, vitalício, troca de plano, pausa)
"""
import logging
from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from app.core.config import settings
from app.core.errors import NoSubscriptionFound, NotInTrial
from app.models import Subscription, Invoice
from app.services.plans import get_plan
from app.services.invoices import create_invoice
from app.utils.dates import utcnow, add_business_days

logger = logging.getLogger(__name__)

# Duração do primeiro período quando o trial é encerrado antes do prazo
EARLY_TRIAL_PERIOD_DAYS = 30


@dataclass
class SubscriptionState:
    """Situação da assinatura para liberar/bloquear o uso do sistema"""
    is_active: bool
    is_lifetime: bool
    is_trial: bool
    is_trial_expired: bool
    is_paid_active: bool

    def to_dict(self) -> dict:
        return asdict(self)


async def get_subscription(db: AsyncSession, condominium_id: str) -> Subscription:
    """Retorna a assinatura do condomínio (sempre relida do banco)"""
    result = await db.execute(
        select(Subscription)
        .where(Subscription.condominium_id == condominium_id)
        .execution_options(populate_existing=True)
    )
    subscription = result.scalar_one_or_none()
    if not subscription:
        raise NoSubscriptionFound(condominium_id=condominium_id)
    return subscription


def subscription_status(subscription: Subscription, now: Optional[datetime] = None) -> SubscriptionState:
    """
    Vitalício tem prioridade; trial é válido enquanto trial_ends_at não passou
    (ou não está definido); plano pago exige active e não ser trial.
    """
    now = now or utcnow()
    is_lifetime = bool(subscription.is_lifetime)
    is_trial = bool(subscription.is_trial) and not is_lifetime
    trial_ends_at = subscription.trial_ends_at
    is_trial_expired = is_trial and trial_ends_at is not None and trial_ends_at < now
    is_trial_valid = is_trial and not is_trial_expired
    is_paid_active = bool(subscription.active) and not is_trial and not is_lifetime

    return SubscriptionState(
        is_active=is_lifetime or is_trial_valid or is_paid_active,
        is_lifetime=is_lifetime,
        is_trial=is_trial,
        is_trial_expired=is_trial_expired,
        is_paid_active=is_paid_active,
    )


def prorated_upgrade_amount(
    old_price,
    new_price,
    period_start: Optional[datetime],
    period_end: Optional[datetime],
    today: date
) -> Optional[Tuple[Decimal, int]]:
    """
    Cobrança proporcional de um upgrade: dias restantes / dias do período
    x (preço novo - preço antigo), arredondada em centavos.

    Retorna (valor, dias_restantes) ou None em downgrade, sem período ou com
    o período já encerrado.
    """
    difference = Decimal(new_price or 0) - Decimal(old_price or 0)
    if difference <= 0 or not period_start or not period_end:
        return None

    total_days = (period_end.date() - period_start.date()).days
    days_used = (today - period_start.date()).days
    days_remaining = max(0, total_days - days_used)
    if total_days <= 0 or days_remaining <= 0:
        return None

    amount = (difference * days_remaining / total_days).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if amount <= 0:
        return None
    return amount, days_remaining


async def change_plan(
    db: AsyncSession,
    condominium_id: str,
    plan_slug: str,
    now: Optional[datetime] = None
) -> Tuple[Subscription, Optional[Invoice]]:
    """
    Troca o plano copiando os limites; o uso do período é mantido.

    Upgrade no meio de um período pago gera fatura proporcional com o
    restante do período. Trial e vitalício não são cobrados.
    """
    now = now or utcnow()
    plan = await get_plan(db, plan_slug)
    subscription = await get_subscription(db, condominium_id)
    old_plan = await get_plan(db, subscription.plan)

    state = subscription_status(subscription, now)
    prorated = None
    if not state.is_lifetime and not state.is_trial:
        prorated = prorated_upgrade_amount(
            old_plan.price,
            plan.price,
            subscription.current_period_start,
            subscription.current_period_end,
            now.date()
        )

    subscription.plan = plan.slug
    for column, value in plan.limits().items():
        setattr(subscription, column, value)

    invoice = None
    if prorated:
        amount, days_remaining = prorated
        invoice = await create_invoice(
            db,
            subscription,
            amount=amount,
            due_date=now.date() + timedelta(days=settings.UPGRADE_INVOICE_DUE_DAYS),
            period_start=now.date(),
            period_end=subscription.current_period_end.date(),
            description=(
                f"Upgrade de {old_plan.name} para {plan.name} - "
                f"Proporcional {days_remaining} dias restantes"
            ),
        )

    await db.flush()
    logger.info(f"Assinatura {subscription.id}: plano {old_plan.slug} -> {plan.slug}")
    return subscription, invoice


async def set_active(db: AsyncSession, condominium_id: str, active: bool) -> Subscription:
    subscription = await get_subscription(db, condominium_id)
    subscription.active = active
    await db.flush()
    logger.info(f"Assinatura {subscription.id} {'ativada' if active else 'pausada'}")
    return subscription


async def set_lifetime(db: AsyncSession, condominium_id: str, is_lifetime: bool) -> Subscription:
    subscription = await get_subscription(db, condominium_id)
    subscription.is_lifetime = is_lifetime
    if is_lifetime:
        subscription.is_trial = False
        subscription.trial_ends_at = None
    await db.flush()
    logger.info(f"Assinatura {subscription.id}: vitalício={is_lifetime}")
    return subscription


def apply_discount(price: Decimal, percent: Decimal) -> Decimal:
    """Valor final com desconto percentual (nunca negativo)"""
    discount = (price * percent / Decimal(100))
    return max(Decimal("0"), price - discount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


async def end_trial_early(
    db: AsyncSession,
    condominium_id: str,
    now: Optional[datetime] = None
) -> Optional[Invoice]:
    """
    Encerra o trial antes do prazo e inicia um período de 30 dias.

    Só vale para assinaturas em trial (não vitalícias); fora disso levanta
    NotInTrial sem alterar nada. Para planos pagos gera a primeira fatura
    com desconto, vencendo em 3 dias úteis. A descrição carrega o marcador
    "Desconto: N%", usado depois para reconstruir o valor original.
    """
    now = now or utcnow()
    subscription = await get_subscription(db, condominium_id)
    plan = await get_plan(db, subscription.plan)
    period_end = now + timedelta(days=EARLY_TRIAL_PERIOD_DAYS)

    # Condicional: duas chamadas simultâneas não encerram o trial duas vezes
    result = await db.execute(
        update(Subscription)
        .where(
            Subscription.id == subscription.id,
            Subscription.is_trial == True,
            Subscription.is_lifetime == False
        )
        .values(
            is_trial=False,
            trial_ends_at=None,
            current_period_start=now,
            current_period_end=period_end
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning(f"Encerramento de trial recusado: assinatura {subscription.id} não está em trial")
        raise NotInTrial(condominium_id=condominium_id)

    subscription = await get_subscription(db, condominium_id)

    invoice = None
    price = Decimal(plan.price or 0)
    if price > 0:
        percent = Decimal(settings.EARLY_TRIAL_DISCOUNT_PERCENT)
        invoice = await create_invoice(
            db,
            subscription,
            amount=apply_discount(price, percent),
            due_date=add_business_days(now.date(), settings.EARLY_TRIAL_DUE_BUSINESS_DAYS),
            period_start=now.date(),
            period_end=period_end.date(),
            description=f"Primeira mensalidade - Plano {plan.name} (Desconto: {percent.normalize():f}%)",
        )

    await db.flush()
    logger.info(f"Trial encerrado antecipadamente para assinatura {subscription.id}")
    return invoice
