"""
Condo Billing - Usage Limits
Controle de cota mensal por recurso (notificações, advertências, multas, encomendas)

O consumo é um único UPDATE condicional: a checagem de capacidade e o
incremento acontecem na mesma instrução, então requisições concorrentes
nunca ultrapassam limite + extra.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import update, or_, literal

from app.core.config import settings
from app.core.errors import (
    QuotaExceeded, PeriodExpired, SubscriptionInactive, NoSubscriptionFound
)
from app.models import Subscription, ResourceKind
from app.services.subscriptions import get_subscription
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


def _is_unlimited(subscription: Subscription, kind: ResourceKind) -> bool:
    return bool(subscription.is_lifetime) or subscription.limit(kind) < 0


def remaining_capacity(subscription: Subscription, kind: ResourceKind) -> Optional[int]:
    """limite + extra - usado; None quando não há limite"""
    if _is_unlimited(subscription, kind):
        return None
    return subscription.limit(kind) + subscription.extra(kind) - subscription.used(kind)


def _period_open(subscription: Subscription, now: datetime) -> bool:
    if subscription.is_lifetime:
        return True
    end = subscription.current_period_end
    return end is not None and end >= now


async def consume_quota(
    db: AsyncSession,
    condominium_id: str,
    kind,
    amount: int = 1,
    now: Optional[datetime] = None
) -> Optional[int]:
    """
    Consome `amount` unidades da cota do recurso.

    Retorna a capacidade restante (None para ilimitado/vitalício).
    Em caso de recusa nada é alterado e o erro específico é levantado.
    """
    kind = ResourceKind(kind)
    if amount < 1:
        raise ValueError("amount deve ser >= 1")
    now = now or utcnow()

    used_col = getattr(Subscription, f"{kind.prefix}_used")
    limit_col = getattr(Subscription, f"{kind.prefix}_limit")
    extra_col = Subscription.package_notifications_extra if kind.has_extra else literal(0)

    result = await db.execute(
        update(Subscription)
        .where(
            Subscription.condominium_id == condominium_id,
            Subscription.active == True,
            or_(
                Subscription.is_lifetime == True,
                Subscription.current_period_end >= now
            ),
            or_(
                Subscription.is_lifetime == True,
                limit_col < 0,
                used_col + amount <= limit_col + extra_col
            )
        )
        .values({used_col: used_col + amount})
        .execution_options(synchronize_session=False)
    )

    subscription = await get_subscription(db, condominium_id)

    if result.rowcount == 0:
        _raise_rejection(subscription, kind, amount, now)

    remaining = remaining_capacity(subscription, kind)
    logger.info(
        f"Cota consumida: condomínio={condominium_id} recurso={kind.value} "
        f"qtd={amount} usado={subscription.used(kind)} restante={remaining}"
    )
    return remaining


def _raise_rejection(subscription: Subscription, kind: ResourceKind, amount: int, now: datetime):
    """Identifica por que o UPDATE não afetou nenhuma linha"""
    condominium_id = subscription.condominium_id

    if not subscription.active:
        logger.warning(f"Consumo recusado: assinatura inativa ({condominium_id})")
        raise SubscriptionInactive(condominium_id=condominium_id)

    if not _period_open(subscription, now):
        end = subscription.current_period_end
        logger.warning(f"Consumo recusado: período encerrado ({condominium_id})")
        raise PeriodExpired(
            condominium_id=condominium_id,
            current_period_end=end.isoformat() if end else None
        )

    logger.warning(
        f"Consumo recusado: cota de {kind.value} esgotada ({condominium_id}) "
        f"usado={subscription.used(kind)} limite={subscription.limit(kind)}"
    )
    raise QuotaExceeded(
        condominium_id=condominium_id,
        kind=kind.value,
        used=subscription.used(kind),
        limit=subscription.limit(kind),
        extra=subscription.extra(kind),
        requested=amount
    )


def usage_summary(subscription: Subscription) -> dict:
    """Uso por recurso no período atual"""
    summary = {}
    for kind in ResourceKind:
        used = subscription.used(kind)
        limit = subscription.limit(kind)
        extra = subscription.extra(kind)
        unlimited = _is_unlimited(subscription, kind)
        capacity = limit + extra

        if unlimited:
            percentage = 0.0
        elif capacity > 0:
            percentage = round(min(100.0, used * 100.0 / capacity), 1)
        else:
            percentage = 100.0

        summary[kind.value] = {
            "used": used,
            "limit": limit,
            "extra": extra,
            "remaining": remaining_capacity(subscription, kind),
            "percentage": percentage,
            "unlimited": unlimited,
        }
    return summary


async def get_usage_summary(db: AsyncSession, condominium_id: str) -> dict:
    subscription = await get_subscription(db, condominium_id)
    return usage_summary(subscription)


async def add_package_notification_credits(
    db: AsyncSession,
    condominium_id: str,
    quantity: int
) -> Decimal:
    """
    Adiciona créditos extras de notificação de encomenda.
    Retorna o custo (quantidade x custo unitário).
    """
    if quantity < 1:
        raise ValueError("quantity deve ser >= 1")

    result = await db.execute(
        update(Subscription)
        .where(Subscription.condominium_id == condominium_id)
        .values(package_notifications_extra=Subscription.package_notifications_extra + quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NoSubscriptionFound(condominium_id=condominium_id)

    cost = (Decimal(settings.PACKAGE_NOTIFICATION_EXTRA_COST) * quantity).quantize(Decimal("0.01"))
    logger.info(f"{quantity} créditos de encomenda adicionados ao condomínio {condominium_id} (R$ {cost})")
    return cost
