"""
Condo Billing - Condominiums Service
Cadastro do condomínio junto com a assinatura em trial
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.config import settings
from app.core.documents import validate_document
from app.core.errors import CondominiumNotFound
from app.models import Condominium, Subscription, PlanSlug
from app.services.plans import get_plan
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


async def create_condominium(
    db: AsyncSession,
    owner_id: str,
    name: str,
    cnpj: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    now: Optional[datetime] = None
) -> Condominium:
    """
    Cria o condomínio e sua assinatura na mesma transação.

    A assinatura começa no plano start, em trial de TRIAL_DAYS dias, com o
    período de cobrança coincidindo com o trial.
    """
    now = now or utcnow()
    if cnpj:
        cnpj = validate_document(cnpj, "CNPJ")

    plan = await get_plan(db, PlanSlug.START.value)
    trial_ends_at = now + timedelta(days=settings.TRIAL_DAYS)

    condominium = Condominium(
        owner_id=owner_id,
        name=name,
        cnpj=cnpj,
        city=city,
        state=state.upper() if state else None,
    )
    condominium.subscription = Subscription(
        plan=plan.slug,
        active=True,
        is_trial=True,
        trial_ends_at=trial_ends_at,
        current_period_start=now,
        current_period_end=trial_ends_at,
        **plan.limits()
    )
    db.add(condominium)
    await db.flush()

    logger.info(f"Condomínio criado: {condominium.name} ({condominium.id}) trial até {trial_ends_at.isoformat()}")
    return condominium


async def get_condominium(db: AsyncSession, condominium_id: str) -> Condominium:
    result = await db.execute(select(Condominium).where(Condominium.id == condominium_id))
    condominium = result.scalar_one_or_none()
    if not condominium:
        raise CondominiumNotFound(condominium_id=condominium_id)
    return condominium
