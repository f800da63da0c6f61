"""
Condo Billing - Plans Service
Planos padrão e consulta de planos
"""
import logging
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.models import Plan, PlanSlug, UNLIMITED
from app.core.errors import PlanNotFound

logger = logging.getLogger(__name__)

DEFAULT_PLANS = [
    {"slug": PlanSlug.START.value, "name": "Start", "description": "Plano gratuito para começar",
     "notifications_limit": 10, "warnings_limit": 10, "fines_limit": 0,
     "package_notifications_limit": 20, "price": Decimal("0.00"), "display_order": 1},
    {"slug": PlanSlug.ESSENCIAL.value, "name": "Essencial", "description": "Para condomínios pequenos",
     "notifications_limit": 50, "warnings_limit": 50, "fines_limit": 25,
     "package_notifications_limit": 100, "price": Decimal("49.90"), "display_order": 2},
    {"slug": PlanSlug.PROFISSIONAL.value, "name": "Profissional", "description": "Para condomínios médios",
     "notifications_limit": 200, "warnings_limit": 200, "fines_limit": 100,
     "package_notifications_limit": 500, "price": Decimal("99.90"), "display_order": 3},
    {"slug": PlanSlug.ENTERPRISE.value, "name": "Enterprise", "description": "Para grandes condomínios",
     "notifications_limit": 999999, "warnings_limit": 999999, "fines_limit": 999999,
     "package_notifications_limit": UNLIMITED, "price": Decimal("199.90"), "display_order": 4},
]


async def ensure_plans_exist(db: AsyncSession):
    """Garante que os planos padrão existam no banco"""
    for plan_data in DEFAULT_PLANS:
        result = await db.execute(
            select(Plan).where(Plan.slug == plan_data["slug"])
        )
        if result.scalar_one_or_none():
            continue

        db.add(Plan(is_active=True, **plan_data))
        logger.info(f"Plano {plan_data['slug']} criado")

    await db.flush()


async def get_plan(db: AsyncSession, slug: str) -> Plan:
    result = await db.execute(select(Plan).where(Plan.slug == slug))
    plan = result.scalar_one_or_none()
    if not plan:
        raise PlanNotFound(slug=slug)
    return plan


async def list_active_plans(db: AsyncSession) -> list:
    result = await db.execute(
        select(Plan)
        .where(Plan.is_active == True)
        .order_by(Plan.display_order)
    )
    return list(result.scalars().all())
