"""
Condo Billing - Plans API
Planos de assinatura (dados de referência)
"""
import logging
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import User
from app.schemas import PlanResponse, PlanUpdate
from app.api.auth import get_current_user
from app.services.authorization import Action, authorize
from app.services.plans import get_plan, list_active_plans

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plans", tags=["Plans"])


@router.get("", response_model=List[PlanResponse])
async def list_plans(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Lista os planos ativos ordenados por display_order"""
    await authorize(db, user, Action.VIEW_PLANS)
    return [plan.to_dict() for plan in await list_active_plans(db)]


@router.put("/{slug}", response_model=PlanResponse)
async def update_plan(
    slug: str,
    request: PlanUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Edita um plano (somente super admin). Assinaturas existentes não mudam."""
    await authorize(db, user, Action.EDIT_PLANS)
    plan = await get_plan(db, slug)

    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(plan, field, value)

    await db.flush()
    logger.info(f"Plano {slug} atualizado por {user.email}")
    return plan.to_dict()
