"""
Condo Billing - Jobs API
Execução manual dos jobs agendados
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import User
from app.api.auth import get_current_user
from app.services.authorization import Action, authorize
from app.services.rollover import run_period_rollover

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.post("/rollover")
async def rollover(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Roda a virada de período agora (gera faturas do mês)"""
    await authorize(db, user, Action.RUN_ROLLOVER)
    return await run_period_rollover(db)
