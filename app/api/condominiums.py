"""
Condo Billing - Condominiums API
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import User
from app.schemas import CondominiumCreate, CondominiumResponse
from app.api.auth import get_current_user
from app.services.authorization import Action, authorize
from app.services.condominiums import create_condominium, get_condominium
from app.services.subscriptions import get_subscription

router = APIRouter(prefix="/condominiums", tags=["Condominiums"])


@router.post("", response_model=CondominiumResponse, status_code=status.HTTP_201_CREATED)
async def create(
    request: CondominiumCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Cadastra condomínio do síndico logado (inicia trial)"""
    await authorize(db, user, Action.CREATE_CONDOMINIUM)
    condominium = await create_condominium(
        db,
        owner_id=user.id,
        name=request.name,
        cnpj=request.cnpj,
        city=request.city,
        state=request.state
    )
    return {**condominium.to_dict(), "subscription": condominium.subscription.to_dict()}


@router.get("/{condominium_id}", response_model=CondominiumResponse)
async def detail(
    condominium_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await authorize(db, user, Action.VIEW_CONDOMINIUM, condominium_id)
    condominium = await get_condominium(db, condominium_id)
    subscription = await get_subscription(db, condominium_id)
    return {**condominium.to_dict(), "subscription": subscription.to_dict()}
