"""
Condo Billing - Subscriptions API
Consulta de assinatura, consumo de cota e ações administrativas
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import User
from app.schemas import (
    ConsumeRequest,
    ConsumeResponse,
    PackageCreditsRequest,
    PackageCreditsResponse,
    PlanChangeRequest,
    ActiveToggleRequest,
    LifetimeToggleRequest,
    SubscriptionResponse
)
from app.api.auth import get_current_user
from app.api.invoices import invoice_response
from app.services.authorization import Action, authorize
from app.services.subscriptions import (
    get_subscription,
    subscription_status,
    change_plan,
    set_active,
    set_lifetime,
    end_trial_early
)
from app.services.usage import consume_quota, usage_summary, add_package_notification_credits

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


def _subscription_response(subscription) -> dict:
    return {
        "subscription": subscription.to_dict(),
        "status": subscription_status(subscription).to_dict(),
        "usage": usage_summary(subscription),
    }


@router.get("/{condominium_id}", response_model=SubscriptionResponse)
async def get_subscription_detail(
    condominium_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Assinatura + situação (trial/vitalício/pago) + uso do período"""
    await authorize(db, user, Action.VIEW_SUBSCRIPTION, condominium_id)
    subscription = await get_subscription(db, condominium_id)
    return _subscription_response(subscription)


@router.post("/{condominium_id}/consume", response_model=ConsumeResponse)
async def consume(
    condominium_id: str,
    request: ConsumeRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Consome cota antes de enviar notificação/advertência/multa/aviso de encomenda"""
    await authorize(db, user, Action.CONSUME_QUOTA, condominium_id)
    remaining = await consume_quota(db, condominium_id, request.kind, request.amount)
    return ConsumeResponse(kind=request.kind.value, consumed=request.amount, remaining=remaining)


@router.post("/{condominium_id}/package-credits", response_model=PackageCreditsResponse)
async def add_package_credits(
    condominium_id: str,
    request: PackageCreditsRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await authorize(db, user, Action.ADD_PACKAGE_CREDITS, condominium_id)
    cost = await add_package_notification_credits(db, condominium_id, request.quantity)
    subscription = await get_subscription(db, condominium_id)
    return PackageCreditsResponse(
        quantity=request.quantity,
        cost=float(cost),
        package_notifications_extra=subscription.package_notifications_extra
    )


@router.put("/{condominium_id}/plan")
async def update_plan(
    condominium_id: str,
    request: PlanChangeRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Troca de plano; upgrade no meio do período gera fatura proporcional"""
    await authorize(db, user, Action.MANAGE_SUBSCRIPTION, condominium_id)
    subscription, invoice = await change_plan(db, condominium_id, request.plan.value)
    return {
        **_subscription_response(subscription),
        "invoice": invoice_response(invoice) if invoice else None,
    }


@router.put("/{condominium_id}/active", response_model=SubscriptionResponse)
async def update_active(
    condominium_id: str,
    request: ActiveToggleRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Pausa/reativa a assinatura"""
    await authorize(db, user, Action.MANAGE_SUBSCRIPTION, condominium_id)
    subscription = await set_active(db, condominium_id, request.active)
    return _subscription_response(subscription)


@router.put("/{condominium_id}/lifetime", response_model=SubscriptionResponse)
async def update_lifetime(
    condominium_id: str,
    request: LifetimeToggleRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await authorize(db, user, Action.MANAGE_SUBSCRIPTION, condominium_id)
    subscription = await set_lifetime(db, condominium_id, request.is_lifetime)
    return _subscription_response(subscription)


@router.post("/{condominium_id}/end-trial")
async def end_trial(
    condominium_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Encerra o trial e emite a primeira fatura com desconto (planos pagos)"""
    await authorize(db, user, Action.END_TRIAL, condominium_id)
    invoice = await end_trial_early(db, condominium_id)
    subscription = await get_subscription(db, condominium_id)
    return {
        **_subscription_response(subscription),
        "invoice": invoice_response(invoice) if invoice else None,
    }
