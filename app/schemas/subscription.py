"""
Condo Billing - Subscription Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional

from app.models import ResourceKind, PlanSlug


class ConsumeRequest(BaseModel):
    kind: ResourceKind
    amount: int = Field(1, ge=1)


class ConsumeResponse(BaseModel):
    kind: str
    consumed: int
    remaining: Optional[int] = None


class PackageCreditsRequest(BaseModel):
    quantity: int = Field(..., ge=1)


class PackageCreditsResponse(BaseModel):
    quantity: int
    cost: float
    package_notifications_extra: int


class PlanChangeRequest(BaseModel):
    plan: PlanSlug


class ActiveToggleRequest(BaseModel):
    active: bool


class LifetimeToggleRequest(BaseModel):
    is_lifetime: bool


class SubscriptionStatusResponse(BaseModel):
    is_active: bool
    is_lifetime: bool
    is_trial: bool
    is_trial_expired: bool
    is_paid_active: bool


class SubscriptionResponse(BaseModel):
    subscription: dict
    status: SubscriptionStatusResponse
    usage: dict
