"""
Condo Billing - Plan Schemas
"""
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional


class PlanResponse(BaseModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None
    notifications_limit: int
    warnings_limit: int
    fines_limit: int
    package_notifications_limit: int
    price: float
    is_active: bool = True
    display_order: int = 0


class PlanUpdate(BaseModel):
    """Limites -1 = ilimitado"""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    notifications_limit: Optional[int] = Field(None, ge=-1)
    warnings_limit: Optional[int] = Field(None, ge=-1)
    fines_limit: Optional[int] = Field(None, ge=-1)
    package_notifications_limit: Optional[int] = Field(None, ge=-1)
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    is_active: Optional[bool] = None
    display_order: Optional[int] = None
