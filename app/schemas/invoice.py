"""
Condo Billing - Invoice Schemas
"""
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional


class InvoiceCreate(BaseModel):
    """Fatura avulsa"""
    condominium_id: str
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    due_date: date
    description: Optional[str] = Field(None, max_length=500)


class PaymentRecordRequest(BaseModel):
    payment_method: str = Field(..., min_length=2, max_length=50)
    payment_reference: Optional[str] = Field(None, max_length=255)


class InvoiceResponse(BaseModel):
    id: str
    subscription_id: str
    condominium_id: str
    invoice_number: Optional[str] = None
    amount: float
    status: str
    effective_status: str
    due_date: str
    period_start: str
    period_end: str
    paid_at: Optional[str] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    original_amount: float
    discount_value: float
    discount_percent: Optional[float] = None
    days_until_due: Optional[int] = None


class StatsBucketResponse(BaseModel):
    count: int
    total: float


class InvoiceStatsResponse(BaseModel):
    pending: StatsBucketResponse
    paid: StatsBucketResponse
    overdue: StatsBucketResponse
    this_month: StatsBucketResponse
