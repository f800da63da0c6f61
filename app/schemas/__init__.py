from .auth import (
    LoginRequest,
    LoginResponse,
    UserResponse,
    InvoiceSortPreference,
    InvoiceSortPreferenceUpdate
)
from .plan import PlanResponse, PlanUpdate
from .condominium import CondominiumCreate, CondominiumResponse
from .subscription import (
    ConsumeRequest,
    ConsumeResponse,
    PackageCreditsRequest,
    PackageCreditsResponse,
    PlanChangeRequest,
    ActiveToggleRequest,
    LifetimeToggleRequest,
    SubscriptionStatusResponse,
    SubscriptionResponse
)
from .invoice import (
    InvoiceCreate,
    PaymentRecordRequest,
    InvoiceResponse,
    StatsBucketResponse,
    InvoiceStatsResponse
)
from .payment import PixRequest, PixResponse

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "UserResponse",
    "InvoiceSortPreference",
    "InvoiceSortPreferenceUpdate",
    "PlanResponse",
    "PlanUpdate",
    "CondominiumCreate",
    "CondominiumResponse",
    "ConsumeRequest",
    "ConsumeResponse",
    "PackageCreditsRequest",
    "PackageCreditsResponse",
    "PlanChangeRequest",
    "ActiveToggleRequest",
    "LifetimeToggleRequest",
    "SubscriptionStatusResponse",
    "SubscriptionResponse",
    "InvoiceCreate",
    "PaymentRecordRequest",
    "InvoiceResponse",
    "StatsBucketResponse",
    "InvoiceStatsResponse",
    "PixRequest",
    "PixResponse"
]
