from .user import User, UserRole, UserCondominium, Role
from .plan import Plan, PlanSlug, UNLIMITED
from .condominium import Condominium
from .subscription import Subscription, ResourceKind
from .invoice import Invoice, InvoiceSequence, InvoiceStatus, EffectiveStatus
from .preference import UserPreference
from .pix_charge import PixCharge

__all__ = [
    "User",
    "UserRole",
    "UserCondominium",
    "Role",
    "Plan",
    "PlanSlug",
    "UNLIMITED",
    "Condominium",
    "Subscription",
    "ResourceKind",
    "Invoice",
    "InvoiceSequence",
    "InvoiceStatus",
    "EffectiveStatus",
    "UserPreference",
    "PixCharge"
]
