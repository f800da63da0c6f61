from .auth import router as auth_router
from .plans import router as plans_router
from .condominiums import router as condominiums_router
from .subscriptions import router as subscriptions_router
from .invoices import router as invoices_router
from .payments import router as payments_router
from .jobs import router as jobs_router

__all__ = [
    "auth_router",
    "plans_router",
    "condominiums_router",
    "subscriptions_router",
    "invoices_router",
    "payments_router",
    "jobs_router"
]
