"""
Condo Billing - Main Application
Cobrança de assinaturas para gestão de condomínios: planos, limites de uso e faturas
"""
import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core import settings
from app.core.errors import BillingError
from app.core.logging_config import setup_logging
from app.core.rollover_scheduler import run_scheduler
from app.database import init_db
from app.api import (
    auth_router,
    plans_router,
    condominiums_router,
    subscriptions_router,
    invoices_router,
    payments_router,
    jobs_router
)

# Rate limiting
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from app.api.auth import limiter

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle do aplicativo"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    await init_db()

    scheduler_task = None
    if settings.ROLLOVER_SCHEDULER_ENABLED:
        scheduler_task = asyncio.create_task(run_scheduler())

    yield

    # Shutdown
    if scheduler_task:
        scheduler_task.cancel()
        with suppress(asyncio.CancelledError):
            await scheduler_task
    logger.info("Shutting down...")


# Middleware de headers de seguranca
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adiciona headers de seguranca em todas as respostas"""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Cache control para endpoints de autenticacao
        if "/auth" in request.url.path:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
            response.headers["Pragma"] = "no-cache"
        return response


# Cria aplicação
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Planos, limites de uso, faturas e pagamentos PIX para condomínios",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)

# Configura rate limiter na aplicacao
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError):
    """Erros de domínio com código estável para o frontend"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Headers de seguranca (adicionar ANTES do CORS)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router, prefix="/api")
app.include_router(plans_router, prefix="/api")
app.include_router(condominiums_router, prefix="/api")
app.include_router(subscriptions_router, prefix="/api")
app.include_router(invoices_router, prefix="/api")
app.include_router(payments_router, prefix="/api")
app.include_router(jobs_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
