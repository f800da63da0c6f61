"""
Condo Billing - Configuration
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
from decimal import Decimal
import secrets
from pathlib import Path
from dotenv import load_dotenv

# Carrega .env com override para sobrescrever variáveis do sistema
# Isso é necessário porque pode haver DATABASE_URL global no sistema
env_file = Path(__file__).parent.parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file, override=True)


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Condo Billing"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Database (accepts DATABASE_URL or BILLING_DATABASE_URL)
    DATABASE_URL: Optional[str] = None
    BILLING_DATABASE_URL: str = "sqlite+aiosqlite:///./billing.db"

    @property
    def db_url(self) -> str:
        """Returns DATABASE_URL if set, otherwise BILLING_DATABASE_URL"""
        return self.DATABASE_URL or self.BILLING_DATABASE_URL

    # Security
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Admin
    ADMIN_EMAIL: str = "admin@condo-billing.com"
    ADMIN_PASSWORD: str = "change-me-in-production"

    # CORS
    CORS_ORIGINS: list = ["*"]

    # Mercado Pago
    MP_ACCESS_TOKEN: Optional[str] = None
    MP_NOTIFICATION_URL: Optional[str] = None

    # Regras de cobrança
    TRIAL_DAYS: int = 7
    INVOICE_DUE_DAYS: int = 15
    UPGRADE_INVOICE_DUE_DAYS: int = 7
    EARLY_TRIAL_DUE_BUSINESS_DAYS: int = 3
    EARLY_TRIAL_DISCOUNT_PERCENT: Decimal = Decimal("10")
    ADHOC_INVOICE_PERIOD_MONTHS: int = 1
    PACKAGE_NOTIFICATION_EXTRA_COST: Decimal = Decimal("0.10")

    # Virada de período (job diário)
    ROLLOVER_SCHEDULER_ENABLED: bool = False
    ROLLOVER_TIME: str = "03:00"
    ROLLOVER_CHECK_INTERVAL_SECONDS: int = 60

    # Preferências padrão de ordenação
    DEFAULT_INVOICE_SORT_FIELD: str = "due_date"
    DEFAULT_INVOICE_SORT_DIRECTION: str = "desc"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Email Settings (SMTP) - usado para alertas de erro
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: str = "noreply@condo-billing.com"
    SMTP_FROM_NAME: str = "Condo Billing"
    SMTP_TLS: bool = True

    # Alertas de erro
    ERROR_NOTIFICATION_ENABLED: bool = False
    ERROR_NOTIFICATION_EMAIL: str = "suporte@condo-billing.com"

    class Config:
        extra = "ignore"
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
