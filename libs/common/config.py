from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings.

    Several credentials have been renamed over the life of the storefront
    (the VITE_* names come from the old frontend build). Every historical name
    is still accepted; the first one found wins.
    """

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    ADMIN_EMAIL: str = "admin@admin.com"
    STORE_BASE_URL: str = "https://www.creart3d2.com"
    STORE_BRAND: str = "3D2"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Supabase
    SUPABASE_URL: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("SUPABASE_URL", "VITE_SUPABASE_URL")
    )
    SUPABASE_ANON_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "SUPABASE_ANON_KEY",
            "SUPABASE_ANON",
            "VITE_SUPABASE_ANON",
            "VITE_SUPABASE_ANON_TOKEN",
        ),
    )
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    SUPABASE_JWT_SECRET: str = "test-jwt-secret"

    # Mercado Pago (payment processor)
    MP_ACCESS_TOKEN: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MP_ACCESS_TOKEN", "MP_ACCESS", "VITE_MP_ACCESS"),
    )
    MP_API_URL: str = "https://api.mercadopago.com"

    # MercadoLibre (marketplace)
    ML_APP_ID: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ML_APP_ID", "VITE_ML_APP_ID")
    )
    ML_APP_SECRET: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ML_APP_SECRET", "VITE_ML_APP_SECRET"),
    )
    ML_REDIRECT_URI: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ML_REDIRECT_URI", "VITE_ML_REDIRECT_URI"),
    )
    ML_API_URL: str = "https://api.mercadolibre.com"
    ML_SITE_ID: str = "MLA"
    ML_ZIP_CODE_FROM: str = "1842"
    ML_WEBHOOK_URL: str = "https://www.creart3d2.com/api/ml-webhook"
    # Bearer secret the scheduler sends to the token-refresh cron; unset = open
    CRON_SECRET: Optional[str] = None

    # Email (SMTP account used for admin notifications)
    EMAIL_USER: Optional[str] = None
    EMAIL_PASS: Optional[str] = None
    SMTP_HOST: str = "smtp.office365.com"
    SMTP_PORT: int = 587
    EMAIL_FROM_NAME: str = "3D2 Web"

    # Notification relay (WhatsApp/Telegram routing happens on the relay side)
    NOTIFY_WEBHOOK_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("NOTIFY_WEBHOOK_URL", "MAKE_WEBHOOK_URL"),
    )

    # Microservices URLs
    STORE_SERVICE_URL: str = "http://store-service:8001"
    PAYMENTS_SERVICE_URL: str = "http://payments-service:8002"
    MARKETPLACE_SERVICE_URL: str = "http://marketplace-service:8003"
    COMMUNICATIONS_SERVICE_URL: str = "http://communications-service:8004"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    def env_presence(self) -> dict[str, bool]:
        """Report which credentials are configured without exposing values."""
        return {
            "SUPABASE_URL": bool(self.SUPABASE_URL),
            "SUPABASE_ANON_KEY": bool(self.SUPABASE_ANON_KEY),
            "SUPABASE_SERVICE_ROLE_KEY": bool(self.SUPABASE_SERVICE_ROLE_KEY),
            "MP_ACCESS_TOKEN": bool(self.MP_ACCESS_TOKEN),
            "ML_APP_ID": bool(self.ML_APP_ID),
            "ML_APP_SECRET": bool(self.ML_APP_SECRET),
            "ML_REDIRECT_URI": bool(self.ML_REDIRECT_URI),
            "EMAIL_USER": bool(self.EMAIL_USER),
            "EMAIL_PASS": bool(self.EMAIL_PASS),
            "NOTIFY_WEBHOOK_URL": bool(self.NOTIFY_WEBHOOK_URL),
        }


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
