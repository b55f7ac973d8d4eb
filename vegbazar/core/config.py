# vegbazar/core/config.py
from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Built once at startup (see `get_settings`) and never mutated;
    handlers read CORS origins, cookie domains and token lifetimes
    from this object instead of looking up env vars themselves.

    Required env vars (.env):
      - DATABASE_URL
      - JWT_ACCESS_SECRET
      - JWT_REFRESH_SECRET

    Optional:
      - SMTP_* (transactional email)
      - GOOGLE_CLIENT_ID (Google sign-in)
    """

    PROJECT_NAME: str = "VegBazar API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["development", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str

    # Tokens: one secret per token kind
    JWT_ACCESS_SECRET: SecretStr
    JWT_REFRESH_SECRET: SecretStr
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    ADMIN_REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # Passwords / identifiers
    BCRYPT_ROUNDS: int = 12
    PASSWORD_MIN_LENGTH: int = 6
    ADMIN_PASSWORD_MIN_LENGTH: int = 8
    PHONE_MIN_DIGITS: int = 10

    # One-time tokens (reset / verification)
    PASSWORD_RESET_EXPIRE_HOURS: int = 24
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 24

    # HTTP surface
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
        "https://vegbazar.store",
        "https://admin.vegbazar.store",
    ]
    ROLE_COOKIE_DOMAINS: dict[str, str] = {
        "user": "vegbazar.store",
        "admin": "admin.vegbazar.store",
        "editor": "admin.vegbazar.store",
        "delivery_partner": "delivery.vegbazar.store",
        "packaging": "warehouse.vegbazar.store",
    }
    FRONTEND_URL: str = "http://localhost:5173"
    FRONTEND_ADMIN_URL: str = "http://localhost:5174"

    # SMTP
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: SecretStr | None = None
    SMTP_FROM_EMAIL: str | None = None
    SMTP_FROM_NAME: str = "VegBazar"
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False

    # Delivery charges (paise) for saved addresses
    DELIVERY_CENTER_LATITUDE: float = 19.0760
    DELIVERY_CENTER_LONGITUDE: float = 72.8777
    DELIVERY_BASE_CHARGE: int = 2000
    DELIVERY_PER_KM_CHARGE: int = 500
    DELIVERY_FREE_DISTANCE_KM: float = 5.0
    DELIVERY_MIN_CHARGE: int = 1000
    DELIVERY_MAX_CHARGE: int = 10000

    # Google sign-in
    GOOGLE_CLIENT_ID: str | None = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def refresh_token_days(self, role: str) -> int:
        """Refresh lifetime is a per-role policy: admins get a longer one."""
        if role == "admin":
            return self.ADMIN_REFRESH_TOKEN_EXPIRE_DAYS
        return self.REFRESH_TOKEN_EXPIRE_DAYS

    def password_min_length(self, role: str) -> int:
        """Customers get the short minimum; admins and staff the longer one."""
        if role == "user":
            return self.PASSWORD_MIN_LENGTH
        return self.ADMIN_PASSWORD_MIN_LENGTH


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
