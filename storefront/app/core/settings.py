"""
Application settings (pydantic-settings).

Read once from the environment and `.env`; get_settings() fails fast on
values the delivery service cannot run with.
"""
import socket
from decimal import Decimal
from urllib.parse import quote_plus
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _resolve_db_host(host: str) -> str:
    """Resolve DB host to IP so asyncpg avoids getaddrinfo in asyncio context (e.g. in Docker)."""
    if not host or host in ("localhost", "127.0.0.1"):
        return host
    try:
        return socket.gethostbyname(host)
    except socket.gaierror:
        return host


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # PostgreSQL: holds the store settings document
    DB_USER: str = Field(..., description="PostgreSQL username")
    DB_PASSWORD: str = Field(..., description="PostgreSQL password")
    DB_NAME: str = Field(..., description="PostgreSQL database name")
    DB_HOST: str = Field(default="localhost", description="PostgreSQL host")
    DB_PORT: str = Field(default="5432", description="PostgreSQL port")
    DB_POOL_SIZE: int = Field(default=20, description="Database connection pool size")
    DB_MAX_OVERFLOW: int = Field(default=40, description="Database max overflow connections")
    DB_POOL_RECYCLE: int = Field(default=3600, description="Database connection recycle time (seconds)")

    # Redis: remembered delivery locations
    REDIS_HOST: str = Field(default="localhost", description="Redis host")
    REDIS_PORT: int = Field(default=6379, description="Redis port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: Optional[str] = Field(default=None, description="Redis password")

    # Back office
    ADMIN_SECRET: Optional[str] = Field(default=None, description="X-Admin-Token value for /admin (required in production)")
    ALLOWED_ORIGINS: str = Field(default="", description="Comma-separated list of allowed CORS origins")

    ENVIRONMENT: str = Field(default="production", description="development or production")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # Delivery
    STORE_KEY: str = Field(default="store", description="Key of the store settings record")
    SELECTION_TTL_SECONDS: int = Field(default=30 * 24 * 3600, description="How long a remembered delivery location lives")
    FEE_ROUNDING_UNIT: Decimal = Field(default=Decimal("1"), description="Surcharge is rounded up to a multiple of this amount")
    PINCODE_RATE_LIMIT: str = Field(default="30/minute", description="slowapi limit for public pincode resolution")

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("development", "production"):
            raise ValueError("ENVIRONMENT must be 'development' or 'production'")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("STORE_KEY")
    @classmethod
    def validate_store_key(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 64:
            raise ValueError("STORE_KEY must be 1-64 characters")
        return v

    @field_validator("SELECTION_TTL_SECONDS")
    @classmethod
    def validate_selection_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("SELECTION_TTL_SECONDS must be positive")
        return v

    @field_validator("FEE_ROUNDING_UNIT")
    @classmethod
    def validate_rounding_unit(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v <= 0:
            raise ValueError("FEE_ROUNDING_UNIT must be a positive amount, e.g. 1 or 0.01")
        return v

    def validate_production_settings(self) -> list[str]:
        """Missing settings that production cannot run without."""
        errors = []
        if self.ENVIRONMENT == "production":
            if not self.ADMIN_SECRET:
                errors.append("ADMIN_SECRET is required in production")
            if not self.ALLOWED_ORIGINS:
                errors.append("ALLOWED_ORIGINS is required in production")
        return errors

    @property
    def db_url(self) -> str:
        host = _resolve_db_host(self.DB_HOST)
        password = quote_plus(self.DB_PASSWORD)
        return f"postgresql+asyncpg://{self.DB_USER}:{password}@{host}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def redis_url(self) -> str:
        auth = f":{quote_plus(self.REDIS_PASSWORD)}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def allowed_origins_list(self) -> list[str]:
        if not self.ALLOWED_ORIGINS:
            return []
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Load and validate settings on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
        errors = _settings.validate_production_settings()
        if errors:
            error_msg = "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)
    return _settings
