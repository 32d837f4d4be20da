"""
Arroyyan Backend — Application Configuration
==============================================

What:  Centralized configuration using Pydantic Settings.
Why:   Type-safe environment variable loading, validated once at import.
How:   Values come from the environment (or .env); the module exposes a
       singleton `settings` object.
Who:   Imported by every module that needs configuration values.

Groups:
    Database      DATABASE_URL, DB_POOL_*, DB_AUTO_CREATE
    Auth          JWT_SECRET, JWT_ALGORITHM, token lifetimes, BCRYPT_ROUNDS
    Server        CORS_ORIGINS, BACKEND_HOST, PORT, ENVIRONMENT, LOG_LEVEL
    Rate limit    RATE_LIMIT_REQUESTS per RATE_LIMIT_WINDOW on credential endpoints
    Inventory     LOW_STOCK_THRESHOLD, DISPLAY_TARGET_STOCK, price floors
    Pagination    DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEV_JWT_SECRET = "default-dev-secret-change-in-production-min-32-chars"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults target local development on SQLite. Production deployments
    must at least override JWT_SECRET and set ENVIRONMENT=production.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # SQLite via aiosqlite by default; postgresql+asyncpg URLs also work.
    database_url: str = Field(
        default="sqlite+aiosqlite:///./arroyyan.db",
        description="Async SQLAlchemy connection URL",
    )

    # Pool sizing only applies to server databases (ignored for SQLite).
    db_pool_size: int = Field(default=20, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # Create missing tables on startup. Alembic is the source of truth in production.
    db_auto_create: bool = Field(default=True)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    # ── Authentication ────────────────────────────────────────────────────
    jwt_secret: str = Field(default=DEV_JWT_SECRET, min_length=16)
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=15, ge=1, le=1440)
    refresh_token_expire_days: int = Field(default=7, ge=1, le=90)

    # The refresh cookie is always HttpOnly + SameSite=Strict; Secure can be
    # switched off for plain-http local development.
    refresh_cookie_name: str = Field(default="refreshToken")
    refresh_cookie_secure: bool = Field(default=True)

    # bcrypt cost factor. 4 is the library minimum (used by the test suite).
    bcrypt_rounds: int = Field(default=10, ge=4, le=16)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000,http://localhost:5173")

    @property
    def cors_origins_list(self) -> List[str]:
        """Comma-separated CORS_ORIGINS as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    environment: str = Field(default="development")

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid = {"development", "test", "production"}
        lower = v.lower()
        if lower not in valid:
            raise ValueError(f"Invalid environment '{v}'. Must be one of: {valid}")
        return lower

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # Sliding window per client IP, applied to login and register only.
    # Default: 5 attempts per 15 minutes.
    rate_limit_requests: int = Field(default=5, ge=1, le=100000)
    rate_limit_window: int = Field(default=900, ge=1, le=86400)  # seconds

    # ── Inventory Rules ───────────────────────────────────────────────────
    low_stock_threshold: int = Field(default=10, ge=1)
    display_target_stock: int = Field(default=20, ge=1)
    min_selling_price: float = Field(default=1000, ge=0)
    min_purchase_price: float = Field(default=1000, ge=0)

    # ── Pagination ────────────────────────────────────────────────────────
    default_page_size: int = Field(default=20, ge=1, le=100)
    max_page_size: int = Field(default=100, ge=1, le=1000)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def validate_required_for_production(self) -> None:
        """
        Collects configuration problems that are fatal in production and
        raises a single ValueError listing all of them.
        """
        if self.environment != "production":
            return

        errors = []
        if self.jwt_secret == DEV_JWT_SECRET:
            errors.append("JWT_SECRET still uses the development default.")
        if len(self.jwt_secret) < 32:
            errors.append("JWT_SECRET must be at least 32 characters in production.")
        if not self.refresh_cookie_secure:
            errors.append("REFRESH_COOKIE_SECURE must be enabled in production.")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


settings = Settings()
