"""Pydantic Settings configuration models.

3-tier config hierarchy (lowest to highest priority):
1. Pydantic defaults (in code below)
2. .env file (loaded by Pydantic Settings)
3. Environment variables (e.g., ORDERDESK_AUTH__JWT_SECRET=...)
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
VALID_LOG_FORMATS = frozenset({"console", "json"})
VALID_JWT_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})


class WebConfig(BaseModel):
    """Web server configuration."""

    host: str = "127.0.0.1"
    port: int = 3001
    api_prefix: str = "/api"
    cors_origins: list[str] = Field(default=["*"])

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        v = v.rstrip("/")
        if v and not v.startswith("/"):
            raise ValueError(f"api_prefix must start with '/', got {v}")
        return v


class AuthConfig(BaseModel):
    """Bearer token and password hashing parameters."""

    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    token_ttl_hours: int = Field(default=24, ge=1, le=168)
    bcrypt_rounds: int = Field(default=12, ge=4, le=16)

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        v = v.upper()
        if v not in VALID_JWT_ALGORITHMS:
            raise ValueError(
                f"jwt_algorithm must be one of {sorted(VALID_JWT_ALGORITHMS)}, got {v}"
            )
        return v


class OrdersConfig(BaseModel):
    """Order lifecycle parameters."""

    # Reject admin status changes outside the transition table
    enforce_transitions: bool = False
    max_update_attempts: int = Field(default=3, ge=1, le=10)


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Env var examples:
        ORDERDESK_LOG_LEVEL=DEBUG
        ORDERDESK_AUTH__JWT_SECRET=your-secret
        ORDERDESK_ORDERS__ENFORCE_TRANSITIONS=true
        ORDERDESK_WEB__CORS_ORIGINS='["http://localhost:3000"]'
    """

    model_config = SettingsConfigDict(
        env_prefix="ORDERDESK_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    log_format: str = "console"
    web: WebConfig = WebConfig()
    auth: AuthConfig = AuthConfig()
    orders: OrdersConfig = OrdersConfig()
    db_path: str = "data/orderdesk.db"
    db_busy_timeout_ms: int = 5000

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {sorted(VALID_LOG_LEVELS)}, got {v}"
            )
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_LOG_FORMATS:
            raise ValueError(
                f"log_format must be one of {sorted(VALID_LOG_FORMATS)}, got {v}"
            )
        return v

    @property
    def database_url(self) -> str:
        """Async SQLAlchemy URL for the configured SQLite file."""
        return f"sqlite+aiosqlite:///{self.db_path}"
