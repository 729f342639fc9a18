"""
mrbeans/config.py — Pydantic BaseSettings configuration
Built once at startup and injected into the app factory; request handling
never reads os.environ directly.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Values shipped in .env templates and docs; never acceptable as production secrets.
PLACEHOLDER_SECRETS = frozenset({
    "admin123",
    "your-secret-key-change-this-in-production",
    "change-me-immediately",
    "change-me",
    "changeme",
    "your-api-key-here",
    "secret",
    "password",
})

DEV_ADMIN_PASSWORD = "admin123"
DEV_JWT_SECRET = "your-secret-key-change-this-in-production"


class ConfigurationError(RuntimeError):
    """Raised at startup when the environment is unsafe to serve from."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ── Application ────────────────────────────────────────────────────────────
    environment: str = Field(
        "development",
        validation_alias=AliasChoices("node_env", "environment"),
    )
    log_level: str = "INFO"
    port: int = 3001

    # ── Authentication ────────────────────────────────────────────────────────
    admin_password: Optional[str] = None
    jwt_secret: Optional[str] = None

    # ── CORS: production allow-list, comma-separated ─────────────────────────
    allowed_origins: str = ""

    # ── Storage ───────────────────────────────────────────────────────────────
    data_dir: Path = Path("data")
    images_dir: Path = Path("public/images")
    max_body_bytes: int = 10 * 1024 * 1024

    # ── Rate limiting ─────────────────────────────────────────────────────────
    # Any `limits` storage URI: memory://, redis://host:6379, memcached://...
    rate_limit_storage_uri: str = "memory://"
    rate_limit_general: str = "100/15 minutes"
    rate_limit_general_development: str = "1000/15 minutes"
    rate_limit_login: str = "5/15 minutes"
    rate_limit_write: str = "10/minute"
    rate_limit_upload: str = "5/10 minutes"

    # ── Market prices ─────────────────────────────────────────────────────────
    market_cache_seconds: int = 300
    market_request_timeout: float = 10.0

    @field_validator("environment")
    @classmethod
    def validate_env(cls, v: str) -> str:
        v = v.strip().lower()
        allowed = {"development", "production", "testing"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @model_validator(mode="after")
    def check_secrets(self) -> "Settings":
        """
        Fail fast in production on missing or placeholder secrets.
        Outside production the fixed development fallbacks are used instead.
        """
        unsafe = [
            env_name
            for env_name, value in (
                ("ADMIN_PASSWORD", self.admin_password),
                ("JWT_SECRET", self.jwt_secret),
            )
            if not value or value in PLACEHOLDER_SECRETS
        ]
        if not unsafe:
            return self
        if self.is_production:
            msg = f"Missing or placeholder secrets in production: {', '.join(unsafe)}"
            logger.critical(msg)
            raise ConfigurationError(msg)
        logger.warning(
            f"Using development fallback for {', '.join(unsafe)}. "
            "Set real values before deploying."
        )
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def effective_admin_password(self) -> str:
        return self.admin_password or DEV_ADMIN_PASSWORD

    @property
    def effective_jwt_secret(self) -> str:
        return self.jwt_secret or DEV_JWT_SECRET

    @property
    def allowed_origin_list(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def general_rate_limit(self) -> str:
        if self.is_development:
            return self.rate_limit_general_development
        return self.rate_limit_general


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance. Use this everywhere."""
    return Settings()
