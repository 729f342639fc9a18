"""
mrbeans/core/cors.py — CORS allow-list policy

Non-production: a fixed list of local dev-server origins.
Production: ALLOWED_ORIGINS (comma-separated); unset means no cross-origin
browser access at all.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp

from mrbeans.config import Settings
from mrbeans.core.logging import log_cors_rejection

DEVELOPMENT_ORIGINS = (
    "http://localhost:5173",  # Vite default port
    "http://localhost:3000",
    "http://localhost:5174",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
)

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
ALLOWED_HEADERS = ("Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin")
EXPOSED_HEADERS = ("RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset")
PREFLIGHT_MAX_AGE = 86400  # 24h


@dataclass(frozen=True)
class CORSPolicy:
    allowed_origins: tuple[str, ...]

    @classmethod
    def from_settings(cls, settings: Settings) -> "CORSPolicy":
        if not settings.is_production:
            return cls(DEVELOPMENT_ORIGINS)
        origins = tuple(settings.allowed_origin_list)
        if not origins:
            logger.warning("ALLOWED_ORIGINS is not set in production. Cross-origin requests will be denied.")
        return cls(origins)

    def is_allowed(self, origin: Optional[str]) -> bool:
        """
        No Origin header means same-origin or non-browser (curl, server-to-server)
        and is always allowed. Anything else must be on the allow-list.
        """
        if not origin:
            return True
        if origin in self.allowed_origins:
            return True
        log_cors_rejection(origin, list(self.allowed_origins))
        return False


class PolicyCORSMiddleware(CORSMiddleware):
    """Starlette's CORS handling with the origin decision delegated to a CORSPolicy."""

    def __init__(self, app: ASGIApp, policy: CORSPolicy) -> None:
        super().__init__(
            app,
            allow_origins=policy.allowed_origins,
            allow_methods=ALLOWED_METHODS,
            allow_headers=ALLOWED_HEADERS,
            allow_credentials=True,
            expose_headers=EXPOSED_HEADERS,
            max_age=PREFLIGHT_MAX_AGE,
        )
        self.policy = policy

    def is_allowed_origin(self, origin: str) -> bool:
        return self.policy.is_allowed(origin)
