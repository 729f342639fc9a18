"""
mrbeans/core/rate_limiter.py — Fixed-window rate limiting per endpoint category

Four independent limiters (general, login, write, upload) keyed by client
address. Counting is delegated to the `limits` fixed-window strategy (the
engine underneath slowapi); the counter storage is chosen by URI so a
multi-instance deployment can point every process at one shared backend.
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from limits import RateLimitItem, parse
from limits.storage import Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter
from slowapi.util import get_remote_address

from mrbeans.config import Settings
from mrbeans.core.logging import log_rate_limited

# 429 bodies, one per category. Window sizes live in Settings.rate_limit_*
RATE_LIMIT_MESSAGES = {
    "general": {
        "error": "Previše zahtjeva",
        "message": "Previše zahtjeva s ove IP adrese, pokušajte ponovno za 15 minuta.",
    },
    "login": {
        "error": "Previše pokušaja prijave",
        "message": "Previše pokušaja prijave, pokušajte ponovno za 15 minuta.",
    },
    "write": {
        "error": "Previše zahtjeva",
        "message": "Previše zahtjeva za promjenu podataka, pokušajte ponovno za 1 minutu.",
    },
    "upload": {
        "error": "Previše uploada",
        "message": "Previše uploada slika, pokušajte ponovno za 10 minuta.",
    },
}

LOOPBACK_ADDRESSES = frozenset({"127.0.0.1", "::1", "::ffff:127.0.0.1", "localhost"})


@dataclass(frozen=True)
class RateLimitStatus:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # seconds until the window rolls over

    def headers(self) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_after),
        }


class CategoryLimiter:
    """One fixed-window counter family, e.g. all "write" requests."""

    def __init__(
        self,
        name: str,
        limit: str | RateLimitItem,
        strategy: FixedWindowRateLimiter,
        message: Optional[dict[str, str]] = None,
        skip: Optional[Callable[[str], bool]] = None,
    ):
        self.name = name
        self.item = parse(limit) if isinstance(limit, str) else limit
        self.message = message or RATE_LIMIT_MESSAGES.get(name, RATE_LIMIT_MESSAGES["general"])
        self._strategy = strategy
        self._skip = skip

    @property
    def limit(self) -> int:
        return self.item.amount

    def should_skip(self, key: str) -> bool:
        return bool(self._skip and self._skip(key))

    def _status(self, key: str, allowed: bool) -> RateLimitStatus:
        stats = self._strategy.get_window_stats(self.item, self.name, key)
        reset_after = max(0, math.ceil(stats.reset_time - time.time()))
        return RateLimitStatus(
            allowed=allowed,
            limit=self.item.amount,
            remaining=max(0, stats.remaining),
            reset_after=reset_after,
        )

    def hit(self, key: str) -> RateLimitStatus:
        """Count one request; allowed=False once the window is over its max."""
        allowed = self._strategy.hit(self.item, self.name, key)
        return self._status(key, allowed)

    def peek(self, key: str) -> RateLimitStatus:
        """Check without counting: would one more request be admitted?"""
        allowed = self._strategy.test(self.item, self.name, key)
        return self._status(key, allowed)

    def reset(self, key: str) -> None:
        self._strategy.clear(self.item, self.name, key)


class RateLimiters:
    """Registry of the category limiters sharing one counter storage."""

    def __init__(self, limiters: dict[str, CategoryLimiter]):
        self._limiters = limiters

    def __getitem__(self, name: str) -> CategoryLimiter:
        return self._limiters[name]

    def __contains__(self, name: str) -> bool:
        return name in self._limiters

    @classmethod
    def from_settings(cls, settings: Settings, storage: Optional[Storage] = None) -> "RateLimiters":
        storage = storage or storage_from_string(settings.rate_limit_storage_uri)
        strategy = FixedWindowRateLimiter(storage)
        skip_loopback = (lambda key: key in LOOPBACK_ADDRESSES) if settings.is_development else None
        limits = {
            "general": settings.general_rate_limit,
            "login": settings.rate_limit_login,
            "write": settings.rate_limit_write,
            "upload": settings.rate_limit_upload,
        }
        return cls({
            name: CategoryLimiter(
                name,
                limit,
                strategy,
                skip=skip_loopback if name == "general" else None,
            )
            for name, limit in limits.items()
        })


class RateLimitExceededError(Exception):
    def __init__(self, limiter: CategoryLimiter, status: RateLimitStatus):
        super().__init__(f"{limiter.name} rate limit exceeded")
        self.limiter = limiter
        self.status = status


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
    headers = exc.status.headers()
    headers["Retry-After"] = str(exc.status.reset_after)
    return JSONResponse(status_code=429, content=exc.limiter.message, headers=headers)


def get_rate_limiters(request: Request) -> RateLimiters:
    return request.app.state.rate_limiters


def rate_limit(category: str):
    """
    FastAPI dependency factory: counts the request against `category`
    and rejects with 429 once the client's window is exhausted.
    """

    async def _check(request: Request, response: Response) -> None:
        limiter = get_rate_limiters(request)[category]
        key = get_remote_address(request)
        if limiter.should_skip(key):
            return
        status = limiter.hit(key)
        if not status.allowed:
            log_rate_limited(category, key, status.limit, status.reset_after)
            raise RateLimitExceededError(limiter, status)
        response.headers.update(status.headers())

    return _check
