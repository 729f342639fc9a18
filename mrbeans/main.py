"""
mrbeans/main.py — FastAPI application entry point
Request pipeline (outermost first): security headers → CORS → body size cap →
error guard → general rate limit → per-route limiter + admin check → body validation → handler.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request, Response
from fastapi.staticfiles import StaticFiles
from loguru import logger

from mrbeans.config import Settings, get_settings
from mrbeans.core.auth import AuthService
from mrbeans.core.body_limit import BodySizeLimitMiddleware
from mrbeans.core.cors import CORSPolicy, PolicyCORSMiddleware
from mrbeans.core.errors import guard_unexpected_errors, register_exception_handlers
from mrbeans.core.logging import setup_logging
from mrbeans.core.rate_limiter import (
    RateLimiters,
    RateLimitExceededError,
    rate_limit,
    rate_limit_exceeded_handler,
)
from mrbeans.core.security_headers import apply_security_headers, build_security_headers
from mrbeans.routers import auth, catalog, coffees, media
from mrbeans.services.images import ImageStore
from mrbeans.services.market_prices import MarketPriceService
from mrbeans.storage.json_store import JsonStore

VERSION = "1.0.0"


# ──────────────────────────────────────────────────────────────────────────────
# Application Lifespan
# ──────────────────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: logging, seed missing data files, create image folders."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    logger.info(f"Mr. Beans API starting up ({settings.environment})...")

    created = app.state.store.ensure_defaults()
    if created:
        logger.info(f"Created empty data files: {', '.join(created)}")
    app.state.images.ensure_dirs()

    logger.info(f"Data folder: {settings.data_dir}")
    logger.info(f"Images folder: {settings.images_dir}")
    policy: CORSPolicy = app.state.cors_policy
    if settings.is_production:
        logger.info(f"CORS: production mode, allowed origins: {', '.join(policy.allowed_origins) or '(none)'}")
    else:
        logger.info("CORS: development mode")

    logger.info("Startup complete.")
    yield
    logger.info("Shutting down Mr. Beans API.")


# ──────────────────────────────────────────────────────────────────────────────
# FastAPI App
# ──────────────────────────────────────────────────────────────────────────────

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Mr. Beans",
        description="Retail coffee price tracker: coffees, brands, stores, countries and price history.",
        version=VERSION,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        openapi_url=None if settings.is_production else "/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.auth_service = AuthService.from_settings(settings)
    app.state.rate_limiters = RateLimiters.from_settings(settings)
    app.state.cors_policy = CORSPolicy.from_settings(settings)
    app.state.store = JsonStore(settings.data_dir)
    app.state.images = ImageStore(settings.images_dir)
    app.state.market_prices = MarketPriceService(
        cache_seconds=settings.market_cache_seconds,
        timeout=settings.market_request_timeout,
    )

    # ── Error envelopes ───────────────────────────────────────────────────────
    register_exception_handlers(app)
    app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_handler)

    # ── Middleware (last added runs first) ────────────────────────────────────
    app.middleware("http")(guard_unexpected_errors)
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(PolicyCORSMiddleware, policy=app.state.cors_policy)

    security_headers = build_security_headers(settings)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next) -> Response:
        response = await call_next(request)
        return apply_security_headers(response, security_headers)

    # ── Routers ───────────────────────────────────────────────────────────────
    general = [Depends(rate_limit("general"))]
    for module in (auth, coffees, catalog, media):
        app.include_router(module.router, prefix="/api", dependencies=general)

    @app.get("/api/health", tags=["health"], dependencies=general)
    async def health():
        return {"status": "ok", "version": VERSION}

    # ── Uploaded images ───────────────────────────────────────────────────────
    app.mount("/images", StaticFiles(directory=settings.images_dir, check_dir=False), name="images")

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(app, host="0.0.0.0", port=settings.port, server_header=False)


if __name__ == "__main__":
    run()
