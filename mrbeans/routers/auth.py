"""
mrbeans/routers/auth.py — Admin login and token check
Endpoints: POST /api/auth/login, GET /api/auth/verify
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response
from slowapi.util import get_remote_address

from mrbeans.core.auth import AuthService, extract_bearer_token, get_auth_service
from mrbeans.core.errors import ApiError, unauthorized
from mrbeans.core.logging import log_auth_event, log_rate_limited
from mrbeans.core.rate_limiter import RateLimitExceededError, get_rate_limiters
from mrbeans.models import LoginRequest

router = APIRouter(prefix="/auth", tags=["auth"])


# ──────────────────────────────────────────────────────────────────────────────
# POST /api/auth/login
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/login")
async def login(
    request: Request,
    response: Response,
    body: Optional[LoginRequest] = None,
    auth: AuthService = Depends(get_auth_service),
) -> dict:
    """
    Exchange the admin password for a 7-day token.
    Only failed attempts count against the login limiter.
    """
    limiter = get_rate_limiters(request)["login"]
    client = get_remote_address(request)

    status = limiter.peek(client)
    if not status.allowed:
        log_rate_limited("login", client, status.limit, status.reset_after)
        raise RateLimitExceededError(limiter, status)

    result = auth.login(body.password if body else None)
    if not result.success:
        status = limiter.hit(client)
        log_auth_event("login", False, client, reason="wrong password")
        raise ApiError(unauthorized(result.message), headers=status.headers())

    log_auth_event("login", True, client)
    response.headers.update(limiter.peek(client).headers())
    return {"success": True, "token": result.token}


# ──────────────────────────────────────────────────────────────────────────────
# GET /api/auth/verify
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/verify")
async def verify(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    auth: AuthService = Depends(get_auth_service),
) -> dict:
    token = extract_bearer_token(authorization)
    if token is None:
        return {"valid": False}
    return {"valid": auth.verify_token(token).valid}
