"""
mrbeans/core/auth.py — Admin authentication & request gating

Single role, single shared secret. A successful login returns an HS256 JWT
carrying {"role": "admin"} that expires after seven days. Tokens are
stateless: there is no revocation list, validity is signature + expiry only.
"""
from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from fastapi import Header, Request
from slowapi.util import get_remote_address

from mrbeans.config import Settings
from mrbeans.core.errors import ApiError, unauthorized
from mrbeans.core.logging import log_auth_event

JWT_ALGORITHM = "HS256"
TOKEN_TTL = timedelta(days=7)
ADMIN_ROLE = "admin"

WRONG_PASSWORD_MESSAGE = "Pogrešna lozinka"
MISSING_TOKEN_MESSAGE = "Neautorizovan pristup - token nije prosleđen"
INVALID_TOKEN_MESSAGE = "Neautorizovan pristup - nevažeći token"


@dataclass(frozen=True)
class LoginResult:
    success: bool
    token: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class TokenVerification:
    valid: bool
    decoded: Optional[dict[str, Any]] = None
    error: Optional[str] = None


class AuthService:
    def __init__(self, admin_password: str, jwt_secret: str, token_ttl: timedelta = TOKEN_TTL):
        self._admin_password = admin_password.encode("utf-8")
        self._jwt_secret = jwt_secret
        self.token_ttl = token_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthService":
        return cls(settings.effective_admin_password, settings.effective_jwt_secret)

    def login(self, password: Any) -> LoginResult:
        """Exact match against the admin secret; issues a token on success."""
        if not isinstance(password, str):
            return LoginResult(success=False, message=WRONG_PASSWORD_MESSAGE)
        if not secrets.compare_digest(password.encode("utf-8"), self._admin_password):
            return LoginResult(success=False, message=WRONG_PASSWORD_MESSAGE)
        return LoginResult(success=True, token=self.issue_token())

    def issue_token(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "role": ADMIN_ROLE,
            "iat": now,
            "exp": now + self.token_ttl,
        }
        return jwt.encode(payload, self._jwt_secret, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: Any) -> TokenVerification:
        """Never raises; every failure comes back as valid=False."""
        if not isinstance(token, str) or not token:
            return TokenVerification(valid=False, error="Token must be a non-empty string")
        try:
            decoded = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            return TokenVerification(valid=False, error="Token has expired")
        except jwt.PyJWTError as exc:
            return TokenVerification(valid=False, error=str(exc) or type(exc).__name__)
        return TokenVerification(valid=True, decoded=decoded)


# ──────────────────────────────────────────────────────────────────────────────
# FastAPI dependencies
# ──────────────────────────────────────────────────────────────────────────────

def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[7:]  # Strip "Bearer "


async def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> dict[str, Any]:
    """
    Gate for mutating routes.
    NoToken → 401, TokenPresent + invalid → 401, valid → claims on request.state.user.
    """
    client = get_remote_address(request)
    token = extract_bearer_token(authorization)
    if token is None:
        log_auth_event("verify", False, client, reason="missing bearer token")
        raise ApiError(unauthorized(MISSING_TOKEN_MESSAGE))

    result = get_auth_service(request).verify_token(token)
    if not result.valid:
        log_auth_event("verify", False, client, reason=result.error)
        raise ApiError(unauthorized(INVALID_TOKEN_MESSAGE))

    request.state.user = result.decoded
    return result.decoded
