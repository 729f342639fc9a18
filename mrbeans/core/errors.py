"""
mrbeans/core/errors.py — Response envelopes, error codes and exception handlers

Every API response body is one of two shapes:

    {"success": true,  "data": ..., "message": "..."?}
    {"success": false, "error": {"message", "statusCode", "timestamp", "code"?, "details"?}}

`error.statusCode` is always the HTTP status of the response carrying it:
handlers derive the transport status from the envelope, never the other way
around. Messages are user-facing (Croatian); `code` is the stable
programmatic discriminator.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mrbeans.core.logging import log_error


class ErrorCode(str, Enum):
    # 400
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    # 401
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"
    # 403, reserved: only one role exists today
    FORBIDDEN = "FORBIDDEN"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    # 404
    NOT_FOUND = "NOT_FOUND"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    # 409
    CONFLICT = "CONFLICT"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    # 429
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    # 500
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    FILE_SYSTEM_ERROR = "FILE_SYSTEM_ERROR"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_error_response(
    message: str,
    status_code: int = 500,
    details: Any = None,
    code: Optional[str] = None,
) -> dict[str, Any]:
    """Build an error envelope. Scalar details are wrapped in a list."""
    error: dict[str, Any] = {
        "message": message,
        "statusCode": status_code,
        "timestamp": _timestamp(),
    }
    if code:
        error["code"] = code.value if isinstance(code, ErrorCode) else code
    if details:
        error["details"] = details if isinstance(details, (list, dict)) else [details]
    return {"success": False, "error": error}


def create_success_response(data: Any, message: Optional[str] = None) -> dict[str, Any]:
    response: dict[str, Any] = {"success": True, "data": data}
    if message:
        response["message"] = message
    return response


# ──────────────────────────────────────────────────────────────────────────────
# Helpers for the common cases
# ──────────────────────────────────────────────────────────────────────────────

def validation_error(details: Any) -> dict[str, Any]:
    return create_error_response("Validacijska greška", 400, details, ErrorCode.VALIDATION_ERROR)


def unauthorized(message: str = "Neautorizovan pristup") -> dict[str, Any]:
    return create_error_response(message, 401, None, ErrorCode.UNAUTHORIZED)


def forbidden(message: str = "Pristup zabranjen") -> dict[str, Any]:
    return create_error_response(message, 403, None, ErrorCode.FORBIDDEN)


def not_found(resource: str = "Resurs") -> dict[str, Any]:
    return create_error_response(f"{resource} nije pronađen", 404, None, ErrorCode.NOT_FOUND)


def conflict(message: str = "Konflikt podataka") -> dict[str, Any]:
    return create_error_response(message, 409, None, ErrorCode.CONFLICT)


def too_many_requests(message: str = "Previše zahtjeva") -> dict[str, Any]:
    return create_error_response(message, 429, None, ErrorCode.TOO_MANY_REQUESTS)


def internal_error(message: str = "Interna greška servera") -> dict[str, Any]:
    return create_error_response(message, 500, None, ErrorCode.INTERNAL_ERROR)


_STATUS_CODES = {
    400: ErrorCode.INVALID_INPUT,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    429: ErrorCode.TOO_MANY_REQUESTS,
}

_STATUS_MESSAGES = {
    404: "Ruta nije pronađena",
    405: "Metoda nije dozvoljena",
}


# ──────────────────────────────────────────────────────────────────────────────
# Exception carrying an envelope to the handlers below
# ──────────────────────────────────────────────────────────────────────────────

class ApiError(Exception):
    """Raised by routes and dependencies; rendered as its envelope."""

    def __init__(self, envelope: dict[str, Any], headers: Optional[dict[str, str]] = None):
        super().__init__(envelope["error"]["message"])
        self.envelope = envelope
        self.headers = headers or {}

    @property
    def status_code(self) -> int:
        return self.envelope["error"]["statusCode"]

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content=self.envelope,
            headers=self.headers,
        )


def _pydantic_details(exc: RequestValidationError) -> list[dict[str, str]]:
    details = []
    for err in exc.errors():
        # Drop the "body"/"query" prefix FastAPI adds to locations
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "header")]
        details.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return details


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return exc.to_response()


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = _STATUS_MESSAGES.get(exc.status_code, str(exc.detail))
    envelope = create_error_response(message, exc.status_code, None, _STATUS_CODES.get(exc.status_code))
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope,
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    envelope = validation_error(_pydantic_details(exc))
    return JSONResponse(status_code=400, content=envelope)


async def guard_unexpected_errors(request: Request, call_next):
    """
    Map anything the route layer did not handle to a generic 500 envelope.
    Stack traces go to the log, never to the client.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        log_error("http", f"{request.method} {request.url.path}", exc)
        return JSONResponse(status_code=500, content=internal_error())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
