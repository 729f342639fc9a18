"""
mrbeans/core/security_headers.py — Static security response headers
Same header set on every response; only the CSP differs between
development and production.
"""
from __future__ import annotations

from starlette.responses import Response

from mrbeans.config import Settings

MARKET_DATA_HOSTS = (
    "https://query1.finance.yahoo.com",
    "https://api.investing.com",
)

# Headers that identify the server stack
SUPPRESSED_HEADERS = ("x-powered-by", "server")


def build_csp(settings: Settings) -> str:
    connect_src = ["'self'", *MARKET_DATA_HOSTS]
    if settings.is_development:
        # Vite dev server + HMR socket
        connect_src += ["http://localhost:3001", "ws://localhost:5173"]

    directives: dict[str, list[str]] = {
        "default-src": ["'self'"],
        "base-uri": ["'self'"],
        "form-action": ["'self'"],
        "frame-ancestors": ["'none'"],
        "style-src": ["'self'", "'unsafe-inline'", "https://fonts.googleapis.com"],
        "font-src": ["'self'", "https://fonts.gstatic.com", "data:"],
        "script-src": ["'self'", "'unsafe-inline'", "'unsafe-eval'"],
        "script-src-attr": ["'none'"],
        "img-src": ["'self'", "data:", "blob:", "https:", "http:"],
        "connect-src": connect_src,
        "frame-src": ["'none'"],
        "object-src": ["'none'"],
    }
    if settings.is_production:
        directives["upgrade-insecure-requests"] = []

    return "; ".join(
        " ".join([name, *values]) for name, values in directives.items()
    )


def build_security_headers(settings: Settings) -> dict[str, str]:
    return {
        "Content-Security-Policy": build_csp(settings),
        "Cross-Origin-Opener-Policy": "same-origin",
        "Cross-Origin-Resource-Policy": "cross-origin",
        "Origin-Agent-Cluster": "?1",
        "Permissions-Policy": "camera=(), microphone=(), geolocation=(), payment=()",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
        "X-Content-Type-Options": "nosniff",
        "X-DNS-Prefetch-Control": "on",
        "X-Download-Options": "noopen",
        "X-Frame-Options": "DENY",
        "X-Permitted-Cross-Domain-Policies": "none",
        # Legacy XSS auditors do more harm than good; explicitly off.
        "X-XSS-Protection": "0",
    }


def apply_security_headers(response: Response, headers: dict[str, str]) -> Response:
    for name in SUPPRESSED_HEADERS:
        if name in response.headers:
            del response.headers[name]
    response.headers.update(headers)
    return response
