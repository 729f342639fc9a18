"""
tests/test_security_headers.py — Static header set on every response
"""
from __future__ import annotations

from mrbeans.config import Settings
from mrbeans.core.security_headers import build_csp, build_security_headers
from tests.conftest import ADMIN_PASSWORD, JWT_SECRET

EXPECTED = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-XSS-Protection": "0",
    "Cross-Origin-Opener-Policy": "same-origin",
    "X-Permitted-Cross-Domain-Policies": "none",
}


def _assert_security_headers(response):
    for name, value in EXPECTED.items():
        assert response.headers[name] == value, name
    assert "Content-Security-Policy" in response.headers
    assert "X-Powered-By" not in response.headers
    assert "Server" not in response.headers


def test_headers_on_success(client):
    _assert_security_headers(client.get("/api/coffees"))


def test_headers_on_unknown_route(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    _assert_security_headers(response)


def test_headers_on_client_errors(client):
    _assert_security_headers(client.post("/api/coffees", json={}))
    _assert_security_headers(client.post("/api/auth/login", json={"password": "x"}))


def test_headers_on_internal_error(app, client):
    def explode(filename):
        raise RuntimeError("disk on fire")

    app.state.store.read = explode
    response = client.get("/api/coffees")
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_ERROR"
    assert "disk on fire" not in response.text
    _assert_security_headers(response)


def test_headers_on_rate_limited(client):
    for _ in range(6):
        response = client.post("/api/auth/login", json={"password": "x"})
    assert response.status_code == 429
    _assert_security_headers(response)


def test_csp_includes_market_hosts_and_fonts():
    csp = build_csp(Settings(environment="testing", _env_file=None))
    assert "default-src 'self'" in csp
    assert "https://query1.finance.yahoo.com" in csp
    assert "https://api.investing.com" in csp
    assert "https://fonts.googleapis.com" in csp
    assert "https://fonts.gstatic.com" in csp
    assert "frame-ancestors 'none'" in csp


def test_csp_development_allows_local_dev_server():
    csp = build_csp(Settings(environment="development", _env_file=None))
    assert "ws://localhost:5173" in csp
    assert "upgrade-insecure-requests" not in csp


def test_csp_production_upgrades_insecure_requests():
    settings = Settings(environment="production", admin_password=ADMIN_PASSWORD, jwt_secret=JWT_SECRET, _env_file=None)
    csp = build_security_headers(settings)["Content-Security-Policy"]
    assert "upgrade-insecure-requests" in csp
    assert "localhost" not in csp
