"""
tests/test_login_limit.py — Brute-force protection on /api/auth/login
Only failed attempts count; once the window is exhausted even the correct
password is refused until it rolls over.
"""
from __future__ import annotations

from mrbeans.core.rate_limiter import RATE_LIMIT_MESSAGES
from tests.conftest import ADMIN_PASSWORD


def _login(client, password):
    return client.post("/api/auth/login", json={"password": password})


def test_sixth_attempt_after_five_failures_is_429(client):
    for _ in range(5):
        assert _login(client, "wrong").status_code == 401

    response = _login(client, ADMIN_PASSWORD)
    assert response.status_code == 429
    assert response.json() == RATE_LIMIT_MESSAGES["login"]
    assert response.headers["RateLimit-Limit"] == "5"
    assert response.headers["RateLimit-Remaining"] == "0"
    assert "Retry-After" in response.headers


def test_successful_logins_do_not_count(client):
    for _ in range(8):
        assert _login(client, ADMIN_PASSWORD).status_code == 200
    for _ in range(5):
        assert _login(client, "wrong").status_code == 401
    assert _login(client, "wrong").status_code == 429


def test_failed_attempt_reports_remaining(client):
    response = _login(client, "wrong")
    assert response.headers["RateLimit-Remaining"] == "4"
    response = _login(client, "wrong")
    assert response.headers["RateLimit-Remaining"] == "3"


def test_window_reset_restores_access(app, client):
    for _ in range(5):
        _login(client, "wrong")
    assert _login(client, ADMIN_PASSWORD).status_code == 429

    app.state.rate_limiters["login"].reset("testclient")
    assert _login(client, ADMIN_PASSWORD).status_code == 200


def test_login_limit_does_not_block_other_routes(client):
    for _ in range(6):
        _login(client, "wrong")
    assert client.get("/api/coffees").status_code == 200


def test_malformed_password_counts_as_failed_attempt(client):
    for body in ({"password": 123}, {"password": None}, {"password": ["x"]}, {}):
        response = client.post("/api/auth/login", json=body)
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Pogrešna lozinka"

    assert client.post("/api/auth/login").status_code == 401
    assert _login(client, ADMIN_PASSWORD).status_code == 429
