"""
tests/test_config.py — Settings loading and the production secrets gate
"""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from mrbeans.config import DEV_ADMIN_PASSWORD, DEV_JWT_SECRET, ConfigurationError, Settings


def test_production_requires_secrets():
    with pytest.raises(ConfigurationError) as exc_info:
        Settings(environment="production", _env_file=None)
    assert "ADMIN_PASSWORD" in str(exc_info.value)
    assert "JWT_SECRET" in str(exc_info.value)


@pytest.mark.parametrize("password,secret", [
    ("admin123", "a-real-signing-secret-value"),
    ("a-real-admin-password", "your-secret-key-change-this-in-production"),
])
def test_production_rejects_placeholders(password, secret):
    with pytest.raises(ConfigurationError):
        Settings(environment="production", admin_password=password, jwt_secret=secret, _env_file=None)


def test_production_with_real_secrets():
    settings = Settings(
        environment="production",
        admin_password="a-real-admin-password",
        jwt_secret="a-real-signing-secret-value",
        _env_file=None,
    )
    assert settings.is_production
    assert settings.effective_admin_password == "a-real-admin-password"


def test_development_falls_back_with_warning(log_messages):
    settings = Settings(environment="development", _env_file=None)
    assert settings.effective_admin_password == DEV_ADMIN_PASSWORD
    assert settings.effective_jwt_secret == DEV_JWT_SECRET
    assert any("fallback" in m for m in log_messages)


def test_environment_read_from_node_env(monkeypatch):
    monkeypatch.setenv("NODE_ENV", "Testing")
    assert Settings(_env_file=None).environment == "testing"


def test_environment_read_from_env_vars(monkeypatch):
    monkeypatch.delenv("NODE_ENV", raising=False)
    monkeypatch.setenv("ENVIRONMENT", "testing")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.hr,https://b.hr")
    monkeypatch.setenv("RATE_LIMIT_STORAGE_URI", "memory://")
    settings = Settings(_env_file=None)
    assert settings.environment == "testing"
    assert settings.allowed_origin_list == ["https://a.hr", "https://b.hr"]


def test_unknown_environment_rejected():
    with pytest.raises(ValidationError):
        Settings(environment="staging", _env_file=None)


def test_settings_are_immutable():
    settings = Settings(environment="testing", _env_file=None)
    with pytest.raises(ValidationError):
        settings.port = 9999
