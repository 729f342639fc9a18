"""
tests/conftest.py — Shared pytest fixtures
"""
from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient
from loguru import logger

from mrbeans.config import Settings
from mrbeans.main import create_app

ADMIN_PASSWORD = "correct-horse-battery-staple"
JWT_SECRET = "test-signing-key-0123456789abcdef"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment="testing",
        admin_password=ADMIN_PASSWORD,
        jwt_secret=JWT_SECRET,
        data_dir=tmp_path / "data",
        images_dir=tmp_path / "images",
        _env_file=None,
    )


@pytest.fixture
def app(settings):
    # Lifespan is not entered by the client below (it would reset loguru
    # handlers), so do its filesystem setup here.
    application = create_app(settings)
    application.state.store.ensure_defaults()
    application.state.images.ensure_dirs()
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def token(app) -> str:
    return app.state.auth_service.issue_token()


@pytest.fixture
def auth_headers(token) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def log_messages():
    """Every loguru message emitted during the test, as plain strings."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(str(m)), level="DEBUG", format="{message}")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def log_records(log_messages):
    """Structured (JSON) log records emitted during the test."""
    def _records() -> list[dict]:
        return [json.loads(m) for m in log_messages if m.lstrip().startswith("{")]
    return _records


@pytest.fixture
def valid_coffee() -> dict:
    return {
        "brandId": "brand-1",
        "name": "Espresso Classico",
        "type": "Zrno",
        "roast": "Dark",
        "arabicaPercentage": 80,
        "countryIds": ["brazil", "ethiopia"],
        "storeId": "store-1",
        "priceEUR": 12.99,
        "weightG": 1000,
        "rating": 4,
    }
