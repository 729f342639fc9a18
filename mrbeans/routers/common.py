"""
mrbeans/routers/common.py — Dependencies and store helpers shared by the routers
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, Request

from mrbeans.core.auth import require_admin
from mrbeans.core.errors import ApiError, internal_error
from mrbeans.core.rate_limiter import rate_limit
from mrbeans.models import DATA_FILES
from mrbeans.storage.json_store import JsonStore

READ_FAILED_MESSAGE = "Greška pri čitanju podataka"
WRITE_FAILED_MESSAGE = "Greška pri spremanju"

# Mutating data routes: write limiter first, then the token check
ADMIN_WRITE = [Depends(rate_limit("write")), Depends(require_admin)]
ADMIN_UPLOAD = [Depends(rate_limit("upload")), Depends(require_admin)]


def get_store(request: Request) -> JsonStore:
    return request.app.state.store


def new_id() -> str:
    return str(uuid.uuid4())


def today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def load_collection(store: JsonStore, filename: str) -> dict[str, Any]:
    """Read a data file; its collection key is guaranteed to hold a list."""
    data = store.read(filename)
    if not isinstance(data, dict):
        raise ApiError(internal_error(READ_FAILED_MESSAGE))
    for key in DATA_FILES.get(filename, {}):
        if not isinstance(data.get(key), list):
            data[key] = []
    return data


def save_collection(store: JsonStore, filename: str, data: dict[str, Any]) -> None:
    if not store.write(filename, data):
        raise ApiError(internal_error(WRITE_FAILED_MESSAGE))


def find_index(records: list[dict[str, Any]], record_id: str) -> int:
    """Position of the record with `record_id`, or -1."""
    return next((i for i, r in enumerate(records) if r.get("id") == record_id), -1)
