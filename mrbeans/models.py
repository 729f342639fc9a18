"""
mrbeans/models.py — Shared enumerations and request bodies
Entity write schemas live in mrbeans/validators/.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# ──────────────────────────────────────────────────────────────────────────────
# Enumerations
# ──────────────────────────────────────────────────────────────────────────────

class CoffeeType(str, Enum):
    BEAN = "Zrno"
    CAPSULE = "Nespresso kapsula"
    GROUND = "Mljevena kava"


class Roast(str, Enum):
    LIGHT = "Light"
    MEDIUM = "Medium"
    DARK = "Dark"


class ImageKind(str, Enum):
    COFFEE = "coffee"
    BRAND = "brand"

    @property
    def folder(self) -> str:
        return f"{self.value}s"


# ──────────────────────────────────────────────────────────────────────────────
# Data files
# ──────────────────────────────────────────────────────────────────────────────

# filename → empty document written when the file does not exist yet
DATA_FILES: dict[str, dict[str, list]] = {
    "coffees.json": {"coffees": []},
    "brands.json": {"brands": []},
    "stores.json": {"stores": []},
    "countries.json": {"countries": []},
}


# ──────────────────────────────────────────────────────────────────────────────
# Request bodies
# ──────────────────────────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    # Any type: a non-string password is a failed attempt, not a 400
    password: Any = None


class ImageUpload(BaseModel):
    filename: Optional[str] = None
    data: Optional[str] = None  # base64, optionally a data: URL
    mime_type: Optional[str] = Field(None, alias="mimeType")
