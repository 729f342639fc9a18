"""
mrbeans/validators/store.py — Retail store schema
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import AnyUrl, Field, TypeAdapter, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from mrbeans.validators.base import BaseSchema, Messages, ValidationResult, validate_with

DEFAULT_STORE_TYPE = "Trgovina"

_url_adapter = TypeAdapter(AnyUrl)


class StoreSchema(BaseSchema):
    name: str = Field(min_length=1, max_length=200)
    store_type: str = Field(DEFAULT_STORE_TYPE, alias="type", max_length=50)
    website: Optional[str] = None

    @field_validator("website")
    @classmethod
    def website_is_uri(cls, v: Optional[str]) -> Optional[str]:
        # Empty string means "no website"
        if not v:
            return v
        try:
            _url_adapter.validate_python(v)
        except ValidationError:
            raise PydanticCustomError("url_parsing", "Input should be a valid URL") from None
        return v


STORE_MESSAGES: Messages = {
    "name": {
        "string.empty": "Ime trgovine je obavezno",
        "string.min": "Ime mora imati barem 1 znak",
        "string.max": "Ime ne može biti duže od 200 znakova",
        "any.required": "Ime trgovine je obavezno",
    },
    "type": {"string.max": "Tip trgovine ne može biti duži od 50 znakova"},
    "website": {"string.uri": "Website mora biti valjan URL"},
}


def validate_store(data: Any) -> ValidationResult:
    return validate_with(StoreSchema, data, STORE_MESSAGES)
