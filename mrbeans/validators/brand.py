"""
mrbeans/validators/brand.py — Brand schema
"""
from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError

from mrbeans.validators.base import BaseSchema, Integer, Messages, ValidationResult, validate_with

UNKNOWN_COUNTRY = "Nepoznato"


def _current_year() -> int:
    return date.today().year


class BrandSchema(BaseSchema):
    name: str = Field(min_length=1, max_length=100)
    country: str = Field(UNKNOWN_COUNTRY, max_length=100)
    founded: Integer = Field(default_factory=_current_year, ge=1000)
    logo: Optional[str] = None

    @field_validator("founded")
    @classmethod
    def not_in_future(cls, v: int) -> int:
        year = _current_year()
        if v > year:
            raise PydanticCustomError(
                "less_than_equal",
                "Input should be less than or equal to {le}",
                {"le": year},
            )
        return v


BRAND_MESSAGES: Messages = {
    "name": {
        "string.empty": "Ime brenda je obavezno",
        "string.min": "Ime mora imati barem 1 znak",
        "string.max": "Ime ne može biti duže od 100 znakova",
        "any.required": "Ime brenda je obavezno",
    },
    "country": {
        "string.max": "Naziv države ne može biti duži od 100 znakova",
    },
    "founded": {
        "number.base": "Godina osnutka mora biti broj",
        "number.min": "Godina osnutka ne može biti manja od 1000",
        "number.max": "Godina osnutka ne može biti u budućnosti",
        "number.integer": "Godina osnutka mora biti cijeli broj",
    },
}


def validate_brand(data: Any) -> ValidationResult:
    return validate_with(BrandSchema, data, BRAND_MESSAGES)
