"""
mrbeans/validators/country.py — Coffee-producing country schema
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import Field

from mrbeans.validators.base import BaseSchema, Messages, Number, ValidationResult, validate_with

DEFAULT_FLAG = "🌍"
UNKNOWN_REGION = "Nepoznato"


class Coordinates(BaseSchema):
    lat: Number = Field(ge=-90, le=90)
    lng: Number = Field(ge=-180, le=180)


class CountrySchema(BaseSchema):
    name: str = Field(min_length=1, max_length=100)
    flag: str = Field(DEFAULT_FLAG, max_length=10)
    region: str = Field(UNKNOWN_REGION, max_length=100)
    coordinates: Coordinates = Field(default_factory=lambda: Coordinates(lat=0, lng=0))
    coffee_production: Optional[str] = Field(None, alias="coffeeProduction", max_length=500)
    varieties: list[str] = Field(default_factory=list)


_LATITUDE = "Latituda mora biti između -90 i 90"
_LONGITUDE = "Longituda mora biti između -180 i 180"

COUNTRY_MESSAGES: Messages = {
    "name": {
        "string.empty": "Ime države je obavezno",
        "string.min": "Ime mora imati barem 1 znak",
        "string.max": "Ime ne može biti duže od 100 znakova",
        "any.required": "Ime države je obavezno",
    },
    "flag": {"string.max": "Flag emoji ne može biti duži od 10 znakova"},
    "region": {"string.max": "Regija ne može biti duža od 100 znakova"},
    "coordinates.lat": {
        "number.base": "Latituda mora biti broj",
        "number.min": _LATITUDE,
        "number.max": _LATITUDE,
        "any.required": "Latituda je obavezna",
    },
    "coordinates.lng": {
        "number.base": "Longituda mora biti broj",
        "number.min": _LONGITUDE,
        "number.max": _LONGITUDE,
        "any.required": "Longituda je obavezna",
    },
    "coffeeProduction": {"string.max": "Opis proizvodnje ne može biti duži od 500 znakova"},
    "varieties": {"array.base": "Varijete moraju biti niz"},
}


def validate_country(data: Any) -> ValidationResult:
    return validate_with(CountrySchema, data, COUNTRY_MESSAGES)
