"""
mrbeans/validators/coffee.py — Coffee and price-entry schemas
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Optional

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError

from mrbeans.models import CoffeeType, Roast
from mrbeans.validators.base import BaseSchema, Integer, Messages, Number, ValidationResult, validate_with

# Field constraints shared by the create and partial-update schemas
CoffeeName = Annotated[str, Field(min_length=1, max_length=200)]
RequiredRef = Annotated[str, Field(min_length=1)]
ArabicaPercentage = Annotated[Integer, Field(ge=0, le=100)]
CountryIds = Annotated[list[str], Field(min_length=1)]
Price = Annotated[Number, Field(gt=0, le=10000)]
Weight = Annotated[Number, Field(gt=0, le=100000)]
Rating = Annotated[Integer, Field(ge=1, le=5)]


class CoffeeSchema(BaseSchema):
    brand_id: RequiredRef = Field(alias="brandId")
    name: CoffeeName
    coffee_type: CoffeeType = Field(alias="type")
    roast: Roast
    arabica_percentage: ArabicaPercentage = Field(100, alias="arabicaPercentage")
    country_ids: CountryIds = Field(alias="countryIds")
    store_id: RequiredRef = Field(alias="storeId")
    price_eur: Price = Field(alias="priceEUR")
    weight_g: Weight = Field(alias="weightG")
    rating: Rating = 3
    image: Optional[str] = None


class CoffeePatchSchema(BaseSchema):
    """
    Every field optional, but whatever is sent must satisfy its full
    constraint. The None defaults are never validated, so an explicit
    null fails the field's type check like any other bad value.
    """

    brand_id: RequiredRef = Field(None, alias="brandId")
    name: CoffeeName = None
    coffee_type: CoffeeType = Field(None, alias="type")
    roast: Roast = None
    arabica_percentage: ArabicaPercentage = Field(None, alias="arabicaPercentage")
    country_ids: CountryIds = Field(None, alias="countryIds")
    store_id: RequiredRef = Field(None, alias="storeId")
    price_eur: Price = Field(None, alias="priceEUR")
    weight_g: Weight = Field(None, alias="weightG")
    rating: Rating = None
    image: str = None


class PriceEntrySchema(BaseSchema):
    entry_date: str = Field(alias="date")
    price: Price
    store_id: RequiredRef = Field(alias="storeId")

    @field_validator("entry_date")
    @classmethod
    def validate_iso_date(cls, v: str) -> str:
        parse_iso_date(v)
        return v


def parse_iso_date(value: str) -> datetime:
    """YYYY-MM-DD or a full ISO-8601 timestamp (trailing Z allowed)."""
    try:
        if len(value) == 10:
            return datetime.combine(date.fromisoformat(value), datetime.min.time())
        return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        raise PydanticCustomError("date_format", "Date must be in ISO format") from None


COFFEE_MESSAGES: Messages = {
    "brandId": {
        "string.base": "Brend mora biti tekst",
        "string.empty": "Brend je obavezan",
        "any.required": "Brend je obavezan",
    },
    "name": {
        "string.base": "Ime mora biti tekst",
        "string.empty": "Ime kave je obavezno",
        "string.min": "Ime mora imati barem 1 znak",
        "string.max": "Ime ne može biti duže od 200 znakova",
        "any.required": "Ime kave je obavezno",
    },
    "type": {
        "any.only": "Tip mora biti: Zrno, Nespresso kapsula ili Mljevena kava",
        "any.required": "Tip kave je obavezan",
    },
    "roast": {
        "any.only": "Razina prženja mora biti: Light, Medium ili Dark",
        "any.required": "Razina prženja je obavezna",
    },
    "arabicaPercentage": {
        "number.base": "Postotak arabice mora biti broj",
        "number.min": "Postotak arabice ne može biti manji od 0",
        "number.max": "Postotak arabice ne može biti veći od 100",
        "number.integer": "Postotak arabice mora biti cijeli broj",
    },
    "countryIds": {
        "array.base": "Države moraju biti niz",
        "array.min": "Odaberite barem jednu državu",
        "any.required": "Država je obavezna",
    },
    "storeId": {
        "string.base": "Trgovina mora biti tekst",
        "string.empty": "Trgovina je obavezna",
        "any.required": "Trgovina je obavezna",
    },
    "priceEUR": {
        "number.base": "Cijena mora biti broj",
        "number.positive": "Cijena mora biti pozitivna",
        "number.max": "Cijena ne može biti veća od 10000€",
        "any.required": "Cijena je obavezna",
    },
    "weightG": {
        "number.base": "Težina mora biti broj",
        "number.positive": "Težina mora biti pozitivna",
        "number.max": "Težina ne može biti veća od 100kg (100000g)",
        "any.required": "Težina je obavezna",
    },
    "rating": {
        "number.base": "Ocjena mora biti broj",
        "number.min": "Ocjena mora biti barem 1",
        "number.max": "Ocjena ne može biti veća od 5",
        "number.integer": "Ocjena mora biti cijeli broj",
    },
}

PRICE_ENTRY_MESSAGES: Messages = {
    "date": {
        "string.base": "Datum mora biti valjan datum",
        "date.base": "Datum mora biti valjan datum",
        "date.format": "Datum mora biti u ISO formatu (YYYY-MM-DD)",
        "any.required": "Datum je obavezan",
    },
    "price": COFFEE_MESSAGES["priceEUR"],
    "storeId": COFFEE_MESSAGES["storeId"],
}


def validate_coffee(data: Any, partial: bool = False) -> ValidationResult:
    """
    Validate a coffee payload. partial=True is the PUT/update mode:
    nothing is required and only the fields sent come back.
    """
    schema = CoffeePatchSchema if partial else CoffeeSchema
    return validate_with(schema, data, COFFEE_MESSAGES, partial=partial)


def validate_price_entry(data: Any) -> ValidationResult:
    return validate_with(PriceEntrySchema, data, PRICE_ENTRY_MESSAGES)
