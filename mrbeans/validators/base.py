"""
mrbeans/validators/base.py — Declarative schema validation with localized messages

Each entity is a pydantic model; `validate_with` runs it over raw request
data and converts the outcome to a ValidationResult:

    error, value = validate_coffee(payload)

* every violated constraint is reported (pydantic never stops at the first),
* unknown keys are dropped from `value`,
* defaults are filled in,
* messages come from the per-field table of the entity, keyed by a
  constraint kind (see _ERROR_KINDS), falling back to pydantic's own text.
"""
from __future__ import annotations

from typing import Annotated, Any, NamedTuple, Optional, Type

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer, ValidationError
from pydantic_core import PydanticCustomError

from mrbeans.core.errors import validation_error

Messages = dict[str, dict[str, str]]


def _compact_number(value):
    return int(value) if float(value).is_integer() else value


def _not_bool(error_type: str, message: str):
    # bool is an int subclass; lax mode would store true as 1
    def check(value):
        if isinstance(value, bool):
            raise PydanticCustomError(error_type, message)
        return value
    return BeforeValidator(check)


# JSON numbers: 12 stays 12, 12.5 stays 12.5
Number = Annotated[
    float,
    _not_bool("float_type", "Input should be a valid number"),
    PlainSerializer(_compact_number),
]
Integer = Annotated[int, _not_bool("int_type", "Input should be a valid integer")]


class BaseSchema(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )


class ValidationResult(NamedTuple):
    error: Optional[dict[str, Any]]
    value: Optional[dict[str, Any]]

    @property
    def ok(self) -> bool:
        return self.error is None


# pydantic error type → constraint kind used as message key
_ERROR_KINDS = {
    "missing": "any.required",
    "enum": "any.only",
    "literal_error": "any.only",
    "string_type": "string.base",
    "string_too_short": "string.min",
    "string_too_long": "string.max",
    "url_parsing": "string.uri",
    "url_scheme": "string.uri",
    "int_type": "number.base",
    "int_parsing": "number.base",
    "int_parsing_size": "number.base",
    "float_type": "number.base",
    "float_parsing": "number.base",
    "finite_number": "number.base",
    "int_from_float": "number.integer",
    "greater_than": "number.positive",
    "greater_than_equal": "number.min",
    "less_than": "number.max",
    "less_than_equal": "number.max",
    "list_type": "array.base",
    "too_short": "array.min",
    "date_type": "date.base",
    "date_parsing": "date.base",
    "date_format": "date.format",
    "model_type": "object.base",
    "model_attributes_type": "object.base",
    "dict_type": "object.base",
}

DEFAULT_MESSAGES = {
    "object.base": "Podaci moraju biti objekt",
    "any.required": "Polje je obavezno",
}


def _kind_of(err: dict[str, Any]) -> str:
    kind = _ERROR_KINDS.get(err["type"], err["type"])
    if kind == "string.min":
        raw = err.get("input")
        if isinstance(raw, str) and not raw.strip():
            return "string.empty"
    return kind


def _message_for(err: dict[str, Any], field: str, messages: Messages) -> str:
    kind = _kind_of(err)
    field_messages = messages.get(field, {})
    if kind in field_messages:
        return field_messages[kind]
    # "" → "string.min" message when there is no dedicated empty message
    if kind == "string.empty" and "string.min" in field_messages:
        return field_messages["string.min"]
    return DEFAULT_MESSAGES.get(kind, err["msg"])


def format_details(exc: ValidationError, messages: Messages) -> list[dict[str, str]]:
    details = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"])
        details.append({"field": field, "message": _message_for(err, field, messages)})
    return details


def validate_with(
    schema: Type[BaseSchema],
    data: Any,
    messages: Messages,
    partial: bool = False,
) -> ValidationResult:
    """
    Validate `data` against `schema`.
    partial=True returns only the keys the caller actually sent.
    """
    try:
        model = schema.model_validate(data)
    except ValidationError as exc:
        return ValidationResult(error=validation_error(format_details(exc, messages)), value=None)

    value = model.model_dump(
        mode="json",
        by_alias=True,
        exclude_none=True,
        exclude_unset=partial,
    )
    return ValidationResult(error=None, value=value)
