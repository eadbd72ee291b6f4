"""Attribute value coercion, one function per attribute type.

Write path: payload values arrive as JSON scalars or strings (form posts,
CLI arguments) and are coerced to what the column stores.  Input that
could mean two things is rejected with :class:`ValidationError` instead
of guessed at.

Read path: :func:`decode_row` turns stored booleans back into ``bool`` and
JSON text back into lists and dicts.

>>> coerce_value(AttributeDefinition("qty", type=AttributeType.INTEGER), "5")
5
>>> coerce_value(AttributeDefinition("on", type=AttributeType.BOOLEAN), "yes")
True
>>> coerce_value(AttributeDefinition("qty", type=AttributeType.INTEGER), "")

Tags:
    coercion, validation, attribute-types, mms-core
"""

from __future__ import annotations

import datetime as dt
import json
import math
import re
from collections.abc import Callable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from mms.core.errors import ValidationError
from mms.core.structure import AttributeDefinition, AttributeType

_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
_TRUE = frozenset({"true", "1", "yes", "on", "y", "t"})
_FALSE = frozenset({"false", "0", "no", "off", "n", "f"})

# Signed 64-bit range, the widest INTEGER every supported backend stores.
INTEGER_MIN = -(2**63)
INTEGER_MAX = 2**63 - 1


def _reject(attr: AttributeDefinition, value: Any, expected: str) -> ValidationError:
    return ValidationError(
        f"Invalid value for '{attr.key}': expected {expected}, got {value!r}",
        field=attr.key,
    )


def _coerce_string(attr: AttributeDefinition, value: Any) -> str:
    if isinstance(value, list | dict):
        raise _reject(attr, value, "string")
    return str(value)


def _in_range(attr: AttributeDefinition, value: Any, number: int | float | Decimal) -> int:
    if not INTEGER_MIN <= number <= INTEGER_MAX:
        raise _reject(attr, value, "integer within the 64-bit range")
    return int(number)


def _coerce_integer(attr: AttributeDefinition, value: Any) -> int:
    if isinstance(value, bool):
        raise _reject(attr, value, "integer")
    if isinstance(value, int):
        return _in_range(attr, value, value)
    if isinstance(value, float):
        if value.is_integer():
            return _in_range(attr, value, value)
        raise _reject(attr, value, "integer")
    if isinstance(value, str):
        text = value.strip()
        try:
            return _in_range(attr, value, int(text))
        except ValueError:
            pass
        try:
            number = Decimal(text)
        except InvalidOperation:
            raise _reject(attr, value, "integer") from None
        if number.is_finite() and number == number.to_integral_value():
            return _in_range(attr, value, number)
    raise _reject(attr, value, "integer")


def _coerce_number(attr: AttributeDefinition, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float | Decimal | str):
        raise _reject(attr, value, "number")
    try:
        number = float(Decimal(value.strip()) if isinstance(value, str) else value)
    except (InvalidOperation, OverflowError, ValueError):
        raise _reject(attr, value, "number") from None
    # NaN and infinities have no NUMERIC representation.
    if not math.isfinite(number):
        raise _reject(attr, value, "finite number")
    return number


def _coerce_boolean(attr: AttributeDefinition, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    raise _reject(attr, value, "boolean")


def _coerce_date(attr: AttributeDefinition, value: Any) -> str:
    if isinstance(value, dt.datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, dt.date):
        return value.isoformat()
    if isinstance(value, str) and _DATE_PREFIX.match(value.strip()):
        return value.strip()
    raise _reject(attr, value, "date (YYYY-MM-DD...)")


def _coerce_json(attr: AttributeDefinition, value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        raise _reject(attr, value, "JSON-serializable value") from None


def _coerce_enum(attr: AttributeDefinition, value: Any) -> str:
    text = str(value)
    if attr.values and text not in attr.values:
        raise _reject(attr, value, f"one of {list(attr.values)}")
    return text


COERCERS: dict[AttributeType, Callable[[AttributeDefinition, Any], Any]] = {
    AttributeType.STRING: _coerce_string,
    AttributeType.INTEGER: _coerce_integer,
    AttributeType.NUMBER: _coerce_number,
    AttributeType.BOOLEAN: _coerce_boolean,
    AttributeType.DATE: _coerce_date,
    AttributeType.JSON: _coerce_json,
    AttributeType.ENUM: _coerce_enum,
}

# Types where an empty string means "no value".
_BLANK_IS_NULL = frozenset(
    {AttributeType.INTEGER, AttributeType.NUMBER, AttributeType.BOOLEAN, AttributeType.DATE}
)


def coerce_value(attr: AttributeDefinition, value: Any) -> Any:
    """Coerce one payload value for storage.

    Raises:
        ValidationError: the value is missing for a required attribute, or
            cannot be read unambiguously as the declared type.
    """
    if value is None or (value == "" and attr.type in _BLANK_IS_NULL):
        if attr.required:
            raise ValidationError(f"'{attr.key}' is required", field=attr.key)
        return None
    if value == "" and attr.required and attr.type is not AttributeType.JSON:
        raise ValidationError(f"'{attr.key}' is required", field=attr.key)
    return COERCERS[attr.type](attr, value)


def _decode_boolean(value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int | float | Decimal):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    return value


def _decode_json(value: Any) -> Any:
    if not isinstance(value, str | bytes):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def _decode_number(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


_DECODERS: dict[AttributeType, Callable[[Any], Any]] = {
    AttributeType.BOOLEAN: _decode_boolean,
    AttributeType.JSON: _decode_json,
    AttributeType.NUMBER: _decode_number,
}


def decode_row(row: Mapping[str, Any], attributes: tuple[AttributeDefinition, ...]) -> dict[str, Any]:
    """Return a copy of *row* with typed attribute columns decoded."""
    out = dict(row)
    for attr in attributes:
        decoder = _DECODERS.get(attr.type)
        if decoder is not None and attr.column in out:
            out[attr.column] = decoder(out[attr.column])
    return out


__all__ = ["COERCERS", "INTEGER_MAX", "INTEGER_MIN", "coerce_value", "decode_row"]
