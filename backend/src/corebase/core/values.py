"""Typed field values.

Each field value crossing the engine is one variant of a small tagged union:
TextValue, NumberValue, BoolValue, DateValue, JsonValue or RefValue. The
variants convert to the storage representation (SQLite column values) and to
the wire representation (JSON-compatible Python values).

    value = from_wire(field, "2024-03-01")   # DateValue
    value.to_storage()                       # "2024-03-01"
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Union

from corebase.core.types import (
    BOOLEAN,
    JSON,
    NUMBER,
    REFERENCE,
    STRING,
    TIMESTAMP,
    get_field_type,
)

if TYPE_CHECKING:
    from corebase.models.compiler import CompiledField

logger = logging.getLogger(__name__)


# Email: Basic RFC 5322 compliant pattern
EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
)

_TRUE_STRINGS = ("true", "1", "yes")
_FALSE_STRINGS = ("false", "0", "no")


@dataclass(frozen=True)
class TextValue:
    value: str

    def to_storage(self) -> str:
        return self.value

    def to_wire(self) -> str:
        return self.value


@dataclass(frozen=True)
class NumberValue:
    value: int | float

    def to_storage(self) -> int | float:
        return self.value

    def to_wire(self) -> int | float:
        return self.value


@dataclass(frozen=True)
class BoolValue:
    value: bool

    def to_storage(self) -> int:
        return 1 if self.value else 0

    def to_wire(self) -> bool:
        return self.value


@dataclass(frozen=True)
class DateValue:
    value: date | datetime

    def to_storage(self) -> str:
        return self.value.isoformat()

    def to_wire(self) -> str:
        return self.value.isoformat()


@dataclass(frozen=True)
class JsonValue:
    value: Any

    def to_storage(self) -> str:
        return json.dumps(self.value)

    def to_wire(self) -> Any:
        return self.value


@dataclass(frozen=True)
class RefValue:
    ids: tuple[str, ...]
    many: bool = False

    def to_storage(self) -> str | None:
        if self.many:
            return json.dumps(list(self.ids))
        return self.ids[0] if self.ids else None

    def to_wire(self) -> str | list[str] | None:
        if self.many:
            return list(self.ids)
        return self.ids[0] if self.ids else None


FieldValue = Union[TextValue, NumberValue, BoolValue, DateValue, JsonValue, RefValue]


# =============================================================================
# Wire -> value
# =============================================================================


def from_wire(field: CompiledField, raw: Any) -> FieldValue:
    """Coerce a raw JSON value into the typed value for a field.

    Raises:
        ValueError: If the value does not satisfy the field type's coercion rule
    """
    primitive = get_field_type(field.type).primitive

    if primitive == STRING:
        return _text_from_wire(field, raw)
    if primitive == NUMBER:
        return NumberValue(_parse_number(raw))
    if primitive == BOOLEAN:
        return BoolValue(_parse_bool(raw))
    if primitive == TIMESTAMP:
        return DateValue(_parse_timestamp(raw, date_only=field.type == "date"))
    if primitive == JSON:
        return JsonValue(_parse_json(raw))
    if primitive == REFERENCE:
        return _ref_from_wire(field, raw)

    raise ValueError(f"Unsupported field type '{field.type}'")


def _text_from_wire(field: CompiledField, raw: Any) -> TextValue:
    if not isinstance(raw, str):
        raise ValueError("must be a string")

    if field.type == "email" and raw and not EMAIL_PATTERN.match(raw):
        raise ValueError("must be a valid email address")

    if field.type == "enum" and raw not in field.options:
        allowed = ", ".join(field.options)
        raise ValueError(f"must be one of: {allowed}")

    return TextValue(raw)


def _parse_number(raw: Any) -> int | float:
    # bool is an int subclass; a checkbox value is not a number
    if isinstance(raw, bool):
        raise ValueError("must be a number")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return _finite(raw)
    if isinstance(raw, str):
        text = raw.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return _finite(float(text))
        except ValueError:
            raise ValueError("must be a number") from None
    raise ValueError("must be a number")


def _finite(number: float) -> float:
    # NaN is stored as NULL by SQLite and neither NaN nor Infinity is valid JSON
    if not math.isfinite(number):
        raise ValueError("must be a number")
    return number


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError("must be a boolean")


def _parse_timestamp(raw: Any, date_only: bool) -> date | datetime:
    if isinstance(raw, datetime):
        return raw.date() if date_only else raw
    if isinstance(raw, date):
        return raw if date_only else datetime(raw.year, raw.month, raw.day)
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError("must be a valid date")

    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError("must be a valid date") from None

    if date_only:
        return parsed.date()
    return parsed


def _parse_json(raw: Any) -> Any:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            raise ValueError("must be valid JSON") from None
    try:
        json.dumps(raw, allow_nan=False)
    except (TypeError, ValueError):
        raise ValueError("must be valid JSON") from None
    return raw


def _ref_from_wire(field: CompiledField, raw: Any) -> RefValue:
    if field.many:
        items = raw if isinstance(raw, list) else [raw]
        if not all(isinstance(item, str) for item in items):
            raise ValueError("must be a list of identifiers")
        return RefValue(ids=tuple(items), many=True)

    if not isinstance(raw, str):
        raise ValueError("must be an identifier")
    return RefValue(ids=(raw,), many=False)


# =============================================================================
# Storage -> value
# =============================================================================


def from_storage(field: CompiledField, stored: Any) -> FieldValue | None:
    """Rebuild the typed value from a stored column value.

    Returns None for NULL columns and for stored values that no longer decode
    under the field's type; such values are treated as absent.
    """
    if stored is None:
        return None

    try:
        return _decode(field, stored)
    except (TypeError, ValueError) as e:
        logger.warning("Ignoring undecodable stored value for field '%s': %s", field.name, e)
        return None


def _decode(field: CompiledField, stored: Any) -> FieldValue:
    primitive = get_field_type(field.type).primitive

    if primitive == STRING:
        return TextValue(str(stored))
    if primitive == NUMBER:
        if isinstance(stored, bool) or not isinstance(stored, (int, float)):
            raise TypeError(f"expected a number, got {type(stored).__name__}")
        return NumberValue(stored)
    if primitive == BOOLEAN:
        return BoolValue(bool(stored))
    if primitive == TIMESTAMP:
        if field.type == "date":
            return DateValue(date.fromisoformat(stored))
        return DateValue(datetime.fromisoformat(stored))
    if primitive == JSON:
        return JsonValue(json.loads(stored))
    if primitive == REFERENCE:
        if field.many:
            ids = json.loads(stored) if isinstance(stored, str) else stored
            if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
                raise TypeError("expected a list of identifiers")
            return RefValue(ids=tuple(ids), many=True)
        if not isinstance(stored, str):
            raise TypeError("expected an identifier")
        return RefValue(ids=(stored,), many=False)

    raise ValueError(f"Unsupported field type '{field.type}'")
