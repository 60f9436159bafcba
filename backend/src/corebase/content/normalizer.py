"""Reference normalization.

Relation and media values arrive from partially filled forms: empty strings,
the literals "null"/"undefined", empty lists, lists with blank slots. Before a
payload is validated these values are cleaned up so the field is either a
usable reference or absent. The policy is to drop, never to raise; a
required reference that ends up dropped is reported by required-field
validation instead.
"""

import re
from typing import Any

from corebase.models.compiler import CompiledModel

# Identifier format of generated entry and media ids (uuid4().hex)
ID_LENGTH = 32
ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")

# Values treated as "no reference"
DROP_LITERALS = ("", "null", "undefined")


def is_valid_id(value: Any) -> bool:
    """Return True if value is a syntactically valid identifier."""
    return isinstance(value, str) and bool(ID_PATTERN.match(value))


def is_blank_reference(value: Any) -> bool:
    """Return True for values that mean "no reference"."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() in DROP_LITERALS:
        return True
    if isinstance(value, list) and not value:
        return True
    return False


def _clean_list(values: list[Any]) -> list[Any]:
    cleaned = []
    for item in values:
        if is_blank_reference(item):
            continue
        # Only strings of identifier length are checked; anything else is
        # left for type validation to reject with a proper message.
        if isinstance(item, str) and len(item) == ID_LENGTH and not is_valid_id(item):
            continue
        cleaned.append(item)
    return cleaned


def normalize_references(payload: dict[str, Any], model: CompiledModel) -> dict[str, Any]:
    """Return a copy of payload with relation and media values sanitized.

    For every reference field present in the payload:
    - blank values (None, "", "null", "undefined", []) drop the field
    - lists lose blank and malformed elements; an emptied list drops the field
    - a scalar that is not a valid identifier drops the field

    Non-reference fields pass through untouched. Never raises.
    """
    result = dict(payload)

    for field in model.reference_fields:
        if field.name not in result:
            continue

        value = result[field.name]

        if is_blank_reference(value):
            del result[field.name]
            continue

        if isinstance(value, list):
            cleaned = _clean_list(value)
            if cleaned:
                result[field.name] = cleaned
            else:
                del result[field.name]
            continue

        if not is_valid_id(value):
            del result[field.name]

    return result


def cleared_references(payload: dict[str, Any], model: CompiledModel) -> list[str]:
    """Names of reference fields the payload explicitly blanks out.

    Used on update: a blank value means "remove the reference" rather than
    "leave it unchanged".
    """
    return [
        field.name
        for field in model.reference_fields
        if field.name in payload and is_blank_reference(payload[field.name])
    ]
