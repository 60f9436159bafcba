"""Corebase entry validation.

Field-level checks (required, type coercion) derived from a compiled model.

Usage:
    from corebase.validation import validate_record, Operation

    errors = validate_record(model, payload, Operation.CREATE)
"""

from corebase.validation.field_constraints import (
    FieldConstraintValidator,
    generate_field_validators,
    is_empty,
    validate_record,
)
from corebase.validation.types import Operation, UserContext, ValidationError

__all__ = [
    "FieldConstraintValidator",
    "Operation",
    "UserContext",
    "ValidationError",
    "generate_field_validators",
    "is_empty",
    "validate_record",
]
