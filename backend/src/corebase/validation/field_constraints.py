"""Field-level constraint validators.

One validator per compiled field enforces:
- required: the field must have a non-empty value
- the field type's coercion rule (number parses, date is valid, enum option...)
"""

from dataclasses import dataclass
from typing import Any

from corebase.core.values import from_wire
from corebase.models.compiler import CompiledField, CompiledModel
from corebase.validation.types import Operation, ValidationError


def is_empty(value: Any) -> bool:
    """Check if a value is considered empty."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    if isinstance(value, (list, dict)) and len(value) == 0:
        return True
    return False


@dataclass
class FieldConstraintValidator:
    """Validates a single field of a payload against its compiled constraints."""

    field: CompiledField

    def validate(
        self,
        record: dict[str, Any],
        operation: Operation,
    ) -> list[ValidationError]:
        name = self.field.name

        if self.field.required and is_empty(record.get(name)):
            # A partial update only re-checks fields it touches; the engine
            # validates the merged entry for the rest.
            if operation == Operation.CREATE or name in record:
                return [ValidationError(
                    message=f"Field '{name}' is required",
                    code="REQUIRED",
                    field=name,
                )]

        # Absent or null optional values are not coerced
        if record.get(name) is None:
            return []

        try:
            from_wire(self.field, record[name])
        except ValueError as e:
            return [ValidationError(
                message=f"Field '{name}' {e}",
                code=f"INVALID_{self.field.type.upper()}",
                field=name,
            )]

        return []


def generate_field_validators(model: CompiledModel) -> list[FieldConstraintValidator]:
    """Create a validator for every declared field, in definition order."""
    return [FieldConstraintValidator(field=f) for f in model.fields]


def validate_record(
    model: CompiledModel,
    record: dict[str, Any],
    operation: Operation,
) -> list[ValidationError]:
    """Run every field validator and collect the errors in field order."""
    errors: list[ValidationError] = []
    for validator in generate_field_validators(model):
        errors.extend(validator.validate(record, operation))
    return errors
