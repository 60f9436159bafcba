"""Core types for Corebase entry validation.

- Operation: which engine operation a payload is being validated for
- UserContext: the caller identity every engine operation receives
- ValidationError: a single field-level failure
"""

from dataclasses import dataclass, field
from enum import Enum


class Operation(Enum):
    """The type of operation being validated."""

    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class ValidationError:
    """A single validation error.

    Attributes:
        message: Human-readable message
        code: Machine-readable error code (e.g., "REQUIRED", "INVALID_NUMBER")
        field: Field name this error relates to, or None for entry-level errors
    """

    message: str
    code: str
    field: str | None = None


@dataclass
class UserContext:
    """Identity of the caller performing an operation.

    Attributes:
        user_id: The authenticated user's ID
        roles: List of role names the user has (highest first)
    """

    user_id: str | None = None
    roles: list[str] = field(default_factory=list)
