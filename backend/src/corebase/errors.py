"""Error taxonomy shared by the schema registry and the content engine.

Every error carries the HTTP status the API layer reports it with, and an
optional ``field`` naming the offending field or definition attribute.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class CorebaseError(Exception):
    """Base exception for all Corebase errors."""

    kind = "Internal"
    status_code = 500

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.field:
            result["field"] = self.field
        return result


class InvalidDefinition(CorebaseError):
    """Raised when a content type definition is malformed."""

    kind = "InvalidDefinition"
    status_code = 400


class Conflict(CorebaseError):
    """Raised when an apiId is already taken."""

    kind = "Conflict"
    status_code = 409


class NotFound(CorebaseError):
    """Raised for unknown content types, unknown entries and malformed entry ids."""

    kind = "NotFound"
    status_code = 404


class ValidationFailed(CorebaseError):
    """Raised when an entry payload fails required-field or type checks."""

    kind = "ValidationFailed"
    status_code = 422


class Forbidden(CorebaseError):
    """Raised when the caller lacks ownership or privilege."""

    kind = "Forbidden"
    status_code = 403


class Internal(CorebaseError):
    """Raised for storage or compilation failures not caused by caller input."""

    kind = "Internal"
    status_code = 500


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Surface storage failures as Internal errors.

    Usage:
        with storage_errors("create"):
            adapter.create(model, data)
    """
    try:
        yield
    except (sqlite3.Error, SQLAlchemyError) as e:
        logger.error("Storage failure during %s: %s", action, e)
        raise Internal(f"Storage failure during {action}") from e
