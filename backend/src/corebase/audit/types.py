"""Audit event types.

Every successful mutation in Corebase produces an AuditEvent:
- create / update / delete of content entries and content types
- state_change when an entry moves through the workflow
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

CREATE = "create"
UPDATE = "update"
DELETE = "delete"
STATE_CHANGE = "state_change"

CONTENT_TYPE = "content_type"


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class AuditEvent:
    """A single mutation notification.

    Attributes:
        action: What happened (create, update, delete, state_change)
        entity_type: "content_type" or the apiId of the content type
        entity_id: apiId for content types, entry id for entries
        user_id: The caller that performed the mutation
        details: Extra payload (changed fields, previousState/newState)
        created_at: ISO-8601 timestamp of the event
    """

    action: str
    entity_type: str
    entity_id: str
    user_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "userId": self.user_id,
            "details": self.details,
            "createdAt": self.created_at,
        }


def compute_changes(
    record: dict[str, Any], original: dict[str, Any] | None
) -> dict[str, Any] | None:
    """Compute a diff of changed fields between record and original.

    Returns None if original is None (create operations).
    Returns a dict of {field: new_value} for fields that differ; fields that
    were cleared map to None.
    """
    if original is None:
        return None

    changes = {
        key: value
        for key, value in record.items()
        if key not in original or original[key] != value
    }
    for key in original:
        if key not in record:
            changes[key] = None
    return changes
