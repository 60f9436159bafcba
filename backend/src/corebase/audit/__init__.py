"""Corebase audit hook.

Every successful mutation is announced as an AuditEvent. Sinks are
registered by name and called after the mutation is persisted; sink
failures are logged and never reach the caller.

Usage:
    from corebase.audit import audit_sink, AuditEvent

    @audit_sink("stdout")
    def print_event(event: AuditEvent) -> None:
        print(event.to_dict())
"""

from corebase.audit.registry import AuditSinkRegistry, audit_sink
from corebase.audit.service import AuditHook
from corebase.audit.store import ActivityStore
from corebase.audit.types import (
    CONTENT_TYPE,
    CREATE,
    DELETE,
    STATE_CHANGE,
    UPDATE,
    AuditEvent,
    compute_changes,
)

__all__ = [
    "ActivityStore",
    "AuditEvent",
    "AuditHook",
    "AuditSinkRegistry",
    "CONTENT_TYPE",
    "CREATE",
    "DELETE",
    "STATE_CHANGE",
    "UPDATE",
    "audit_sink",
    "compute_changes",
]
