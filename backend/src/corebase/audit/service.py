"""Audit hook for Corebase.

Delivers audit events to every registered sink after a mutation has been
persisted. Delivery is fire-and-forget: a failing sink is logged and
skipped, and the content operation that produced the event is never
affected.
"""

import logging
from typing import Any

from corebase.audit.registry import AuditSinkRegistry
from corebase.audit.types import AuditEvent

logger = logging.getLogger(__name__)


class AuditHook:
    """Emits audit events to registered sinks."""

    def emit(self, event: AuditEvent) -> None:
        for name, sink in AuditSinkRegistry.items():
            try:
                sink(event)
            except Exception as e:
                logger.error(
                    "Audit sink '%s' failed for %s %s/%s: %s",
                    name,
                    event.action,
                    event.entity_type,
                    event.entity_id,
                    e,
                )

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        user_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditEvent:
        """Build an event and emit it. Returns the event for callers that log it."""
        event = AuditEvent(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            details=details or {},
        )
        self.emit(event)
        return event
