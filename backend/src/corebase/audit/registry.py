"""Audit sink registry.

Sinks receive every AuditEvent emitted by the core. Follows the same
class-level registry pattern as the rest of Corebase's extension points.
"""

from collections.abc import Callable

from corebase.audit.types import AuditEvent

# Sink signature: (AuditEvent) -> None
AuditSink = Callable[[AuditEvent], None]


class AuditSinkRegistry:
    """Registry for audit sinks.

    Example:
        @audit_sink("stdout")
        def print_event(event: AuditEvent) -> None:
            print(event.to_dict())
    """

    _sinks: dict[str, AuditSink] = {}

    @classmethod
    def register(cls, name: str, sink: AuditSink) -> None:
        """Register a sink by name.

        Re-registering a name replaces the previous sink, so a restarted
        application can rebind a store-backed sink.
        """
        cls._sinks[name] = sink

    @classmethod
    def unregister(cls, name: str) -> bool:
        return cls._sinks.pop(name, None) is not None

    @classmethod
    def get(cls, name: str) -> AuditSink:
        if name not in cls._sinks:
            raise ValueError(f"Audit sink '{name}' is not registered")
        return cls._sinks[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._sinks

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._sinks.keys())

    @classmethod
    def items(cls) -> list[tuple[str, AuditSink]]:
        """Registered sinks in name order."""
        return sorted(cls._sinks.items())

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._sinks.clear()


def audit_sink(name: str) -> Callable[[AuditSink], AuditSink]:
    """Decorator to register an audit sink.

    Usage:
        @audit_sink("webhook")
        def post_to_webhook(event: AuditEvent) -> None:
            ...
    """

    def decorator(fn: AuditSink) -> AuditSink:
        AuditSinkRegistry.register(name, fn)
        return fn

    return decorator
