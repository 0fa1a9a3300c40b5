"""
Protocol definitions for injected infrastructure collaborators.

Protocols define contracts that services depend on, so production code can
use a logging implementation while tests pass a recording one.

Available Protocols:
    AuditSink: Receives audit and alerting events from the payment engine

Usage:
    from core.protocols import AuditSink

    class EscrowPaymentManager:
        def __init__(self, audit_sink: AuditSink | None = None):
            self.audit = audit_sink or get_audit_sink()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typing import Any


@runtime_checkable
class AuditSink(Protocol):
    """
    Protocol for audit/alerting sinks.

    Events are short snake_case names (``order_created``,
    ``payout_released``, ``security_webhook_signature_invalid``). Severity is
    one of ``info``, ``warning``, ``critical``; ``warning`` and above are
    expected to reach alerting.
    """

    def record(
        self,
        event: str,
        *,
        severity: str = "info",
        actor_id: Any = None,
        order_id: Any = None,
        **details: Any,
    ) -> None:
        """
        Record one audit event.

        Args:
            event: Event name
            severity: info, warning or critical
            actor_id: User who caused the event, if any
            order_id: Order the event concerns, if any
            **details: JSON-serializable context
        """
        ...
