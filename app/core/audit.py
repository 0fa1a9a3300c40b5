"""
Audit sink implementations.

LoggingAuditSink is the production default: each event becomes one record on
the ``audit`` logger, with the event context passed through ``extra`` so the
configured handlers (console, rotating file) keep it structured.

RecordingAuditSink keeps events in memory for tests.

The default sink class is configurable with the AUDIT_SINK_CLASS setting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from django.conf import settings
from django.utils.module_loading import import_string

SEVERITY_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "critical": logging.CRITICAL,
}


def _stringify(value: Any) -> Any:
    return str(value) if value is not None else None


class LoggingAuditSink:
    """Write audit events to the ``audit`` logger."""

    def __init__(self, logger_name: str = "audit") -> None:
        self.logger = logging.getLogger(logger_name)

    def record(
        self,
        event: str,
        *,
        severity: str = "info",
        actor_id: Any = None,
        order_id: Any = None,
        **details: Any,
    ) -> None:
        self.logger.log(
            SEVERITY_LEVELS.get(severity, logging.INFO),
            f"audit: {event}",
            extra={
                "audit_event": event,
                "actor_id": _stringify(actor_id),
                "order_id": _stringify(order_id),
                "details": details,
            },
        )


@dataclass
class AuditRecord:
    event: str
    severity: str
    actor_id: Any
    order_id: Any
    details: dict[str, Any] = field(default_factory=dict)


class RecordingAuditSink:
    """
    Keep audit events in memory.

    Usage:
        sink = RecordingAuditSink()
        manager = EscrowPaymentManager(audit_sink=sink)
        ...
        assert sink.events_named("payout_released")
    """

    def __init__(self) -> None:
        self.records: list[AuditRecord] = []

    def record(
        self,
        event: str,
        *,
        severity: str = "info",
        actor_id: Any = None,
        order_id: Any = None,
        **details: Any,
    ) -> None:
        self.records.append(
            AuditRecord(
                event=event,
                severity=severity,
                actor_id=actor_id,
                order_id=order_id,
                details=details,
            )
        )

    def events_named(self, event: str) -> list[AuditRecord]:
        return [r for r in self.records if r.event == event]

    def event_names(self) -> list[str]:
        return [r.event for r in self.records]


def get_audit_sink():
    """Instantiate the sink configured by AUDIT_SINK_CLASS."""
    path = getattr(settings, "AUDIT_SINK_CLASS", "core.audit.LoggingAuditSink")
    return import_string(path)()
