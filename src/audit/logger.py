"""
Audit Logger

DESIGN DECISION: Every significant action and every failure is logged.
Write, subscription and bootstrap failures are never shown to the user as
blocking errors; this log is where they surface.

The audit logger:
- Is synchronous, because most events originate inside snapshot callbacks
- Never raises into the caller
- Keeps a bounded in-memory history for diagnostics and the settings screen
- Tags every event with the session's correlation ID
"""

import logging
from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventType, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at `level`."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and remembers the most recent
    ones.
    """

    def __init__(
        self,
        correlation_id: Optional[UUID] = None,
        history_size: int = 200,
    ):
        """
        Initialize audit logger.

        Args:
            correlation_id: Tag applied to every event logged through this
                    instance. A new one is generated if omitted.
            history_size: How many recent events to keep in memory.
        """
        self.correlation_id = correlation_id or create_correlation_id()
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("tracker.audit")

    def log(self, event: AuditEvent) -> AuditEvent:
        """Log an audit event and return it (with correlation ID applied)."""
        if event.correlation_id is None:
            event = event.model_copy(update={"correlation_id": self.correlation_id})

        self._history.append(event)

        log_dict = event.to_log_dict()
        severity = event.severity
        if severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        return event

    def recent_events(
        self,
        limit: int = 50,
        event_type: Optional[AuditEventType] = None,
    ) -> list[AuditEvent]:
        """Most recent events, newest first, optionally of one type."""
        events = [
            event for event in reversed(self._history)
            if event_type is None or event.event_type == event_type
        ]
        return events[:limit]

    def failures(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent warning-or-worse events, newest first."""
        return [event for event in reversed(self._history) if event.is_failure][:limit]


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    One is created per app session.
    """
    return uuid4()
