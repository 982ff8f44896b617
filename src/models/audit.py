"""
Audit Models for the Task & Budget Tracker

Every significant action and every failure in the sync layer is recorded as a
typed event. Failures are never surfaced as blocking errors to the user; the
event log is where they end up.

DESIGN DECISION: Events are immutable records. The logger keeps a bounded
history of them; nothing edits or deletes an event once created.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    The failure types mirror the error taxonomy: bootstrap, subscription,
    write, validation and capability failures each have their own type.
    """
    # Identity
    SIGNED_IN = "signed_in"
    BOOTSTRAP_FAILED = "bootstrap_failed"

    # Realtime subscriptions
    SUBSCRIPTION_OPENED = "subscription_opened"
    SUBSCRIPTION_CLOSED = "subscription_closed"
    SUBSCRIPTION_FAILED = "subscription_failed"
    DOCUMENT_SKIPPED = "document_skipped"

    # Settings
    SETTINGS_DEFAULTS_CREATED = "settings_defaults_created"
    SETTINGS_SAVED = "settings_saved"

    # Mutations
    TASK_ADDED = "task_added"
    TASK_TOGGLED = "task_toggled"
    TASK_DELETED = "task_deleted"
    TRANSACTION_ADDED = "transaction_added"
    MUTATION_IGNORED = "mutation_ignored"
    VALIDATION_REJECTED = "validation_rejected"
    WRITE_FAILED = "write_failed"

    # Voice capture
    VOICE_RECOGNIZED = "voice_recognized"
    VOICE_FAILED = "voice_failed"
    CAPABILITY_ABSENT = "capability_absent"

    # Alarm playback
    ALARM_STARTED = "alarm_started"
    ALARM_STOPPED = "alarm_stopped"
    AUDIO_OUTPUT_FAILED = "audio_output_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the event log.
    """
    model_config = ConfigDict(frozen=True)

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'task', 'transaction', 'settings')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Store id or path of the entity this event relates to"
    )

    # Correlation - one app session
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one app session"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    @property
    def is_failure(self) -> bool:
        return self.severity in (
            AuditSeverity.WARNING,
            AuditSeverity.ERROR,
            AuditSeverity.CRITICAL,
        )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.signed_in(user_id, anonymous=True)
        event = AuditEventBuilder.write_failed("add_task", path, error)
    """

    @staticmethod
    def signed_in(user_id: str, anonymous: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_IN,
            entity_type="user",
            entity_id=user_id,
            description="Signed in anonymously" if anonymous else "Signed in with token",
            details={"anonymous": anonymous},
        )

    @staticmethod
    def bootstrap_failed(error_message: str, used_token: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BOOTSTRAP_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="user",
            description="Sign-in failed; data access disabled until restart",
            details={"used_token": used_token},
            error_message=error_message,
        )

    @staticmethod
    def subscription_opened(channel: str, path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_OPENED,
            severity=AuditSeverity.DEBUG,
            entity_type=channel,
            entity_id=path,
            description=f"Listening to {channel}",
        )

    @staticmethod
    def subscription_closed(channel: str, path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_CLOSED,
            severity=AuditSeverity.DEBUG,
            entity_type=channel,
            entity_id=path,
            description=f"Stopped listening to {channel}",
        )

    @staticmethod
    def subscription_failed(channel: str, path: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=channel,
            entity_id=path,
            description=f"{channel} subscription failed; showing last known data",
            error_message=error_message,
        )

    @staticmethod
    def document_skipped(channel: str, document_id: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_SKIPPED,
            severity=AuditSeverity.WARNING,
            entity_type=channel,
            entity_id=document_id,
            description=f"Skipped malformed {channel} document",
            error_message=error_message,
        )

    @staticmethod
    def settings_defaults_created(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_DEFAULTS_CREATED,
            entity_type="settings",
            entity_id=user_id,
            description="Created default settings document",
        )

    @staticmethod
    def settings_saved(fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_SAVED,
            entity_type="settings",
            description=f"Saved settings: {', '.join(fields)}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def task_added(task_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TASK_ADDED,
            entity_type="task",
            entity_id=task_id,
            description="Task added",
            is_user_action=True,
        )

    @staticmethod
    def task_toggled(task_id: str, completed: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TASK_TOGGLED,
            entity_type="task",
            entity_id=task_id,
            description="Task completed" if completed else "Task reopened",
            details={"completed": completed},
            is_user_action=True,
        )

    @staticmethod
    def task_deleted(task_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TASK_DELETED,
            entity_type="task",
            entity_id=task_id,
            description="Task deleted",
            is_user_action=True,
        )

    @staticmethod
    def transaction_added(transaction_id: str, transaction_type: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added: {transaction_type} {amount}",
            details={"type": transaction_type, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def mutation_ignored(operation: str, reason: str, entity_id: Optional[str] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_IGNORED,
            severity=AuditSeverity.DEBUG,
            entity_id=entity_id,
            description=f"{operation} ignored: {reason}",
            details={"operation": operation},
            is_user_action=True,
        )

    @staticmethod
    def validation_rejected(operation: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_REJECTED,
            severity=AuditSeverity.INFO,
            description=f"{operation} rejected with {len(issues)} issues",
            details={"operation": operation, "issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def write_failed(operation: str, path: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_id=path,
            description=f"{operation} write failed",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def voice_recognized(characters: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VOICE_RECOGNIZED,
            entity_type="voice",
            description="Utterance recognized",
            details={"characters": characters},
            is_user_action=True,
        )

    @staticmethod
    def voice_failed(reason: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VOICE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="voice",
            description=f"Voice capture failed: {reason}",
            details={"reason": reason},
            error_message=error_message,
        )

    @staticmethod
    def capability_absent(capability: str, error_message: Optional[str] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CAPABILITY_ABSENT,
            severity=AuditSeverity.WARNING,
            entity_type=capability,
            description=f"{capability} is not supported on this host; feature disabled",
            error_message=error_message,
        )

    @staticmethod
    def alarm_started(pattern: str, repeating: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALARM_STARTED,
            severity=AuditSeverity.DEBUG,
            entity_type="alarm",
            entity_id=pattern,
            description=f"Playing ringtone {pattern}",
            details={"repeating": repeating},
        )

    @staticmethod
    def alarm_stopped() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALARM_STOPPED,
            severity=AuditSeverity.DEBUG,
            entity_type="alarm",
            description="Ringtone stopped",
        )

    @staticmethod
    def audio_output_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUDIO_OUTPUT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="alarm",
            description="Audio output failed",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
