"""
Audit Models for Grandma Points

Every mutation and every absorbed failure is logged for audit purposes.
This provides:
1. Traceability of what was added and removed, and when
2. Debugging information when stored data had to be discarded
3. A short "recent activity" history for the settings page

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Records
    RECORD_ADDED = "record_added"
    RECORD_DELETED = "record_deleted"
    DAY_DELETED = "day_deleted"
    RECORDS_PURGED = "records_purged"

    # Roster
    KID_ADDED = "kid_added"
    KID_DELETED = "kid_deleted"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Persistence
    DATA_RECOVERED = "data_recovered"
    SAVE_FAILED = "save_failed"


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

    This is the core unit of our audit trail.
    """

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

    # Context - which child and which entity is this about?
    kid_name: Optional[str] = Field(
        default=None,
        description="Child the event relates to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'record', 'day', 'kid')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID or key of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one user action"
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

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
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
            "kid_name": self.kid_name,
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
        event = AuditEventBuilder.record_added(kid_name, record_id, ...)
        event = AuditEventBuilder.kid_deleted(kid_name, records_purged=False)
    """

    @staticmethod
    def record_added(
        kid_name: str,
        record_id: UUID,
        label: str,
        total: Decimal,
        day: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_ADDED,
            kid_name=kid_name,
            entity_type="record",
            entity_id=str(record_id),
            correlation_id=correlation_id,
            description=f"Added '{label}' on {day} for {kid_name}",
            details={
                "label": label,
                "total": str(total),
                "date": day,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        kid_name: str,
        record_id: UUID,
        day: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            kid_name=kid_name,
            entity_type="record",
            entity_id=str(record_id),
            correlation_id=correlation_id,
            description=f"Deleted a record on {day} for {kid_name}",
            details={"date": day},
            is_user_action=True,
        )

    @staticmethod
    def day_deleted(
        kid_name: str,
        day: str,
        removed_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DAY_DELETED,
            kid_name=kid_name,
            entity_type="day",
            entity_id=day,
            correlation_id=correlation_id,
            description=f"Deleted {removed_count} records on {day} for {kid_name}",
            details={
                "date": day,
                "removed_count": removed_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def kid_added(
        kid_name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.KID_ADDED,
            kid_name=kid_name,
            entity_type="kid",
            entity_id=kid_name,
            correlation_id=correlation_id,
            description=f"Added {kid_name} to the roster",
            is_user_action=True,
        )

    @staticmethod
    def kid_deleted(
        kid_name: str,
        records_purged: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.KID_DELETED,
            kid_name=kid_name,
            entity_type="kid",
            entity_id=kid_name,
            correlation_id=correlation_id,
            description=f"Removed {kid_name} from the roster",
            details={"records_purged": records_purged},
            is_user_action=True,
        )

    @staticmethod
    def records_purged(
        kid_name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_PURGED,
            severity=AuditSeverity.WARNING,
            kid_name=kid_name,
            entity_type="kid",
            entity_id=kid_name,
            correlation_id=correlation_id,
            description=f"Deleted all stored records of {kid_name}",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        kid_name: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            kid_name=kid_name,
            entity_type="draft",
            correlation_id=correlation_id,
            description=f"Add item rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def data_recovered(
        key: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_RECOVERED,
            severity=AuditSeverity.WARNING,
            entity_type="key",
            entity_id=key,
            correlation_id=correlation_id,
            description=f"Stored value under '{key}' was unreadable; using empty data",
            error_message=error_message,
        )

    @staticmethod
    def save_failed(
        key: str,
        error_message: str,
        kid_name: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            kid_name=kid_name,
            entity_type="key",
            entity_id=key,
            correlation_id=correlation_id,
            description=f"Could not save '{key}'",
            error_message=error_message,
        )
