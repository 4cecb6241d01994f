"""
Audit Logger

DESIGN DECISION: Every mutation and every absorbed failure is logged.
This provides:
1. Traceability of what was added and removed
2. Debugging capability when stored data had to be discarded
3. A "recent activity" view for the caregiver

The audit logger:
- Writes structured JSON log lines through structlog
- Keeps a bounded in-memory history of recent events
- Supports correlation IDs to trace the events of one user action
"""

from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from grandma_points.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


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


DEFAULT_HISTORY_SIZE = 200


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An in-memory history (for the settings page)
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE):
        """
        Initialize audit logger.

        Args:
            history_size: How many recent events to keep in memory.
                    Zero disables the history.
        """
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("grandma_points.audit")

    def log(self, event: AuditEvent) -> None:
        """
        Log an audit event at the level matching its severity.
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._history.append(event)

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events, newest first."""
        events = list(reversed(self._history))
        return events[:limit]

    def log_record_added(self, kid_name, record, correlation_id=None) -> None:
        """Log a record added to a child's collection."""
        self.log(AuditEventBuilder.record_added(
            kid_name=kid_name,
            record_id=record.id,
            label=record.label,
            total=record.total,
            day=record.date,
            correlation_id=correlation_id,
        ))

    def log_record_deleted(self, kid_name, record, correlation_id=None) -> None:
        """Log a single record deletion."""
        self.log(AuditEventBuilder.record_deleted(
            kid_name=kid_name,
            record_id=record.id,
            day=record.date,
            correlation_id=correlation_id,
        ))

    def log_day_deleted(
        self,
        kid_name: str,
        day: str,
        removed_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log deletion of a whole day."""
        self.log(AuditEventBuilder.day_deleted(
            kid_name=kid_name,
            day=day,
            removed_count=removed_count,
            correlation_id=correlation_id,
        ))

    def log_kid_added(self, kid_name: str, correlation_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.kid_added(
            kid_name=kid_name,
            correlation_id=correlation_id,
        ))

    def log_kid_deleted(
        self,
        kid_name: str,
        records_purged: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.kid_deleted(
            kid_name=kid_name,
            records_purged=records_purged,
            correlation_id=correlation_id,
        ))

    def log_records_purged(self, kid_name: str, correlation_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.records_purged(
            kid_name=kid_name,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        kid_name: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected add-item form."""
        self.log(AuditEventBuilder.validation_failed(
            kid_name=kid_name,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_save_failed(
        self,
        key: str,
        error_message: str,
        kid_name: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.save_failed(
            key=key,
            error_message=error_message,
            kid_name=kid_name,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., adding an item).
    Pass it through all subsequent operations.
    """
    return uuid4()
