"""
Data Models Package

This package contains all Pydantic models used in Grandma Points.
All data flowing through the system must conform to these schemas.
"""

from grandma_points.models.calculation import (
    CalculationRecord,
    CalculationSummary,
    DaySummary,
    ValidationIssue,
    ValidationResult,
)
from grandma_points.models.view_state import (
    CalculationDraft,
    CalculationViewState,
    EntryMode,
    RosterViewState,
)
from grandma_points.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "CalculationRecord",
    "CalculationSummary",
    "DaySummary",
    "ValidationIssue",
    "ValidationResult",
    # View state
    "CalculationDraft",
    "CalculationViewState",
    "EntryMode",
    "RosterViewState",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
