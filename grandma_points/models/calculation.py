"""
Core Data Models for Grandma Points

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Be serializable for storage and logging
3. Keep derived values (totals) out of storage

DESIGN DECISION: A calculation record is frozen once created.
There is no edit operation; a wrong entry is deleted and re-added.
"""

import math
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


# =============================================================================
# CORE RECORD MODEL
# =============================================================================

def is_storable_price(value: Decimal) -> bool:
    """
    True when the price survives a trip through a JSON number unchanged.

    Prices are written as JSON numbers and read back as Decimal, so only
    values a double holds exactly (finite, at most ~17 significant digits)
    can be stored without loss.
    """
    as_float = float(value)
    return math.isfinite(as_float) and Decimal(repr(as_float)) == value


class CalculationRecord(BaseModel):
    """
    One priced line item attributed to one day for one child.

    The date is kept as a "YYYY-MM-DD" string because it doubles as the
    grouping and sort key: zero-padded ISO strings sort chronologically.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID, never reused"
    )

    label: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the points were for (e.g. chores, 3-pointer)"
    )
    price: Decimal = Field(
        ...,
        allow_inf_nan=False,
        description="Amount per unit"
    )
    quantity: int = Field(
        default=1,
        description="How many units"
    )
    date: str = Field(
        ...,
        min_length=1,
        description="Day the item belongs to, as YYYY-MM-DD"
    )

    @property
    def total(self) -> Decimal:
        """price * quantity, computed on read."""
        return self.price * self.quantity

    @field_validator('price')
    @classmethod
    def check_price_storable(cls, v: Decimal) -> Decimal:
        if not is_storable_price(v):
            raise ValueError(f"Price {v} is too large or too precise to store")
        return v

    @field_serializer('price', when_used='json')
    def serialize_price(self, price: Decimal) -> float:
        # Stored as a JSON number; readers decode numbers back to Decimal
        return float(price)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating the add-item form.

    Errors block the add; warnings are shown but do not.
    """

    is_valid: bool = Field(
        ...,
        description="Can a record be created from this input?"
    )

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def error_fields(self) -> list[str]:
        return [issue.field for issue in self.issues if issue.severity == "error"]


# =============================================================================
# SUMMARY MODELS (what the display layer renders)
# =============================================================================

class DaySummary(BaseModel):
    """All records of one day, with their subtotal."""

    date: str
    header: str = Field(
        ...,
        description="Display label for the day, e.g. 'March 1, 2025'"
    )
    records: list[CalculationRecord] = Field(default_factory=list)
    total: Decimal = Decimal("0")

    @property
    def record_count(self) -> int:
        return len(self.records)


class CalculationSummary(BaseModel):
    """
    Everything the display layer needs for one child.

    Built fresh from the record collection on every read.
    """

    days: list[DaySummary] = Field(
        default_factory=list,
        description="Day groups, newest first"
    )
    grand_total: Decimal = Decimal("0")
    record_count: int = Field(default=0, ge=0)

    @property
    def is_empty(self) -> bool:
        return self.record_count == 0

    @property
    def date_keys(self) -> list[str]:
        return [day.date for day in self.days]
