"""
Add-Item Form Validation

DESIGN DECISION: The form hands us raw text, exactly as typed.
Validation parses it and reports every problem at once:

ERRORS (the add is rejected, nothing changes):
- Empty label
- Price that is empty or not a finite number
- Quantity that is empty or not a whole number

WARNINGS (shown, but the add goes ahead):
- Negative price
- Zero or negative quantity

IMPORTANT: Validation NEVER silently fixes input.
Whitespace around a value is the only thing that is trimmed.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from grandma_points.aggregation.formatting import date_key
from grandma_points.models.calculation import (
    CalculationRecord,
    ValidationIssue,
    ValidationResult,
    is_storable_price,
)


LABEL_MAX_LENGTH = 200

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


class CalculationValidator:
    """
    Validates the raw add-item form fields.

    Stateless; one instance can be shared by every child's screen.
    """

    def _check_label(self, label: str) -> list[ValidationIssue]:
        issues = []
        text = label.strip()
        if not text:
            issues.append(ValidationIssue(
                field="label",
                issue_type="missing",
                message="Label is required",
                severity="error",
                suggested_fix="Describe the item, e.g. 'chores' or '3-pointer'",
            ))
        elif len(text) > LABEL_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="label",
                issue_type="too_long",
                message=f"Label is longer than {LABEL_MAX_LENGTH} characters",
                severity="error",
            ))
        return issues

    def parse_price(self, price: str) -> Optional[Decimal]:
        """Parse price text; None when it is not a finite number."""
        text = price.strip()
        if not text:
            return None
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None
        if not value.is_finite():
            return None
        return value

    def parse_quantity(self, quantity: str) -> Optional[int]:
        """Parse quantity text; None when it is not a whole number."""
        text = quantity.strip()
        if not _INTEGER_PATTERN.match(text):
            return None
        return int(text)

    def _check_price(self, price: str) -> list[ValidationIssue]:
        issues = []
        value = self.parse_price(price)
        if not price.strip():
            issues.append(ValidationIssue(
                field="price",
                issue_type="missing",
                message="Price is required",
                severity="error",
            ))
        elif value is None:
            issues.append(ValidationIssue(
                field="price",
                issue_type="invalid_format",
                message=f"Price '{price.strip()}' is not a number",
                severity="error",
                suggested_fix="Use digits with an optional decimal point, e.g. 2.50",
            ))
        elif not is_storable_price(value):
            issues.append(ValidationIssue(
                field="price",
                issue_type="out_of_range",
                message=f"Price '{price.strip()}' is too large or has too many digits",
                severity="error",
                suggested_fix="Use a price with at most two decimal places, e.g. 2.50",
            ))
        elif value < 0:
            issues.append(ValidationIssue(
                field="price",
                issue_type="suspicious_value",
                message="Price is negative",
                severity="warning",
                suggested_fix="Check the sign; negative prices reduce the total",
            ))
        return issues

    def _check_quantity(self, quantity: str) -> list[ValidationIssue]:
        issues = []
        value = self.parse_quantity(quantity)
        if not quantity.strip():
            issues.append(ValidationIssue(
                field="quantity",
                issue_type="missing",
                message="Quantity is required",
                severity="error",
                suggested_fix="Enter 1 for a single item",
            ))
        elif value is None:
            issues.append(ValidationIssue(
                field="quantity",
                issue_type="invalid_format",
                message=f"Quantity '{quantity.strip()}' is not a whole number",
                severity="error",
            ))
        elif value <= 0:
            issues.append(ValidationIssue(
                field="quantity",
                issue_type="suspicious_value",
                message="Quantity is zero or negative",
                severity="warning",
            ))
        return issues

    def validate(self, label: str, price: str, quantity: str = "1") -> ValidationResult:
        """
        Validate the three text fields of the add-item form.

        Returns:
            ValidationResult with all issues found
        """
        issues = []
        issues.extend(self._check_label(label))
        issues.extend(self._check_price(price))
        issues.extend(self._check_quantity(quantity))

        warnings = [issue.message for issue in issues if issue.severity == "warning"]

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=warnings,
        )

    def build_record(
        self,
        label: str,
        price: str,
        quantity: str,
        day: Union[date, str],
    ) -> tuple[Optional[CalculationRecord], ValidationResult]:
        """
        Validate the form and, if it passes, create the record.

        Args:
            label, price, quantity: Raw form text
            day: The picked calendar date, or an already formatted key

        Returns:
            (record, validation_result); record is None when invalid
        """
        result = self.validate(label, price, quantity)
        if not result.is_valid:
            return None, result

        record = CalculationRecord(
            label=label,
            price=self.parse_price(price),
            quantity=self.parse_quantity(quantity),
            date=day if isinstance(day, str) else date_key(day),
        )
        return record, result

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a short summary of validation results for the form.
        """
        if result.is_valid and not result.warnings:
            return "✅ Looks good!"

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
