"""
Aggregation View-Model

DESIGN DECISION: Nothing here is cached or stored.
Groups, subtotals and the grand total are recomputed from the record
collection on every read. The collection is small (dozens of records),
so a single O(n) pass is cheaper than any invalidation logic.

Date keys are zero-padded ISO strings ("YYYY-MM-DD"), so a descending
string sort is a descending chronological sort.
"""

from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from grandma_points.aggregation.formatting import format_date_header
from grandma_points.models.calculation import (
    CalculationRecord,
    CalculationSummary,
    DaySummary,
)


ZERO = Decimal("0")


def group_by_date(
    records: Iterable[CalculationRecord],
) -> dict[str, list[CalculationRecord]]:
    """
    Partition records by their date key.

    Within a group, records keep the order of the underlying collection.
    """
    groups: dict[str, list[CalculationRecord]] = {}
    for record in records:
        groups.setdefault(record.date, []).append(record)
    return groups


def sorted_date_keys(grouped: Mapping[str, Sequence[CalculationRecord]]) -> list[str]:
    """Group keys, newest first."""
    return sorted(grouped.keys(), reverse=True)


def day_total(records: Iterable[CalculationRecord]) -> Decimal:
    """Sum of price * quantity over one day's records; zero when empty."""
    return sum((record.total for record in records), ZERO)


def grand_total(records: Iterable[CalculationRecord]) -> Decimal:
    """Sum of every record's total; zero when empty."""
    return sum((record.total for record in records), ZERO)


def summarize(records: Sequence[CalculationRecord]) -> CalculationSummary:
    """
    Build everything the display layer needs in one pass.

    Returns:
        CalculationSummary with day groups newest first
    """
    grouped = group_by_date(records)

    days = [
        DaySummary(
            date=key,
            header=format_date_header(key),
            records=grouped[key],
            total=day_total(grouped[key]),
        )
        for key in sorted_date_keys(grouped)
    ]

    return CalculationSummary(
        days=days,
        grand_total=grand_total(records),
        record_count=len(records),
    )
