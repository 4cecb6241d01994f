"""Aggregation package: grouping, totals and display formatting."""

from grandma_points.aggregation.formatting import (
    date_key,
    format_amount,
    format_date_header,
    format_picker_date,
)
from grandma_points.aggregation.summary import (
    day_total,
    grand_total,
    group_by_date,
    sorted_date_keys,
    summarize,
)

__all__ = [
    "date_key",
    "day_total",
    "format_amount",
    "format_date_header",
    "format_picker_date",
    "grand_total",
    "group_by_date",
    "sorted_date_keys",
    "summarize",
]
