"""Display formatting for dates and amounts."""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Union


DATE_KEY_FORMAT = "%Y-%m-%d"
CENT = Decimal("0.01")

_MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def date_key(value: Union[date, datetime]) -> str:
    """Convert a picked calendar date into the "YYYY-MM-DD" record key."""
    return value.strftime(DATE_KEY_FORMAT)


def format_date_header(key: str) -> str:
    """
    Turn a date key into a section header, e.g. "March 1, 2025".

    Keys that are not valid ISO dates are shown unchanged.
    """
    try:
        parsed = datetime.strptime(key, DATE_KEY_FORMAT).date()
    except (TypeError, ValueError):
        return key
    # Month names are spelled out here to stay independent of the process locale
    return f"{_MONTHS[parsed.month - 1]} {parsed.day}, {parsed.year}"


def format_picker_date(value: date) -> str:
    """Medium date style for the date picker button, e.g. "Mar 1, 2025"."""
    return f"{_MONTHS[value.month - 1][:3]} {value.day}, {value.year}"


def format_amount(amount: Decimal, symbol: str = "$") -> str:
    """Two-decimal amount with a currency symbol, e.g. "$8.50"."""
    rounded = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded < 0:
        return f"-{symbol}{-rounded:,.2f}"
    return f"{symbol}{rounded:,.2f}"
