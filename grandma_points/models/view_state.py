"""
Transient UI State

These models hold what the screens need between user actions:
which form is open, which days are expanded, what is awaiting
confirmation. None of it is ever persisted.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class EntryMode(str, Enum):
    """
    Modes of one child's record-entry screen.

    IDLE -> ADDING -> IDLE on cancel or successful add.
    IDLE -> CONFIRMING_DAY_DELETE -> IDLE on cancel or confirm.
    """
    IDLE = "idle"
    ADDING = "adding"
    CONFIRMING_DAY_DELETE = "confirming_day_delete"


class CalculationDraft(BaseModel):
    """Raw text of the add-item form, exactly as typed."""

    label: str = ""
    price: str = ""
    quantity: str = "1"
    selected_date: date = Field(default_factory=date.today)

    def clear_inputs(self) -> None:
        """Reset the text fields; the selected date is kept for the next entry."""
        self.label = ""
        self.price = ""
        self.quantity = "1"


class CalculationViewState(BaseModel):
    """State of one child's screen, separate from the record collection."""

    mode: EntryMode = EntryMode.IDLE
    expanded_days: set[str] = Field(default_factory=set)
    day_to_delete: Optional[str] = None
    show_date_picker: bool = False

    @property
    def is_adding(self) -> bool:
        return self.mode == EntryMode.ADDING

    @property
    def is_confirming_day_delete(self) -> bool:
        return self.mode == EntryMode.CONFIRMING_DAY_DELETE

    def is_expanded(self, day: str) -> bool:
        return day in self.expanded_days


class RosterViewState(BaseModel):
    """State of the kids list screen."""

    delete_mode: bool = False
    kid_to_delete: Optional[str] = None
    selected_kid: Optional[str] = None

    @property
    def is_confirming_delete(self) -> bool:
        return self.kid_to_delete is not None
