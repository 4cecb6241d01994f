"""
Main Orchestrator for Grandma Points

This module ties together all the components and defines the
flows behind the two screens:
1. Roster (list kids → add kid / delete kid with confirmation)
2. Calculations (one kid's items → add item / delete item / delete day)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every mutation is saved immediately, as a whole collection
- A failed save leaves the in-memory collection unchanged
- Invalid input and unknown ids are no-ops, never errors
- Every mutation is audited

UI-only state (open form, expanded days, pending confirmation) lives in
the view-state models and is never written to storage.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Union
from uuid import UUID

import structlog

from grandma_points.aggregation import (
    date_key,
    day_total,
    grand_total,
    group_by_date,
    sorted_date_keys,
    summarize,
)
from grandma_points.audit import AuditLogger
from grandma_points.config import Settings, get_settings
from grandma_points.models.calculation import (
    CalculationRecord,
    CalculationSummary,
    ValidationResult,
)
from grandma_points.models.view_state import (
    CalculationDraft,
    CalculationViewState,
    EntryMode,
    RosterViewState,
)
from grandma_points.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    RecordStore,
    RosterStore,
    StorageError,
)
from grandma_points.validation import CalculationValidator


logger = structlog.get_logger(__name__)


class CalculationFlow:
    """
    Orchestrates one kid's calculation screen.

    Flow:
    1. Load → Read the kid's collection (empty if missing or corrupt)
    2. Add → Validate form text, append, save, expand the record's day
    3. Delete → Remove one record, or every record of one day, then save

    State machine:
        IDLE -> ADDING -> IDLE                  (cancel, or successful add)
        IDLE -> CONFIRMING_DAY_DELETE -> IDLE   (cancel, or confirm)
    """

    def __init__(
        self,
        kid_name: str,
        record_store: RecordStore,
        validator: Optional[CalculationValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self._kid_name = kid_name
        self._record_store = record_store
        self._validator = validator or CalculationValidator()
        self._audit_logger = audit_logger
        self._today = today or date.today

        self.calculations: list[CalculationRecord] = []
        self.view_state = CalculationViewState()
        self.draft = CalculationDraft(selected_date=self._today())
        self.last_validation: Optional[ValidationResult] = None

    @property
    def kid_name(self) -> str:
        return self._kid_name

    @property
    def storage_key(self) -> str:
        return self._record_store.key_for(self._kid_name)

    def load(self) -> list[CalculationRecord]:
        """Load stored records and expand today's section."""
        self.calculations = self._record_store.load(self._kid_name)
        self.view_state.expanded_days.add(date_key(self._today()))
        return self.calculations

    # -------------------------------------------------------------------------
    # Derived values (recomputed on every read)
    # -------------------------------------------------------------------------

    @property
    def grouped_calculations(self) -> dict[str, list[CalculationRecord]]:
        return group_by_date(self.calculations)

    @property
    def sorted_dates(self) -> list[str]:
        return sorted_date_keys(self.grouped_calculations)

    @property
    def total_points(self) -> Decimal:
        return grand_total(self.calculations)

    def day_total(self, day: str) -> Decimal:
        return day_total(self.grouped_calculations.get(day, []))

    def summary(self) -> CalculationSummary:
        return summarize(self.calculations)

    def describe_validation(self, result: ValidationResult) -> str:
        return self._validator.get_user_friendly_summary(result)

    # -------------------------------------------------------------------------
    # UI state transitions
    # -------------------------------------------------------------------------

    def toggle_section_expansion(self, day: str) -> None:
        expanded = self.view_state.expanded_days
        if day in expanded:
            expanded.remove(day)
        else:
            expanded.add(day)

    def open_add_form(self) -> None:
        if self.view_state.mode == EntryMode.IDLE:
            self.view_state.mode = EntryMode.ADDING

    def cancel_add(self) -> None:
        """Close the form; the date goes back to today."""
        if self.view_state.mode != EntryMode.ADDING:
            return
        self.view_state.mode = EntryMode.IDLE
        self.view_state.show_date_picker = False
        self.draft.selected_date = self._today()

    def toggle_add_form(self) -> None:
        if self.view_state.is_adding:
            self.cancel_add()
        else:
            self.open_add_form()

    def toggle_date_picker(self) -> None:
        self.view_state.show_date_picker = not self.view_state.show_date_picker

    def request_day_delete(self, day: str) -> None:
        self.view_state.mode = EntryMode.CONFIRMING_DAY_DELETE
        self.view_state.day_to_delete = day

    def cancel_day_delete(self) -> None:
        if self.view_state.is_confirming_day_delete:
            self.view_state.mode = EntryMode.IDLE
        self.view_state.day_to_delete = None

    def confirm_day_delete(self, correlation_id: Optional[UUID] = None) -> int:
        """
        Delete the day awaiting confirmation.

        Returns:
            Number of records removed (0 if nothing was pending)
        """
        day = self.view_state.day_to_delete
        if not self.view_state.is_confirming_day_delete or day is None:
            return 0
        try:
            return self.delete_day(day, correlation_id=correlation_id)
        finally:
            self.view_state.mode = EntryMode.IDLE
            self.view_state.day_to_delete = None

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_calculation(
        self,
        label: Optional[str] = None,
        price: Optional[str] = None,
        quantity: Optional[str] = None,
        day: Optional[Union[date, str]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[CalculationRecord], ValidationResult]:
        """
        Validate the form and add a record.

        Any argument left as None is taken from the current draft.

        Returns:
            (record, validation_result); record is None if rejected.
            A rejected add changes nothing and keeps the form open.

        Raises:
            StorageError: If the save fails (the collection is unchanged)
        """
        record, result = self._validator.build_record(
            label=self.draft.label if label is None else label,
            price=self.draft.price if price is None else price,
            quantity=self.draft.quantity if quantity is None else quantity,
            day=self.draft.selected_date if day is None else day,
        )
        self.last_validation = result

        if record is None:
            if self._audit_logger:
                self._audit_logger.log_validation_failed(
                    kid_name=self._kid_name,
                    issues=[
                        {"field": i.field, "type": i.issue_type, "message": i.message}
                        for i in result.issues
                        if i.severity == "error"
                    ],
                    correlation_id=correlation_id,
                )
            return None, result

        self._commit([*self.calculations, record], correlation_id)

        self.view_state.expanded_days.add(record.date)
        self.draft.clear_inputs()
        self.view_state.mode = EntryMode.IDLE
        self.view_state.show_date_picker = False

        if self._audit_logger:
            self._audit_logger.log_record_added(
                kid_name=self._kid_name,
                record=record,
                correlation_id=correlation_id,
            )

        return record, result

    def delete_calculation(
        self,
        record_id: Union[UUID, str],
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete one record by id.

        Returns:
            True if a record was removed; False (and no save) if the id is unknown
        """
        target = str(record_id)
        index = next(
            (i for i, record in enumerate(self.calculations) if str(record.id) == target),
            None,
        )
        if index is None:
            return False

        removed = self.calculations[index]
        remaining = self.calculations[:index] + self.calculations[index + 1:]
        self._commit(remaining, correlation_id)

        # Collapse the day if that was its last record
        if not any(record.date == removed.date for record in remaining):
            self.view_state.expanded_days.discard(removed.date)

        if self._audit_logger:
            self._audit_logger.log_record_deleted(
                kid_name=self._kid_name,
                record=removed,
                correlation_id=correlation_id,
            )
        return True

    def delete_day(self, day: str, correlation_id: Optional[UUID] = None) -> int:
        """
        Delete every record dated `day`.

        Returns:
            Number of records removed; 0 means nothing matched and nothing was saved
        """
        remaining = [record for record in self.calculations if record.date != day]
        removed_count = len(self.calculations) - len(remaining)
        self.view_state.expanded_days.discard(day)

        if removed_count == 0:
            return 0

        self._commit(remaining, correlation_id)

        if self._audit_logger:
            self._audit_logger.log_day_deleted(
                kid_name=self._kid_name,
                day=day,
                removed_count=removed_count,
                correlation_id=correlation_id,
            )
        return removed_count

    def _commit(
        self,
        records: list[CalculationRecord],
        correlation_id: Optional[UUID],
    ) -> None:
        """Save first, then swap the in-memory collection."""
        try:
            self._record_store.save(self._kid_name, records)
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_save_failed(
                    key=self.storage_key,
                    error_message=str(e),
                    kid_name=self._kid_name,
                    correlation_id=correlation_id,
                )
            raise
        self.calculations = records


class RosterFlow:
    """
    Orchestrates the kids list screen.

    Flow:
    1. Load → Read the roster (empty if missing or corrupt)
    2. Add → Append a new, non-blank, not-yet-listed name and select it
    3. Delete → Toggle delete mode, pick a kid, confirm

    Deleting a kid does NOT delete the kid's records unless purging is
    requested, either per call or through the app settings. Re-adding the
    same name brings the records back.
    """

    def __init__(
        self,
        roster_store: RosterStore,
        record_store: RecordStore,
        validator: Optional[CalculationValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        purge_records_on_delete: bool = False,
        today: Optional[Callable[[], date]] = None,
    ):
        self._roster_store = roster_store
        self._record_store = record_store
        self._validator = validator or CalculationValidator()
        self._audit_logger = audit_logger
        self._purge_records_on_delete = purge_records_on_delete
        self._today = today

        self.kids: list[str] = []
        self.view_state = RosterViewState()

    def load(self) -> list[str]:
        self.kids = self._roster_store.load()
        return self.kids

    def add_kid(self, name: str, correlation_id: Optional[UUID] = None) -> bool:
        """
        Add a kid to the end of the roster and select it.

        Returns:
            False (no change) for a blank name or a name already listed
        """
        name = name.strip()
        if not name or name in self.kids:
            return False

        self._save([*self.kids, name], correlation_id)
        self.view_state.selected_kid = name

        if self._audit_logger:
            self._audit_logger.log_kid_added(kid_name=name, correlation_id=correlation_id)
        return True

    def toggle_delete_mode(self) -> None:
        self.view_state.delete_mode = bool(self.kids) and not self.view_state.delete_mode
        if not self.view_state.delete_mode:
            self.view_state.kid_to_delete = None

    def request_delete(self, name: str) -> None:
        if name in self.kids:
            self.view_state.kid_to_delete = name

    def cancel_delete(self) -> None:
        self.view_state.kid_to_delete = None

    def confirm_delete(self, correlation_id: Optional[UUID] = None) -> bool:
        name = self.view_state.kid_to_delete
        self.view_state.kid_to_delete = None
        if name is None:
            return False
        return self.delete_kid(name, correlation_id=correlation_id)

    def delete_kid(
        self,
        name: str,
        purge_records: Optional[bool] = None,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Remove a kid from the roster.

        Args:
            name: Kid to remove
            purge_records: Also delete the kid's stored records.
                    None uses the configured default.

        Returns:
            True if the kid was listed and removed
        """
        if name not in self.kids:
            return False

        index = self.kids.index(name)
        self._save(self.kids[:index] + self.kids[index + 1:], correlation_id)

        if not self.kids:
            self.view_state.delete_mode = False
        if self.view_state.selected_kid == name:
            self.view_state.selected_kid = None

        purge = self._purge_records_on_delete if purge_records is None else purge_records
        if purge:
            self._purge(name, correlation_id)

        if self._audit_logger:
            self._audit_logger.log_kid_deleted(
                kid_name=name,
                records_purged=purge,
                correlation_id=correlation_id,
            )
        return True

    def orphaned_kids(self) -> list[str]:
        """Kids with stored records but no roster entry."""
        return [
            name for name in self._record_store.stored_kid_names()
            if name not in self.kids
        ]

    def purge_orphaned(self, name: str, correlation_id: Optional[UUID] = None) -> bool:
        """Delete the records of a kid who is no longer on the roster."""
        if name in self.kids:
            return False
        return self._purge(name, correlation_id)

    def open_kid(self, name: str) -> CalculationFlow:
        """Select a kid and return that kid's loaded calculation flow."""
        self.view_state.selected_kid = name
        flow = CalculationFlow(
            kid_name=name,
            record_store=self._record_store,
            validator=self._validator,
            audit_logger=self._audit_logger,
            today=self._today,
        )
        flow.load()
        return flow

    def close_kid(self) -> None:
        self.view_state.selected_kid = None

    def _purge(self, name: str, correlation_id: Optional[UUID]) -> bool:
        removed = self._record_store.clear(name)
        if removed and self._audit_logger:
            self._audit_logger.log_records_purged(kid_name=name, correlation_id=correlation_id)
        return removed

    def _save(self, kids: list[str], correlation_id: Optional[UUID]) -> None:
        try:
            self._roster_store.save(kids)
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_save_failed(
                    key=self._roster_store.key,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        self.kids = kids


def create_store(settings: Settings, use_storage: bool = True) -> KeyValueStoreInterface:
    """Build the configured key-value backend."""
    storage_settings = settings.storage
    if use_storage and storage_settings.backend == "json":
        return JsonFileKeyValueStore(storage_settings.data_path)
    return InMemoryKeyValueStore()


def create_app_components(
    settings: Optional[Settings] = None,
    use_storage: bool = True,
) -> tuple[RosterFlow, AuditLogger, KeyValueStoreInterface]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; defaults to the cached app settings.
        use_storage: Whether to use the configured on-disk store.
                    Set to False for an in-memory session.

    Returns:
        (roster_flow, audit_logger, store)
    """
    settings = settings or get_settings()
    app_settings = settings.app
    storage_settings = settings.storage

    audit_logger = AuditLogger(history_size=app_settings.audit_history_size)
    store = create_store(settings, use_storage=use_storage)

    def build_roster(kv_store: KeyValueStoreInterface) -> RosterFlow:
        record_store = RecordStore(
            kv_store,
            key_prefix=storage_settings.calculations_key_prefix,
            audit_logger=audit_logger,
        )
        roster_store = RosterStore(
            kv_store,
            key=storage_settings.roster_key,
            audit_logger=audit_logger,
        )
        return RosterFlow(
            roster_store=roster_store,
            record_store=record_store,
            audit_logger=audit_logger,
            purge_records_on_delete=app_settings.purge_records_on_kid_delete,
        )

    roster_flow = build_roster(store)
    try:
        roster_flow.load()
    except StorageError as e:
        # Store not readable - continue with an in-memory session
        logger.warning("storage_unavailable", error=str(e))
        store = InMemoryKeyValueStore()
        roster_flow = build_roster(store)
        roster_flow.load()

    return roster_flow, audit_logger, store
