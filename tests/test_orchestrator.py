"""
Flow tests for the roster and calculation screens.

Every flow runs against the in-memory store with a fixed "today".
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from grandma_points.config import Settings
from grandma_points.models.audit import AuditEventType
from grandma_points.models.view_state import EntryMode
from grandma_points.orchestrator import (
    CalculationFlow,
    RosterFlow,
    create_app_components,
)
from grandma_points.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    RecordStore,
    RosterStore,
    StorageWriteError,
)


TODAY = date(2025, 3, 1)


class FailingKeyValueStore(InMemoryKeyValueStore):
    """In-memory store whose writes can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    def set(self, key, value):
        if self.fail_writes:
            raise StorageWriteError("disk full")
        super().set(key, value)

    def delete(self, key):
        if self.fail_writes:
            raise StorageWriteError("disk full")
        return super().delete(key)


@pytest.fixture
def flow(record_store, audit_logger):
    calculation_flow = CalculationFlow(
        kid_name="Ava",
        record_store=record_store,
        audit_logger=audit_logger,
        today=lambda: TODAY,
    )
    calculation_flow.load()
    return calculation_flow


@pytest.fixture
def roster(roster_store, record_store, audit_logger):
    roster_flow = RosterFlow(
        roster_store=roster_store,
        record_store=record_store,
        audit_logger=audit_logger,
        today=lambda: TODAY,
    )
    roster_flow.load()
    return roster_flow


class TestCalculationFlow:
    """Tests for adding and deleting one kid's records."""

    def test_chores_scenario(self, flow, record_store):
        """Test add then delete-day against an empty store."""
        record, result = flow.add_calculation("chores", "5", "2", "2025-03-01")

        assert result.is_valid
        assert len(record_store.load("Ava")) == 1
        assert flow.day_total("2025-03-01") == Decimal("10")
        assert flow.total_points == Decimal("10")

        assert flow.delete_day("2025-03-01") == 1
        assert flow.calculations == []
        assert record_store.load("Ava") == []
        assert flow.total_points == Decimal("0")

    def test_load_expands_today(self, flow):
        assert flow.view_state.is_expanded("2025-03-01")

    def test_load_reads_existing_records(self, record_store, sample_records):
        record_store.save("Ava", sample_records)
        flow = CalculationFlow("Ava", record_store, today=lambda: TODAY)
        assert flow.load() == sample_records
        assert flow.sorted_dates == ["2025-02-10", "2025-01-15", "2025-01-01"]

    def test_add_uses_draft(self, flow):
        """Test that arguments default to the form draft."""
        flow.open_add_form()
        flow.draft.label = "homework"
        flow.draft.price = "1.25"
        flow.draft.quantity = "4"
        flow.draft.selected_date = date(2025, 2, 10)

        record, _ = flow.add_calculation()

        assert record.label == "homework"
        assert record.date == "2025-02-10"
        assert record.total == Decimal("5.00")
        # Form closes, inputs clear, picked date is kept
        assert flow.view_state.mode == EntryMode.IDLE
        assert flow.draft.label == ""
        assert flow.draft.quantity == "1"
        assert flow.draft.selected_date == date(2025, 2, 10)
        assert flow.view_state.is_expanded("2025-02-10")

    def test_new_records_are_appended(self, flow):
        flow.add_calculation("a", "1", "1", "2025-03-01")
        flow.add_calculation("b", "1", "1", "2025-03-01")
        assert [r.label for r in flow.grouped_calculations["2025-03-01"]] == ["a", "b"]

    @pytest.mark.parametrize("label,price,quantity", [
        ("", "5", "1"),
        ("chores", "five", "1"),
        ("chores", "5", ""),
        ("chores", "5", "two"),
    ])
    def test_invalid_add_is_noop(self, flow, store, label, price, quantity):
        """Test that rejected input changes nothing and saves nothing."""
        flow.open_add_form()
        record, result = flow.add_calculation(label, price, quantity, "2025-03-01")

        assert record is None
        assert not result.is_valid
        assert flow.calculations == []
        assert store.get("calculations_Ava") is None
        assert flow.view_state.is_adding
        assert flow.last_validation is result

    def test_invalid_add_is_audited(self, flow, audit_logger):
        flow.add_calculation("", "5", "1", "2025-03-01")
        assert audit_logger.recent_events()[0].event_type == AuditEventType.VALIDATION_FAILED

    def test_huge_price_keeps_saved_records(self, flow, record_store):
        """Test that an unstorable price is refused and earlier records reload."""
        flow.add_calculation("chores", "5", "2", "2025-03-01")
        record, result = flow.add_calculation("big", "1e400", "1", "2025-03-01")

        assert record is None
        assert result.error_fields == ["price"]

        reloaded = CalculationFlow("Ava", record_store, today=lambda: TODAY)
        assert [r.label for r in reloaded.load()] == ["chores"]
        assert reloaded.total_points == Decimal("10")

    def test_warning_add_goes_through(self, flow):
        record, result = flow.add_calculation("penalty", "-3", "1", "2025-03-01")
        assert record is not None
        assert result.warnings == ["Price is negative"]
        assert flow.total_points == Decimal("-3")

    def test_delete_day_is_idempotent(self, flow, store):
        flow.add_calculation("a", "1", "1", "2025-03-01")
        flow.add_calculation("b", "2", "1", "2025-02-28")

        assert flow.delete_day("2025-03-01") == 1
        after_once = list(flow.calculations)
        stored_once = store.get("calculations_Ava")

        assert flow.delete_day("2025-03-01") == 0
        assert flow.calculations == after_once
        assert store.get("calculations_Ava") == stored_once

    def test_delete_day_collapses_section(self, flow):
        flow.add_calculation("a", "1", "1", "2025-03-01")
        flow.delete_day("2025-03-01")
        assert not flow.view_state.is_expanded("2025-03-01")

    def test_delete_calculation(self, flow, record_store):
        first, _ = flow.add_calculation("a", "1", "1", "2025-03-01")
        second, _ = flow.add_calculation("b", "2", "1", "2025-03-01")

        assert flow.delete_calculation(first.id) is True
        assert flow.calculations == [second]
        assert record_store.load("Ava") == [second]
        assert flow.view_state.is_expanded("2025-03-01")

        assert flow.delete_calculation(str(second.id)) is True
        assert not flow.view_state.is_expanded("2025-03-01")

    def test_delete_unknown_record_is_noop(self, flow, audit_logger):
        flow.add_calculation("a", "1", "1", "2025-03-01")
        before = len(audit_logger.recent_events())

        assert flow.delete_calculation(uuid4()) is False
        assert len(flow.calculations) == 1
        assert len(audit_logger.recent_events()) == before

    def test_toggle_section(self, flow):
        flow.toggle_section_expansion("2025-01-01")
        assert flow.view_state.is_expanded("2025-01-01")
        flow.toggle_section_expansion("2025-01-01")
        assert not flow.view_state.is_expanded("2025-01-01")

    def test_summary(self, flow):
        flow.add_calculation("chores", "2.50", "3", "2025-03-01")
        flow.add_calculation("homework", "1", "1", "2025-03-01")
        summary = flow.summary()
        assert summary.days[0].total == Decimal("8.50")
        assert summary.grand_total == Decimal("8.5")


class TestCalculationStateMachine:
    """Tests for the add-form and day-delete confirmation states."""

    def test_open_and_cancel_add(self, flow):
        flow.open_add_form()
        assert flow.view_state.mode == EntryMode.ADDING

        flow.toggle_date_picker()
        flow.draft.selected_date = date(2024, 12, 24)
        flow.cancel_add()

        assert flow.view_state.mode == EntryMode.IDLE
        assert not flow.view_state.show_date_picker
        assert flow.draft.selected_date == TODAY

    def test_toggle_add_form(self, flow):
        flow.toggle_add_form()
        assert flow.view_state.is_adding
        flow.toggle_add_form()
        assert not flow.view_state.is_adding

    def test_cannot_open_form_while_confirming(self, flow):
        flow.request_day_delete("2025-03-01")
        flow.open_add_form()
        assert flow.view_state.mode == EntryMode.CONFIRMING_DAY_DELETE

    def test_cancel_day_delete(self, flow):
        flow.add_calculation("a", "1", "1", "2025-03-01")
        flow.request_day_delete("2025-03-01")
        assert flow.view_state.is_confirming_day_delete

        flow.cancel_day_delete()
        assert flow.view_state.mode == EntryMode.IDLE
        assert flow.view_state.day_to_delete is None
        assert len(flow.calculations) == 1

    def test_confirm_day_delete(self, flow):
        flow.add_calculation("a", "1", "1", "2025-03-01")
        flow.add_calculation("b", "1", "1", "2025-03-01")
        flow.request_day_delete("2025-03-01")

        assert flow.confirm_day_delete() == 2
        assert flow.view_state.mode == EntryMode.IDLE
        assert flow.calculations == []

    def test_confirm_without_request(self, flow):
        assert flow.confirm_day_delete() == 0


class TestSaveFailures:
    """Tests that a failed save leaves the collection as it was."""

    @pytest.fixture
    def failing_store(self):
        return FailingKeyValueStore()

    @pytest.fixture
    def failing_flow(self, failing_store, audit_logger):
        record_store = RecordStore(failing_store, audit_logger=audit_logger)
        flow = CalculationFlow("Ava", record_store, audit_logger=audit_logger, today=lambda: TODAY)
        flow.load()
        return flow

    def test_failed_add_rolls_back(self, failing_flow, failing_store, audit_logger):
        failing_flow.add_calculation("a", "1", "1", "2025-03-01")
        failing_store.fail_writes = True

        with pytest.raises(StorageWriteError):
            failing_flow.add_calculation("b", "1", "1", "2025-03-01")

        assert [r.label for r in failing_flow.calculations] == ["a"]
        event = audit_logger.recent_events()[0]
        assert event.event_type == AuditEventType.SAVE_FAILED
        assert event.entity_id == "calculations_Ava"

    def test_failed_delete_day_rolls_back(self, failing_flow, failing_store):
        failing_flow.add_calculation("a", "1", "1", "2025-03-01")
        failing_flow.request_day_delete("2025-03-01")
        failing_store.fail_writes = True

        with pytest.raises(StorageWriteError):
            failing_flow.confirm_day_delete()

        assert len(failing_flow.calculations) == 1
        assert failing_flow.view_state.mode == EntryMode.IDLE

    def test_failed_roster_save(self, failing_store, audit_logger):
        roster = RosterFlow(
            RosterStore(failing_store),
            RecordStore(failing_store),
            audit_logger=audit_logger,
        )
        failing_store.fail_writes = True

        with pytest.raises(StorageWriteError):
            roster.add_kid("Ava")
        assert roster.kids == []
        assert roster.view_state.selected_kid is None


class TestRosterFlow:
    """Tests for the kids list."""

    def test_add_kid(self, roster, roster_store):
        assert roster.add_kid("  Ava ") is True
        assert roster.kids == ["Ava"]
        assert roster_store.load() == ["Ava"]
        assert roster.view_state.selected_kid == "Ava"

    def test_add_keeps_order(self, roster):
        for name in ["Zoe", "Ava", "Ben"]:
            roster.add_kid(name)
        assert roster.kids == ["Zoe", "Ava", "Ben"]

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_rejected(self, roster, store, name):
        assert roster.add_kid(name) is False
        assert store.get("kids") is None

    def test_duplicate_name_rejected(self, roster):
        roster.add_kid("Ava")
        assert roster.add_kid("Ava") is False
        assert roster.kids == ["Ava"]

    def test_delete_with_confirmation(self, roster, roster_store):
        roster.add_kid("Ava")
        roster.add_kid("Ben")
        roster.toggle_delete_mode()
        assert roster.view_state.delete_mode

        roster.request_delete("Ava")
        assert roster.view_state.is_confirming_delete
        assert roster.confirm_delete() is True

        assert roster.kids == ["Ben"]
        assert roster_store.load() == ["Ben"]
        assert roster.view_state.kid_to_delete is None
        assert roster.view_state.delete_mode

    def test_cancel_delete(self, roster):
        roster.add_kid("Ava")
        roster.toggle_delete_mode()
        roster.request_delete("Ava")
        roster.cancel_delete()
        assert roster.kids == ["Ava"]
        assert not roster.view_state.is_confirming_delete

    def test_deleting_last_kid_leaves_delete_mode(self, roster):
        roster.add_kid("Ava")
        roster.toggle_delete_mode()
        roster.delete_kid("Ava")
        assert roster.kids == []
        assert not roster.view_state.delete_mode

    def test_delete_mode_needs_kids(self, roster):
        roster.toggle_delete_mode()
        assert not roster.view_state.delete_mode

    def test_delete_unknown_kid_is_noop(self, roster):
        roster.add_kid("Ava")
        assert roster.delete_kid("Ben") is False
        assert roster.kids == ["Ava"]

    def test_delete_clears_selection(self, roster):
        roster.add_kid("Ava")
        roster.delete_kid("Ava")
        assert roster.view_state.selected_kid is None

    def test_open_kid(self, roster, record_store, sample_records):
        roster.add_kid("Ava")
        record_store.save("Ava", sample_records)

        flow = roster.open_kid("Ava")
        assert flow.kid_name == "Ava"
        assert flow.calculations == sample_records
        assert flow.view_state.is_expanded("2025-03-01")

        roster.close_kid()
        assert roster.view_state.selected_kid is None


class TestOrphanedRecords:
    """Tests for records left behind by removed kids."""

    def test_records_kept_by_default(self, roster, record_store, sample_records):
        roster.add_kid("Ava")
        record_store.save("Ava", sample_records)

        roster.delete_kid("Ava")

        assert record_store.load("Ava") == sample_records
        assert roster.orphaned_kids() == ["Ava"]

    def test_re_adding_restores_records(self, roster, record_store, sample_records):
        roster.add_kid("Ava")
        record_store.save("Ava", sample_records)
        roster.delete_kid("Ava")

        roster.add_kid("Ava")
        assert roster.open_kid("Ava").calculations == sample_records
        assert roster.orphaned_kids() == []

    def test_purge_on_delete(self, roster, record_store, sample_records, audit_logger):
        roster.add_kid("Ava")
        record_store.save("Ava", sample_records)

        roster.delete_kid("Ava", purge_records=True)

        assert record_store.load("Ava") == []
        assert roster.orphaned_kids() == []
        types = [e.event_type for e in audit_logger.recent_events(limit=2)]
        assert types == [AuditEventType.KID_DELETED, AuditEventType.RECORDS_PURGED]

    def test_purge_default_from_constructor(self, roster_store, record_store, sample_records):
        roster = RosterFlow(roster_store, record_store, purge_records_on_delete=True)
        roster.add_kid("Ava")
        record_store.save("Ava", sample_records)

        roster.delete_kid("Ava")
        assert record_store.load("Ava") == []

    def test_purge_orphaned(self, roster, record_store, sample_records):
        record_store.save("Ghost", sample_records)
        roster.add_kid("Ava")
        record_store.save("Ava", sample_records)

        assert roster.orphaned_kids() == ["Ghost"]
        assert roster.purge_orphaned("Ava") is False
        assert roster.purge_orphaned("Ghost") is True
        assert roster.orphaned_kids() == []
        assert record_store.load("Ava") == sample_records


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("GRANDMA_POINTS_STORAGE_BACKEND", "memory")

        roster, audit_logger, store = create_app_components(Settings())

        assert isinstance(store, InMemoryKeyValueStore)
        assert roster.kids == []
        assert roster.add_kid("Ava")
        assert audit_logger.recent_events()[0].event_type == AuditEventType.KID_ADDED

    def test_json_backend_persists(self, monkeypatch, tmp_path):
        data_file = tmp_path / "store.json"
        monkeypatch.setenv("GRANDMA_POINTS_STORAGE_BACKEND", "json")
        monkeypatch.setenv("GRANDMA_POINTS_STORAGE_DATA_FILE", str(data_file))

        roster, _, store = create_app_components(Settings())
        assert isinstance(store, JsonFileKeyValueStore)
        roster.add_kid("Ava")
        roster.open_kid("Ava").add_calculation("chores", "5", "2", "2025-03-01")

        reopened, _, _ = create_app_components(Settings())
        assert reopened.kids == ["Ava"]
        assert reopened.open_kid("Ava").total_points == Decimal("10")

    def test_unreadable_store_falls_back_to_memory(self, monkeypatch, tmp_path):
        # A directory where the data file should be cannot be read
        monkeypatch.setenv("GRANDMA_POINTS_STORAGE_BACKEND", "json")
        monkeypatch.setenv("GRANDMA_POINTS_STORAGE_DATA_FILE", str(tmp_path))

        roster, _, store = create_app_components(Settings())
        assert isinstance(store, InMemoryKeyValueStore)
        assert roster.kids == []

    def test_use_storage_false(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GRANDMA_POINTS_STORAGE_DATA_FILE", str(tmp_path / "store.json"))
        _, _, store = create_app_components(Settings(), use_storage=False)
        assert isinstance(store, InMemoryKeyValueStore)

    def test_purge_setting(self, monkeypatch):
        monkeypatch.setenv("GRANDMA_POINTS_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("PURGE_RECORDS_ON_KID_DELETE", "true")

        roster, _, store = create_app_components(Settings())
        roster.add_kid("Ava")
        roster.open_kid("Ava").add_calculation("chores", "5", "1", "2025-03-01")
        roster.delete_kid("Ava")

        assert store.get("calculations_Ava") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
