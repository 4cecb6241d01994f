"""Shared fixtures: every test runs against an in-memory store."""

from decimal import Decimal

import pytest

from grandma_points.audit import AuditLogger
from grandma_points.models.calculation import CalculationRecord
from grandma_points.services.storage import (
    InMemoryKeyValueStore,
    RecordStore,
    RosterStore,
)


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def audit_logger():
    return AuditLogger(history_size=50)


@pytest.fixture
def record_store(store, audit_logger):
    return RecordStore(store, audit_logger=audit_logger)


@pytest.fixture
def roster_store(store, audit_logger):
    return RosterStore(store, audit_logger=audit_logger)


@pytest.fixture
def sample_records():
    return [
        CalculationRecord(label="chores", price=Decimal("2.50"), quantity=3, date="2025-01-01"),
        CalculationRecord(label="homework", price=Decimal("1"), quantity=1, date="2025-02-10"),
        CalculationRecord(label="3-pointer", price=Decimal("0.10"), quantity=7, date="2025-01-15"),
        CalculationRecord(label="dishes", price=Decimal("4"), quantity=2, date="2025-01-01"),
    ]
