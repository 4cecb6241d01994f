"""
Record and Roster Stores

These sit on top of a KeyValueStoreInterface and own serialization.

DESIGN DECISION: Collections are always read and written whole.
There are no partial updates and no merges: save() replaces the value.

Unreadable stored data is treated as "no data". It is logged and
audited, never raised to the caller.
"""

import json
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from grandma_points.audit import AuditLogger
from grandma_points.models.audit import AuditEventBuilder
from grandma_points.models.calculation import CalculationRecord
from grandma_points.services.storage.interface import KeyValueStoreInterface


logger = structlog.get_logger(__name__)

DEFAULT_CALCULATIONS_KEY_PREFIX = "calculations_"
DEFAULT_ROSTER_KEY = "kids"


class RecordStore:
    """
    Durable storage of each child's record collection.

    One key per child: prefix + child name.
    The value is a JSON array of record objects.
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        key_prefix: str = DEFAULT_CALCULATIONS_KEY_PREFIX,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._key_prefix = key_prefix
        self._audit_logger = audit_logger

    def key_for(self, kid_name: str) -> str:
        return f"{self._key_prefix}{kid_name}"

    def load(self, kid_name: str) -> list[CalculationRecord]:
        """
        Fetch and deserialize a child's full collection.

        Returns an empty list when nothing is stored or when the
        stored value cannot be decoded.
        """
        key = self.key_for(kid_name)
        raw = self._store.get(key)
        if raw is None:
            return []

        try:
            # Numbers decode as Decimal so prices survive exactly
            items = json.loads(raw, parse_float=Decimal)
            if not isinstance(items, list):
                raise ValueError("expected a list of records")
            return [CalculationRecord.model_validate(item) for item in items]
        except ValueError as e:
            # Covers JSON decode errors and pydantic ValidationError
            self._report_unreadable(key, e)
            return []

    def save(self, kid_name: str, records: Iterable[CalculationRecord]) -> None:
        """
        Serialize the full collection and overwrite the stored value.

        Raises:
            StorageError: If the backend write fails
        """
        payload = json.dumps(
            [record.model_dump(mode="json") for record in records]
        )
        self._store.set(self.key_for(kid_name), payload)

    def clear(self, kid_name: str) -> bool:
        """Remove a child's collection entirely. Returns True if it existed."""
        return self._store.delete(self.key_for(kid_name))

    def stored_kid_names(self) -> list[str]:
        """Names of every child with a stored collection."""
        prefix = self._key_prefix
        return [
            key[len(prefix):]
            for key in self._store.keys()
            if key.startswith(prefix) and len(key) > len(prefix)
        ]

    def _report_unreadable(self, key: str, error: Exception) -> None:
        logger.warning("stored_records_unreadable", key=key, error=str(error))
        if self._audit_logger:
            self._audit_logger.log(
                AuditEventBuilder.data_recovered(key=key, error_message=str(error))
            )


class RosterStore:
    """Durable storage of the ordered list of child names."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        key: str = DEFAULT_ROSTER_KEY,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._key = key
        self._audit_logger = audit_logger

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> list[str]:
        raw = self._store.get(self._key)
        if raw is None:
            return []

        try:
            names = json.loads(raw)
            if not isinstance(names, list) or not all(
                isinstance(name, str) for name in names
            ):
                raise ValueError("expected a list of names")
            return names
        except ValueError as e:
            logger.warning("stored_roster_unreadable", key=self._key, error=str(e))
            if self._audit_logger:
                self._audit_logger.log(
                    AuditEventBuilder.data_recovered(key=self._key, error_message=str(e))
                )
            return []

    def save(self, names: Iterable[str]) -> None:
        self._store.set(self._key, json.dumps(list(names), ensure_ascii=False))
