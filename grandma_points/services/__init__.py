"""Services package."""

from grandma_points.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    RecordStore,
    RosterStore,
    StorageError,
    StorageWriteError,
)

__all__ = [
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStoreInterface",
    "RecordStore",
    "RosterStore",
    "StorageError",
    "StorageWriteError",
]
