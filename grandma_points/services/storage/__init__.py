"""
Storage Services Package

Provides the abstract key-value interface, its local implementations,
and the record/roster stores that serialize data on top of it.
"""

from grandma_points.services.storage.interface import (
    KeyValueStoreInterface,
    StorageError,
    StorageWriteError,
)
from grandma_points.services.storage.memory import InMemoryKeyValueStore
from grandma_points.services.storage.json_file import JsonFileKeyValueStore
from grandma_points.services.storage.records import RecordStore, RosterStore

__all__ = [
    # Interfaces
    "KeyValueStoreInterface",
    # Exceptions
    "StorageError",
    "StorageWriteError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    # Record stores
    "RecordStore",
    "RosterStore",
]
