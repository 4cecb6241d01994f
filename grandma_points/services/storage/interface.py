"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract key-value interface for storage.
This allows us to:
1. Use a JSON file on disk for the real app
2. Use in-memory storage for testing
3. Keep the record and roster logic decoupled from where bytes live

The interface is intentionally tiny - one namespace of text values.
Serialization of records happens one level up, in the record stores.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for a local key-value store.

    Any storage implementation must implement these methods.
    Values are serialized text; the store never interprets them.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: The key to read

        Returns:
            The stored text, or None if nothing is stored under the key
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous value for the key.

        The write is all-or-nothing: after a failure the previous
        value is still in place.

        Args:
            key: The key to write
            value: Serialized text to store

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Args:
            key: The key to remove

        Returns:
            True if the key existed, False otherwise

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """
        List all keys currently stored.

        Returns:
            Keys in insertion order where the backend preserves it
        """
        pass

    def contains(self, key: str) -> bool:
        return self.get(key) is not None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageWriteError(StorageError):
    """Could not write to the storage backend."""
    pass
