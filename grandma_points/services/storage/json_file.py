"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON document on local disk is the storage backend:
1. No database setup required
2. The whole store is human-readable
3. Data volume is tiny (a few dozen records per child)

TRADEOFFS:
- Every write rewrites the whole file (fine at this scale)
- One writer only; there is no locking between processes

Writes go to a temporary file that is then renamed over the target,
so a crash mid-write leaves the previous file intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from grandma_points.services.storage.interface import (
    KeyValueStoreInterface,
    StorageError,
    StorageWriteError,
)


logger = structlog.get_logger(__name__)

CORRUPT_SUFFIX = ".corrupt"


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    Key-value store backed by one JSON object on disk.

    The file maps each key to its serialized text value.
    It is read lazily on first access and cached afterwards.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._data: Optional[dict[str, str]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        """Read the file once; a missing file is an empty store."""
        if self._data is not None:
            return self._data

        if not self._path.exists():
            self._data = {}
            return self._data

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read store file {self._path}: {e}")

        try:
            data = json.loads(raw) if raw.strip() else {}
            if not isinstance(data, dict) or not all(
                isinstance(value, str) for value in data.values()
            ):
                raise ValueError("store file must hold an object of string values")
        except ValueError as e:
            self._quarantine(str(e))
            data = {}

        self._data = data
        return self._data

    def _quarantine(self, reason: str) -> None:
        """Move an unreadable file aside so the next write can't destroy it."""
        backup = self._path.with_name(self._path.name + CORRUPT_SUFFIX)
        logger.warning(
            "store_file_unreadable",
            path=str(self._path),
            backup=str(backup),
            error=reason,
        )
        try:
            os.replace(self._path, backup)
        except OSError as e:
            raise StorageError(f"Failed to move aside corrupt store file: {e}")

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_atomically(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=self._path.name + ".",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            # Leave no temp files behind on failure
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _commit(self, data: dict[str, str]) -> None:
        try:
            self._write_atomically(data)
        except OSError as e:
            raise StorageWriteError(f"Failed to write store file {self._path}: {e}")
        self._data = data

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = dict(self._load())
        data[key] = value
        self._commit(data)

    def delete(self, key: str) -> bool:
        current = self._load()
        if key not in current:
            return False
        data = {k: v for k, v in current.items() if k != key}
        self._commit(data)
        return True

    def keys(self) -> list[str]:
        return list(self._load())
