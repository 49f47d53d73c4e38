"""Durable key-value storage for client-side state.

String keys and string values, like browser localStorage. Implementations
raise on I/O failure; callers decide whether a failure matters.
"""

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol


class StorageError(Exception):
    """Raised when the backing store cannot be read or written."""


class KeyValueStorage(Protocol):
    """Minimal persistent key-value interface."""

    def get(self, key: str) -> Optional[str]:
        """Stored value, None when the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key."""
        ...

    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...


class InMemoryStorage:
    """Process-local storage. Shared between store instances given the same object."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """All keys in one JSON document on disk.

    Writes go to a temporary file that replaces the target, so a crash never
    leaves a half-written document. Processes sharing the file are
    last-writer-wins: there is no locking and no change notification.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected document in {self.path}")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: dict[str, str]) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StorageError:
            # Unreadable document is replaced rather than blocking writes
            data = {}
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)
