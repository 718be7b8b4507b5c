"""Local key/value stores backing the trip repository."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from .errors import TripStorageError

LOGGER = logging.getLogger(__name__)

__all__ = ["JsonFileStore", "KeyValueStore", "MemoryStore"]


class KeyValueStore(Protocol):
    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Process-local store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """Single JSON document mapping storage keys to serialized strings.

    Writes go to a sibling temp file that then replaces the target, so a crash
    mid-write never leaves a truncated document behind.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_document(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                document = json.load(handle)
        except (OSError, ValueError) as exc:
            raise TripStorageError(f"Cannot read {self.path}: {exc}") from exc
        if not isinstance(document, dict):
            raise TripStorageError(f"{self.path} does not hold a JSON object")
        return document

    def read(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read_document().get(key)
        return value if isinstance(value, str) else None

    def write(self, key: str, value: str) -> None:
        with self._lock:
            try:
                document = self._read_document()
            except TripStorageError:
                LOGGER.warning("Overwriting unreadable store %s", self.path)
                document = {}
            document[key] = value
            temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with temp_path.open("w", encoding="utf-8") as handle:
                    json.dump(document, handle, ensure_ascii=True)
                temp_path.replace(self.path)
            except OSError as exc:
                raise TripStorageError(f"Cannot write {self.path}: {exc}") from exc
