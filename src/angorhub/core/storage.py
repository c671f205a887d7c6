"""
Durable key/value storage for persisted configuration.

Components persist plain JSON-serializable structures under fixed keys
(``angor:indexer-config``, ``angor:relay-config``, ``angor:network``,
``indexer-health-{network}``). Storage is single-process and
single-writer: every ``set`` replaces the previous value (last writer
wins), so no locking is needed.

Attributes:
    KeyValueStore: Abstract interface.
    MemoryStore: Process-local store, used in tests and one-shot CLI runs.
    JsonFileStore: All keys in one JSON document, rewritten atomically on
        every change.
"""

from __future__ import annotations

import copy
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .exceptions import StorageError
from .logger import Logger


class KeyValueStore(ABC):
    """Minimal synchronous key/value interface.

    Values are JSON-compatible structures. ``get`` returns ``None`` for a
    missing key; callers validate the shape of what they read.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None: ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``.

        Raises:
            StorageError: If the value cannot be persisted.
        """

    @abstractmethod
    def delete(self, key: str) -> None: ...


class MemoryStore(KeyValueStore):
    """In-process store. Values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        try:
            # Round-trip through JSON so non-serializable values fail like on disk
            self._data[key] = json.loads(json.dumps(value))
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key!r} is not JSON-serializable: {e}") from e

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """File-backed store keeping every key in a single JSON object.

    The document is read once on first access. A missing file is an empty
    store; a corrupt file is logged and discarded so startup never fails on
    bad persisted data. Writes go to a temporary sibling and are moved into
    place with ``os.replace``.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._data: dict[str, Any] | None = None
        self._logger = Logger("storage")

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        data: dict[str, Any] = {}
        if self._path.exists():
            try:
                parsed = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                self._logger.warning("store_unreadable", path=str(self._path), error=str(e))
            else:
                if isinstance(parsed, dict):
                    data = parsed
                else:
                    self._logger.warning(
                        "store_malformed", path=str(self._path), type=type(parsed).__name__
                    )
        self._data = data
        return data

    def _flush(self, data: dict[str, Any]) -> None:
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}") from e

    def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._load().get(key))

    def set(self, key: str, value: Any) -> None:
        data = dict(self._load())
        try:
            data[key] = json.loads(json.dumps(value))
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key!r} is not JSON-serializable: {e}") from e
        self._flush(data)
        self._data = data

    def delete(self, key: str) -> None:
        data = dict(self._load())
        if key not in data:
            return
        del data[key]
        self._flush(data)
        self._data = data
