"""
Property store — flat string key/value persistence.

Holds small settings such as the current environment, the last error id
and the recent error/log lists.

The store enforces nothing beyond "values are strings". Size ceilings are the
caller's job (see push_bounded()).
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterator

# logging_config imports this module, so take the package logger by name
logger = logging.getLogger("workspace_automation.properties")


def _check_value(key: str, value: object) -> None:
    if not isinstance(value, str):
        raise TypeError(
            f"Property '{key}' must be a string, got {type(value).__name__}"
        )


class InMemoryPropertyStore:
    """Process-local store. Used in tests and when no file is configured."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        _check_value(key, value)
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))


class JsonFilePropertyStore:
    """
    Store backed by a single JSON object on disk.

    Every write rewrites the file via a temp file + os.replace, so a crash
    mid-write leaves the previous contents intact. The file is re-read on
    every access; the store is tiny and this keeps separate processes
    (CLI invocations) consistent.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8").strip() or "{}")
        except ValueError as e:
            # Includes JSONDecodeError and UnicodeDecodeError
            logger.warning(f"Ignoring unreadable property file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring {self.path}: expected a JSON object")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        _check_value(key, value)
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def keys(self) -> Iterator[str]:
        return iter(list(self._load()))


# Anything with get/set/delete/keys over string values
PropertyStore = InMemoryPropertyStore | JsonFilePropertyStore


def push_bounded(
    store: PropertyStore,
    key: str,
    entry: dict[str, Any],
    limit: int,
) -> list[dict[str, Any]]:
    """
    Prepend `entry` to the JSON list stored under `key`, keeping `limit` items.

    An unreadable existing value is replaced rather than raised on.

    Returns:
        The list as stored (newest first)
    """
    raw = store.get(key)
    entries: list[dict[str, Any]] = []
    if raw:
        try:
            loaded = json.loads(raw)
            if isinstance(loaded, list):
                entries = loaded
        except json.JSONDecodeError:
            entries = []

    entries.insert(0, entry)
    entries = entries[:limit]
    store.set(key, json.dumps(entries, default=str))
    return entries
