"""
Key-value stores holding the serialized collections.

The repository only needs get/set/remove by string key with text values.

Usage:
    from racebook.storage import JsonFileStore, MemoryStore

    store = JsonFileStore(Path("data"))
    store.set("races", "[]")
    store.get("races")  # '[]'
"""

import os
import re
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass
class StoreError(Exception):
    """Underlying store read/write failure."""
    key: str
    message: str

    def __str__(self) -> str:
        return f"{self.key}: {self.message}"


def _check_key(key: str) -> str:
    if not isinstance(key, str) or not KEY_PATTERN.match(key):
        raise ValueError(f"Invalid store key: {key!r}")
    return key


class KeyValueStore(ABC):
    """Synchronous text-valued key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process store. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(_check_key(key))

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StoreError(key=key, message=f"Value must be text, got {type(value).__name__}")
        self._data[_check_key(key)] = value

    def remove(self, key: str) -> None:
        self._data.pop(_check_key(key), None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore(KeyValueStore):
    """
    One file per key under a directory: <directory>/<key>.json

    Writes go to a temp file first and are swapped in with os.replace,
    so a failed write never leaves a half-written value behind.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_check_key(key)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError(key=key, message=str(e)) from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        if not isinstance(value, str):
            raise StoreError(key=key, message=f"Value must be text, got {type(value).__name__}")

        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(key=key, message=str(e)) from e

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StoreError(key=key, message=str(e)) from e
