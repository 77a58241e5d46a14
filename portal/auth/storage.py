"""
Client-local key/value storage.

Mirrors a browser's localStorage: string keys, string values, absent keys
are ``None``. Two implementations:

- MemoryStorage: process-local, for tests and ephemeral runs
- FileStorage: a JSON file, survives process restarts
"""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Dict

import structlog

logger = structlog.get_logger(__name__)


class ClientStorage(ABC):
    """Abstract key/value storage."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Value for ``key`` or None."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete ``key``; no-op if absent."""
        pass


class MemoryStorage(ClientStorage):
    """In-memory storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data)


class FileStorage(ClientStorage):
    """
    JSON file storage.

    The whole file is one object of string values. An unreadable or
    malformed file reads as empty; the next write replaces it.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(
                "client_storage_unreadable",
                path=str(self._path),
                error=str(e),
            )
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: Dict[str, str]) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)
        os.replace(tmp_path, self._path)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
