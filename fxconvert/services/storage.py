"""Key/value persistence used for the last conversion result.

SqliteKeyValueStore keeps values in the metadata table through Database;
blocking SQLite calls run in a worker thread so callers can simply await.
InMemoryKeyValueStore is process-local and used for ephemeral runs and tests.
Both report failures as StorageError.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from abc import ABC, abstractmethod
from typing import Dict, Optional

from fxconvert.core.errors import StorageError
from fxconvert.db.dal import Database

logger = logging.getLogger("fxconvert.storage")


class KeyValueStore(ABC):
    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]: ...

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class SqliteKeyValueStore(KeyValueStore):
    def __init__(self, db: Database):
        self._db = db

    async def get_item(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._db.get_value, key)
        except sqlite3.Error as e:
            raise StorageError(f"could not read '{key}': {e}") from e

    async def set_item(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._db.set_value, key, value)
        except sqlite3.Error as e:
            raise StorageError(f"could not write '{key}': {e}") from e
        logger.debug("stored %s", key, extra={"key": key})


__all__ = ["KeyValueStore", "InMemoryKeyValueStore", "SqliteKeyValueStore"]
