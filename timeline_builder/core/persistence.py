"""
Persistence adapters for the timeline data store.

The store only needs to read and write whole collections by key. Three
adapters are provided: in-memory, one JSON file per collection, and a
key/value table reached through async SQLAlchemy.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from timeline_builder.core.models import DEFAULT_COLORS
from timeline_builder.models.db import SettingRecord

logger = logging.getLogger(__name__)


class Collections:
    """Keys of the persisted collections."""
    DATA = "data"
    TAGS = "tags"
    COLORS = "colors"
    BROADCAST = "broadcast"


COLLECTION_DEFAULTS: Dict[str, Any] = {
    Collections.DATA: [],
    Collections.TAGS: [],
    Collections.COLORS: DEFAULT_COLORS,
    Collections.BROADCAST: {},
}


def default_for(key: str) -> Any:
    """Return a fresh copy of the default value for a collection key."""
    return copy.deepcopy(COLLECTION_DEFAULTS.get(key))


class PersistencePort(Protocol):
    """Read-whole / write-whole contract required by the data store."""

    async def get(self, key: str) -> Any:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...


class MemoryPersistence:
    """Keeps collections in a dict. Values are deep-copied on both sides."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Any:
        if key not in self._data:
            return default_for(key)
        return copy.deepcopy(self._data[key])

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class JsonFilePersistence:
    """
    Stores each collection as ``<key>.json`` in a directory.
    """

    def __init__(self, storage_dir: Optional[str] = None):
        """
        Initialize JSON storage.

        Args:
            storage_dir: Directory for collection files. Defaults to 'data/' in the working directory.
        """
        self.storage_dir = Path(storage_dir) if storage_dir else Path.cwd() / "data"
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Timeline storage directory: {self.storage_dir}")

    def _path(self, key: str) -> Path:
        return self.storage_dir / f"{key}.json"

    def _read(self, key: str) -> Any:
        filepath = self._path(key)
        if not filepath.exists():
            return default_for(key)
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, key: str, value: Any) -> None:
        filepath = self._path(key)
        tmp_path = filepath.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(value, f, indent=2)
        tmp_path.replace(filepath)

    async def get(self, key: str) -> Any:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)
        logger.debug(f"Wrote {self._path(key)}")


class SqlPersistence:
    """Stores each collection as a JSON value in the ``settings`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> Any:
        async with self._session_factory() as session:
            result = await session.execute(select(SettingRecord).where(SettingRecord.key == key))
            record = result.scalar_one_or_none()
        if record is None:
            return default_for(key)
        return copy.deepcopy(record.value)

    async def set(self, key: str, value: Any) -> None:
        async with self._session_factory() as session:
            await session.merge(SettingRecord(key=key, value=value))
            await session.commit()
