"""Tests for the persistence adapters.

The SQL adapter runs against an in-memory SQLite database via aiosqlite.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from timeline_builder.core.persistence import (
    Collections,
    JsonFilePersistence,
    MemoryPersistence,
    SqlPersistence,
    default_for,
)
from timeline_builder.core.store import DataStore
from timeline_builder.models.db import Base


@pytest_asyncio.fixture()
async def sql_persistence() -> AsyncIterator[SqlPersistence]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    yield SqlPersistence(session_factory)

    await engine.dispose()


class TestDefaults:
    def test_defaults_are_fresh_copies(self) -> None:
        colors = default_for(Collections.COLORS)
        colors.clear()
        assert len(default_for(Collections.COLORS)) == 10

    def test_unknown_key(self) -> None:
        assert default_for("nope") is None


class TestMemoryPersistence:
    @pytest.mark.asyncio
    async def test_values_are_copied(self) -> None:
        persistence = MemoryPersistence()
        value = [{"id": "a"}]
        await persistence.set(Collections.TAGS, value)
        value.append({"id": "b"})
        loaded = await persistence.get(Collections.TAGS)
        assert loaded == [{"id": "a"}]
        loaded.clear()
        assert await persistence.get(Collections.TAGS) == [{"id": "a"}]

    @pytest.mark.asyncio
    async def test_missing_key_returns_default(self) -> None:
        assert await MemoryPersistence().get(Collections.BROADCAST) == {}


class TestJsonFilePersistence:
    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path: Path) -> None:
        persistence = JsonFilePersistence(str(tmp_path / "store"))
        await persistence.set(Collections.TAGS, [{"id": "a", "label": "War", "color": "#f00"}])

        path = tmp_path / "store" / "tags.json"
        assert json.loads(path.read_text(encoding="utf-8"))[0]["label"] == "War"
        assert not (tmp_path / "store" / "tags.json.tmp").exists()

        reopened = JsonFilePersistence(str(tmp_path / "store"))
        assert (await reopened.get(Collections.TAGS))[0]["id"] == "a"

    @pytest.mark.asyncio
    async def test_missing_file_returns_default(self, tmp_path: Path) -> None:
        persistence = JsonFilePersistence(str(tmp_path))
        assert await persistence.get(Collections.DATA) == []
        assert len(await persistence.get(Collections.COLORS)) == 10

    @pytest.mark.asyncio
    async def test_store_survives_restart(self, tmp_path: Path) -> None:
        store = DataStore(JsonFilePersistence(str(tmp_path)))
        timeline = await store.create_timeline("Campaign")
        await store.add_entry(timeline.id, {"name": "Battle", "period": "Year 3"})

        restarted = DataStore(JsonFilePersistence(str(tmp_path)))
        loaded = await restarted.get_timeline(timeline.id)
        assert loaded.name == "Campaign"
        assert [e.name for e in loaded.entries] == ["Battle"]


class TestSqlPersistence:
    @pytest.mark.asyncio
    async def test_missing_key_returns_default(self, sql_persistence: SqlPersistence) -> None:
        assert await sql_persistence.get(Collections.DATA) == []

    @pytest.mark.asyncio
    async def test_set_then_overwrite(self, sql_persistence: SqlPersistence) -> None:
        await sql_persistence.set(Collections.BROADCAST, {"timelineId": "a", "timestamp": 1})
        await sql_persistence.set(Collections.BROADCAST, {"timelineId": "b", "timestamp": 2})
        assert await sql_persistence.get(Collections.BROADCAST) == {"timelineId": "b", "timestamp": 2}

    @pytest.mark.asyncio
    async def test_store_over_sql(self, sql_persistence: SqlPersistence) -> None:
        store = DataStore(sql_persistence)
        timeline = await store.create_timeline("Campaign")
        a = await store.add_entry(timeline.id, {"name": "a"})
        b = await store.add_entry(timeline.id, {"name": "b"})
        await store.update_entry_order(timeline.id, [b.id, a.id])

        loaded = await store.get_timeline(timeline.id)
        assert [e.name for e in loaded.entries] == ["b", "a"]
        assert [e.sort for e in loaded.entries] == [0, 1]
