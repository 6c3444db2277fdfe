"""Tests for the timeline data store."""

from __future__ import annotations

import pytest

from timeline_builder.core.events import StoreChange
from timeline_builder.core.persistence import Collections, MemoryPersistence
from timeline_builder.core.store import DataStore, deep_merge


def _sorts(timeline) -> list[int]:
    return [e.sort for e in timeline.entries]


class TestDeepMerge:
    def test_nested_dicts_merge(self) -> None:
        merged = deep_merge({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 1}

    def test_lists_are_replaced(self) -> None:
        assert deep_merge({"a": [1, 2]}, {"a": [3]}) == {"a": [3]}

    def test_base_not_mutated(self) -> None:
        base = {"a": {"x": 1}}
        deep_merge(base, {"a": {"x": 2}})
        assert base == {"a": {"x": 1}}


class TestTimelines:
    @pytest.mark.asyncio
    async def test_create_defaults(self, store: DataStore) -> None:
        timeline = await store.create_timeline("Campaign")
        assert timeline.name == "Campaign"
        assert timeline.visible is False
        assert timeline.entries == []
        assert timeline.timeframe_mode.value == "free"
        assert len(timeline.id) == 16

    @pytest.mark.asyncio
    async def test_create_persists(self, store: DataStore) -> None:
        timeline = await store.create_timeline("Campaign")
        loaded = await store.get_timeline(timeline.id)
        assert loaded is not None
        assert loaded.to_dict() == timeline.to_dict()

    @pytest.mark.asyncio
    async def test_update_ignores_id(self, store: DataStore) -> None:
        timeline = await store.create_timeline("Campaign")
        updated = await store.update_timeline(timeline.id, {"id": "other", "name": "Saga", "autoSort": True})
        assert updated is not None
        assert updated.id == timeline.id
        assert updated.name == "Saga"
        assert updated.auto_sort is True

    @pytest.mark.asyncio
    async def test_update_unknown_returns_none(self, store: DataStore) -> None:
        assert await store.update_timeline("missing", {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_permissions_replaced_wholesale(self, store: DataStore) -> None:
        timeline = await store.create_timeline("Campaign")
        await store.update_timeline_permissions(timeline.id, {"a": True, "b": False})
        updated = await store.update_timeline_permissions(timeline.id, {"c": True, "d": "yes"})
        assert updated is not None
        assert updated.user_permissions == {"c": True}

    @pytest.mark.asyncio
    async def test_delete(self, store: DataStore) -> None:
        timeline = await store.create_timeline("Campaign")
        assert await store.delete_timeline(timeline.id) is True
        assert await store.delete_timeline(timeline.id) is False
        assert await store.get_timelines() == []


class TestEntries:
    @pytest.mark.asyncio
    async def test_add_appends_with_dense_sort(self, store: DataStore) -> None:
        timeline = await store.create_timeline("T")
        for name in ("a", "b", "c"):
            await store.add_entry(timeline.id, {"name": name})
        loaded = await store.get_timeline(timeline.id)
        assert [e.name for e in loaded.entries] == ["a", "b", "c"]
        assert _sorts(loaded) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_add_ignores_supplied_id_and_sort(self, store: DataStore) -> None:
        timeline = await store.create_timeline("T")
        entry = await store.add_entry(timeline.id, {"id": "fixed", "sort": 99})
        assert entry.id != "fixed"
        assert entry.sort == 0
        assert entry.name == "New Entry"

    @pytest.mark.asyncio
    async def test_add_to_unknown_timeline(self, store: DataStore) -> None:
        assert await store.add_entry("missing", {"name": "a"}) is None

    @pytest.mark.asyncio
    async def test_insert_after(self, store: DataStore) -> None:
        timeline = await store.create_timeline("T")
        a = await store.add_entry(timeline.id, {"name": "a"})
        await store.add_entry(timeline.id, {"name": "c"})
        await store.insert_entry(timeline.id, a.id, {"name": "b"})
        loaded = await store.get_timeline(timeline.id)
        assert [e.name for e in loaded.entries] == ["a", "b", "c"]
        assert _sorts(loaded) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_insert_after_unknown_appends(self, store: DataStore) -> None:
        timeline = await store.create_timeline("T")
        await store.add_entry(timeline.id, {"name": "a"})
        await store.insert_entry(timeline.id, "nope", {"name": "z"})
        loaded = await store.get_timeline(timeline.id)
        assert [e.name for e in loaded.entries] == ["a", "z"]
        assert _sorts(loaded) == [0, 1]

    @pytest.mark.asyncio
    async def test_update_is_shallow_and_protects_sort(self, store: DataStore) -> None:
        timeline = await store.create_timeline("T")
        entry = await store.add_entry(timeline.id, {"name": "a", "mystery": {"img": True}})
        updated = await store.update_entry(
            timeline.id, entry.id, {"mystery": {"text": True}, "sort": 7, "id": "x"}
        )
        assert updated.id == entry.id
        assert updated.sort == 0
        assert updated.mystery.text is True
        assert updated.mystery.img is False

    @pytest.mark.asyncio
    async def test_update_unknown_entry(self, store: DataStore) -> None:
        timeline = await store.create_timeline("T")
        assert await store.update_entry(timeline.id, "missing", {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_insert_then_delete_predecessor(self, store: DataStore) -> None:
        timeline = await store.create_timeline("T")
        a = await store.add_entry(timeline.id, {"name": "A"})
        b = await store.insert_entry(timeline.id, a.id, {"name": "B"})
        await store.delete_entry(timeline.id, a.id)
        loaded = await store.get_timeline(timeline.id)
        assert [(e.id, e.sort) for e in loaded.entries] == [(b.id, 0)]

    @pytest.mark.asyncio
    async def test_delete_densifies(self, store: DataStore) -> None:
        timeline = await store.create_timeline("T")
        entries = [await store.add_entry(timeline.id, {"name": n}) for n in "abc"]
        assert await store.delete_entry(timeline.id, entries[1].id) is True
        loaded = await store.get_timeline(timeline.id)
        assert [e.name for e in loaded.entries] == ["a", "c"]
        assert _sorts(loaded) == [0, 1]
        assert await store.delete_entry(timeline.id, entries[1].id) is False


class TestUpdateEntryOrder:
    @pytest.mark.asyncio
    async def test_reorders_and_densifies(self, store: DataStore) -> None:
        timeline = await store.create_timeline("T")
        a, b, c = [await store.add_entry(timeline.id, {"name": n}) for n in "abc"]
        assert await store.update_entry_order(timeline.id, [c.id, a.id, b.id]) is True
        loaded = await store.get_timeline(timeline.id)
        assert [e.name for e in loaded.entries] == ["c", "a", "b"]
        assert _sorts(loaded) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_unlisted_entries_are_dropped(self, store: DataStore) -> None:
        timeline = await store.create_timeline("T")
        a, b, _c = [await store.add_entry(timeline.id, {"name": n}) for n in "abc"]
        await store.update_entry_order(timeline.id, [b.id, a.id])
        loaded = await store.get_timeline(timeline.id)
        assert [e.name for e in loaded.entries] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_unknown_and_repeated_ids_skipped(self, store: DataStore) -> None:
        timeline = await store.create_timeline("T")
        a, b = [await store.add_entry(timeline.id, {"name": n}) for n in "ab"]
        await store.update_entry_order(timeline.id, [b.id, "ghost", b.id, a.id])
        loaded = await store.get_timeline(timeline.id)
        assert [e.name for e in loaded.entries] == ["b", "a"]
        assert _sorts(loaded) == [0, 1]

    @pytest.mark.asyncio
    async def test_unknown_timeline(self, store: DataStore) -> None:
        assert await store.update_entry_order("missing", []) is False


class TestTagsAndColors:
    @pytest.mark.asyncio
    async def test_default_palette(self, store: DataStore) -> None:
        colors = await store.get_colors()
        assert len(colors) == 10
        assert colors[0].label == "Red"

    @pytest.mark.asyncio
    async def test_tag_crud(self, store: DataStore) -> None:
        tag = await store.create_tag("War", "#ff0000")
        updated = await store.update_tag(tag.id, {"label": "Wars"})
        assert updated.label == "Wars"
        assert updated.color == "#ff0000"
        assert await store.delete_tag(tag.id) is True
        assert await store.delete_tag(tag.id) is False
        assert await store.update_tag(tag.id, {"label": "x"}) is None

    @pytest.mark.asyncio
    async def test_store_allows_deleting_last_color(self) -> None:
        store = DataStore(MemoryPersistence({Collections.COLORS: [{"id": "c", "label": "C", "value": "#000"}]}))
        assert await store.delete_color("c") is True
        assert await store.get_colors() == []

    @pytest.mark.asyncio
    async def test_update_color_cascades(self, store: DataStore) -> None:
        color = await store.create_color("Brand", "#abcdef")
        tag = await store.create_tag("T", "#ABCDEF")
        await store.update_color(color.id, {"value": "#123456"})
        tags = await store.get_tags()
        assert tags[0].id == tag.id
        assert tags[0].color == "#123456"


class TestBroadcastAndNotifications:
    @pytest.mark.asyncio
    async def test_broadcast_empty_by_default(self, store: DataStore) -> None:
        broadcast = await store.get_broadcast()
        assert broadcast.timeline_id == ""
        assert broadcast.timestamp == 0

    @pytest.mark.asyncio
    async def test_set_broadcast(self, store: DataStore) -> None:
        await store.set_broadcast("tl-1", timestamp=1234)
        broadcast = await store.get_broadcast()
        assert broadcast.timeline_id == "tl-1"
        assert broadcast.timestamp == 1234

    @pytest.mark.asyncio
    async def test_subscribers_see_every_write(self, store: DataStore) -> None:
        seen: list[StoreChange] = []
        unsubscribe = store.subscribe(seen.append)
        await store.create_timeline("T")
        await store.create_tag("War", "#f00")
        unsubscribe()
        await store.create_tag("Peace", "#0f0")
        assert [c.key for c in seen] == [Collections.DATA, Collections.TAGS]

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_break_writes(self, store: DataStore) -> None:
        def _boom(_change: StoreChange) -> None:
            raise RuntimeError("boom")

        seen: list[str] = []

        async def _record(change: StoreChange) -> None:
            seen.append(change.key)

        store.subscribe(_boom)
        store.subscribe(_record)
        await store.create_timeline("T")
        assert seen == [Collections.DATA]
        assert len(await store.get_timelines()) == 1
