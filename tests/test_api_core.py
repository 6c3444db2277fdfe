"""Tests for the host-facing entry points: open, manage and broadcast following."""

from __future__ import annotations

import pytest

from timeline_builder.core.api import TimelineAPI
from timeline_builder.core.errors import NotPrivilegedError
from timeline_builder.core.manager import TimelineManager
from timeline_builder.core.pages import UNKNOWN_PAGE, MappingPageResolver
from timeline_builder.core.store import DataStore
from timeline_builder.core.viewer import TimelineView
from timeline_builder.core.visibility import ViewerContext


@pytest.fixture()
def api(store: DataStore) -> TimelineAPI:
    return TimelineAPI(store, MappingPageResolver({"Journal.lore": "Ancient Lore"}))


class TestManage:
    def test_player_refused(self, api: TimelineAPI, player: ViewerContext) -> None:
        with pytest.raises(NotPrivilegedError):
            api.manage(player)

    def test_gm_gets_shared_manager(self, api: TimelineAPI, gm: ViewerContext) -> None:
        manager = api.manage(gm)
        assert isinstance(manager, TimelineManager)
        assert api.manage(gm) is manager


class TestOpen:
    @pytest.mark.asyncio
    async def test_empty_store(self, api: TimelineAPI, player: ViewerContext) -> None:
        view = await api.open(player)
        assert not view.has_timelines
        assert view.selected_timeline is None
        assert view.entries == []

    @pytest.mark.asyncio
    async def test_defaults_to_first_visible(
        self, api: TimelineAPI, gm: ViewerContext, player: ViewerContext
    ) -> None:
        manager = api.manage(gm)
        await manager.create_timeline("Hidden")
        shown = await manager.create_timeline("Shown")
        await manager.toggle_visibility(shown.id)

        view = await api.open(player)
        assert [t.name for t in view.timelines] == ["Shown"]
        assert view.selected_timeline.id == shown.id
        assert not view.is_gm

        gm_view = await api.open(gm)
        assert [t.name for t in gm_view.timelines] == ["Hidden", "Shown"]
        assert gm_view.is_gm

    @pytest.mark.asyncio
    async def test_player_view_redacts_and_hides(
        self, api: TimelineAPI, gm: ViewerContext, player: ViewerContext
    ) -> None:
        manager = api.manage(gm)
        timeline = await manager.create_timeline("Saga")
        await manager.toggle_visibility(timeline.id)
        secret = await manager.add_entry(timeline.id, {"name": "Secret", "period": "Year 2"})
        await manager.set_mystery(timeline.id, secret.id, img=False, text=True, timeframe=False)
        hidden = await manager.add_entry(timeline.id, {"name": "Hidden"})
        await manager.toggle_entry_hidden(timeline.id, hidden.id)

        view = await api.open(player, timeline.id)
        assert [e.id for e in view.entries] == [secret.id]
        assert view.entries[0].name == ""
        assert view.entries[0].period == "Year 2"

    @pytest.mark.asyncio
    async def test_page_names_resolved(
        self, api: TimelineAPI, gm: ViewerContext
    ) -> None:
        manager = api.manage(gm)
        timeline = await manager.create_timeline("Saga")
        linked = await manager.add_entry(timeline.id, {"name": "Linked"})
        await manager.link_page(timeline.id, linked.id, "Journal.lore")
        broken = await manager.add_entry(timeline.id, {"name": "Broken"})
        await manager.link_page(timeline.id, broken.id, "Journal.gone")
        await manager.add_entry(timeline.id, {"name": "Plain"})

        view = await api.open(gm, timeline.id)
        assert [e.page_name for e in view.entries] == ["Ancient Lore", UNKNOWN_PAGE, None]

    @pytest.mark.asyncio
    async def test_filters_persist_in_session_and_reset_on_switch(
        self, api: TimelineAPI, gm: ViewerContext
    ) -> None:
        manager = api.manage(gm)
        first = await manager.create_timeline("First")
        second = await manager.create_timeline("Second")
        tag = await manager.create_tag("War", "#ff0000")
        tagged = await manager.add_entry(first.id, {"tagIds": [tag.id]})
        await manager.add_entry(first.id, {})

        view = await api.open(gm, first.id)
        assert len(view.entries) == 2

        session = api.viewer_session(gm)
        session.toggle_tag_filter(tag.id)
        view = await api.open(gm)
        assert [e.id for e in view.entries] == [tagged.id]
        assert view.has_active_filters
        assert [(f.tag.id, f.active) for f in view.filter_tags] == [(tag.id, True)]

        view = await api.open(gm, second.id)
        assert not view.has_active_filters
        assert session.active_tag_ids == set()


class TestFollowBroadcasts:
    @pytest.mark.asyncio
    async def test_player_opens_broadcast_timeline(
        self, api: TimelineAPI, gm: ViewerContext, player: ViewerContext
    ) -> None:
        manager = api.manage(gm)
        await manager.create_timeline("Other")
        target = await manager.create_timeline("Target")

        opened: list[TimelineView] = []
        gm_opened: list[TimelineView] = []
        unsubscribe = api.follow_broadcasts(player, opened.append)
        api.follow_broadcasts(gm, gm_opened.append)

        await manager.broadcast(target.id)

        assert len(opened) == 1
        assert opened[0].selected_timeline.id == target.id
        assert gm_opened == []

        unsubscribe()
        await manager.broadcast(target.id)
        assert len(opened) == 1

    @pytest.mark.asyncio
    async def test_async_handler_awaited(
        self, api: TimelineAPI, gm: ViewerContext, player: ViewerContext
    ) -> None:
        manager = api.manage(gm)
        target = await manager.create_timeline("Target")
        opened: list[str] = []

        async def _on_open(view: TimelineView) -> None:
            opened.append(view.selected_timeline.name)

        api.follow_broadcasts(player, _on_open)
        await manager.broadcast(target.id)
        assert opened == ["Target"]
