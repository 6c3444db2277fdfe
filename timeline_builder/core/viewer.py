"""
Per-viewer timeline view state and rendering.

A ``TimelineViewer`` remembers which timeline a viewer has selected and
which filters are active; ``render()`` reads fresh data from the store and
derives the view through the visibility and display resolvers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from timeline_builder.core import visibility
from timeline_builder.core.display import DisplayEntry, resolve_display
from timeline_builder.core.models import Timeline
from timeline_builder.core.pages import MappingPageResolver, PageResolver, resolve_page_names
from timeline_builder.core.store import DataStore
from timeline_builder.core.visibility import FilterTag, ViewerContext, ViewFilters

logger = logging.getLogger(__name__)


@dataclass
class TimelineView:
    """Everything needed to draw one viewer's timeline screen."""
    timelines: List[Timeline] = field(default_factory=list)
    selected_timeline: Optional[Timeline] = None
    entries: List[DisplayEntry] = field(default_factory=list)
    filter_tags: List[FilterTag] = field(default_factory=list)
    has_active_filters: bool = False
    is_gm: bool = False

    @property
    def has_timelines(self) -> bool:
        return bool(self.timelines)


class TimelineViewer:
    def __init__(
        self,
        store: DataStore,
        viewer: ViewerContext,
        page_resolver: Optional[PageResolver] = None,
    ):
        self.store = store
        self.viewer = viewer
        self.page_resolver = page_resolver or MappingPageResolver()
        self.selected_timeline_id: Optional[str] = None
        self.active_tag_ids: Set[str] = set()
        self.text_filter: str = ""

    def select_timeline(self, timeline_id: Optional[str]) -> None:
        """Switch timelines. Filters are cleared when the selection changes."""
        if timeline_id != self.selected_timeline_id:
            self.clear_filters()
        self.selected_timeline_id = timeline_id

    def toggle_tag_filter(self, tag_id: str) -> None:
        if tag_id in self.active_tag_ids:
            self.active_tag_ids.discard(tag_id)
        else:
            self.active_tag_ids.add(tag_id)

    def set_text_filter(self, text: str) -> None:
        self.text_filter = (text or "").strip()

    def clear_filters(self) -> None:
        self.active_tag_ids.clear()
        self.text_filter = ""

    @property
    def filters(self) -> ViewFilters:
        return ViewFilters.of(self.active_tag_ids, self.text_filter)

    async def render(self) -> TimelineView:
        timelines = await self.store.get_timelines()
        tags = await self.store.get_tags()
        tag_map = {t.id: t for t in tags}

        filters = self.filters
        result = visibility.resolve(timelines, self.viewer, filters)

        if not self.selected_timeline_id and result.visible_timelines:
            self.selected_timeline_id = result.visible_timelines[0].id

        selected = next(
            (t for t in result.visible_timelines if t.id == self.selected_timeline_id), None
        )

        view = TimelineView(
            timelines=result.visible_timelines,
            selected_timeline=selected,
            has_active_filters=filters.active,
            is_gm=self.viewer.is_gm,
        )
        if selected is None:
            return view

        view.filter_tags = visibility.filter_bar_tags(
            visibility.role_visible_entries(selected, self.viewer), tags, self.active_tag_ids
        )
        view.entries = [
            resolve_display(entry, selected, self.viewer.role, tag_map)
            for entry in result.visible_entries[selected.id]
        ]
        await resolve_page_names(view.entries, self.page_resolver)
        return view
