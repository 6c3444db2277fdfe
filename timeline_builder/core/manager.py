"""
GM-facing editing operations.

Wraps the data store with the checks the store deliberately leaves to its
callers: period format validation, case-insensitive label uniqueness for
tags and colors, the last-color guard, and auto-sort after a period edit.
Not-found cases return ``None``/``False`` like the store does.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from timeline_builder.core.errors import DuplicateNameError, LastColorError
from timeline_builder.core.models import Broadcast, Color, Entry, Tag, Timeline
from timeline_builder.core.ordering import OrderingEngine
from timeline_builder.core.store import DataStore
from timeline_builder.core.timeframe import validate_period

logger = logging.getLogger(__name__)

DEFAULT_TIMELINE_NAME = "New Timeline"


def _clamp_percent(value: float) -> int:
    return round(max(0.0, min(100.0, float(value))))


class TimelineManager:
    """Editing surface for privileged viewers."""

    def __init__(self, store: DataStore, ordering: Optional[OrderingEngine] = None):
        self.store = store
        self.ordering = ordering or OrderingEngine(store)

    # ------------------------------------------------------------------
    # Timelines
    # ------------------------------------------------------------------

    async def create_timeline(self, name: str = "") -> Timeline:
        """Create a timeline; a blank name becomes the next free "New Timeline N"."""
        name = (name or "").strip()
        if not name:
            existing = {t.name for t in await self.store.get_timelines()}
            name = DEFAULT_TIMELINE_NAME
            counter = 1
            while name in existing:
                name = f"{DEFAULT_TIMELINE_NAME} {counter}"
                counter += 1
        return await self.store.create_timeline(name)

    async def configure_timeline(self, timeline_id: str, patch: Dict[str, Any]) -> Optional[Timeline]:
        return await self.store.update_timeline(timeline_id, patch)

    async def toggle_visibility(self, timeline_id: str) -> Optional[Timeline]:
        timeline = await self.store.get_timeline(timeline_id)
        if timeline is None:
            return None
        return await self.store.update_timeline(timeline_id, {"visible": not timeline.visible})

    async def set_permissions(self, timeline_id: str, permissions: Dict[str, bool]) -> Optional[Timeline]:
        return await self.store.update_timeline_permissions(timeline_id, permissions)

    async def delete_timeline(self, timeline_id: str) -> bool:
        return await self.store.delete_timeline(timeline_id)

    async def sort_timeline(self, timeline_id: str) -> Optional[List[str]]:
        return await self.ordering.sort_timeline(timeline_id)

    async def broadcast(self, timeline_id: str) -> Optional[Broadcast]:
        """Make the timeline visible and point every viewer at it."""
        timeline = await self.store.get_timeline(timeline_id)
        if timeline is None:
            return None
        if not timeline.visible:
            await self.store.update_timeline(timeline_id, {"visible": True})
        broadcast = await self.store.set_broadcast(timeline_id)
        logger.info(f"Broadcasting timeline: {timeline.name}", extra={"timeline_id": timeline_id})
        return broadcast

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    async def add_entry(self, timeline_id: str, data: Optional[Dict[str, Any]] = None) -> Optional[Entry]:
        payload = {"name": "New Entry", "period": "", "description": "", "effect": "default"}
        payload.update(data or {})
        return await self._create_entry(timeline_id, payload, after_entry_id=None)

    async def insert_entry(
        self, timeline_id: str, after_entry_id: str, data: Optional[Dict[str, Any]] = None
    ) -> Optional[Entry]:
        payload = {"name": "New Entry", "period": "", "description": ""}
        payload.update(data or {})
        return await self._create_entry(timeline_id, payload, after_entry_id=after_entry_id)

    async def _create_entry(
        self, timeline_id: str, payload: Dict[str, Any], after_entry_id: Optional[str]
    ) -> Optional[Entry]:
        timeline = await self.store.get_timeline(timeline_id)
        if timeline is None:
            return None
        if payload.get("period"):
            payload["period"] = validate_period(timeline.timeframe_mode, payload["period"])

        if after_entry_id is None:
            entry = await self.store.add_entry(timeline_id, payload)
        else:
            entry = await self.store.insert_entry(timeline_id, after_entry_id, payload)

        if entry is not None and entry.period and await self.ordering.on_period_committed(timeline_id):
            entry = await self._reload_entry(timeline_id, entry)
        return entry

    async def _reload_entry(self, timeline_id: str, entry: Entry) -> Entry:
        # Sorting rewrites sort indices
        refreshed = await self.store.get_timeline(timeline_id)
        stored = refreshed.get_entry(entry.id) if refreshed else None
        return stored or entry

    async def update_entry(
        self, timeline_id: str, entry_id: str, patch: Dict[str, Any]
    ) -> Optional[Entry]:
        """Update an entry. A new period is validated first and may trigger auto-sort.

        Raises:
            PeriodValidationError: the period does not match the timeline's mode.
                Nothing is persisted in that case.
        """
        timeline = await self.store.get_timeline(timeline_id)
        if timeline is None or timeline.get_entry(entry_id) is None:
            return None

        patch = dict(patch)
        if "period" in patch:
            patch["period"] = validate_period(timeline.timeframe_mode, patch["period"] or "")

        entry = await self.store.update_entry(timeline_id, entry_id, patch)
        if entry is not None and "period" in patch and await self.ordering.on_period_committed(timeline_id):
            entry = await self._reload_entry(timeline_id, entry)
        return entry

    async def set_entry_period(self, timeline_id: str, entry_id: str, period: str) -> Optional[Entry]:
        return await self.update_entry(timeline_id, entry_id, {"period": period})

    async def toggle_entry_hidden(self, timeline_id: str, entry_id: str) -> Optional[Entry]:
        timeline = await self.store.get_timeline(timeline_id)
        entry = timeline.get_entry(entry_id) if timeline else None
        if entry is None:
            return None
        return await self.store.update_entry(timeline_id, entry_id, {"hidden": not entry.hidden})

    async def set_mystery(
        self, timeline_id: str, entry_id: str, *, img: bool, text: bool, timeframe: bool
    ) -> Optional[Entry]:
        return await self.store.update_entry(
            timeline_id, entry_id, {"mystery": {"img": img, "text": text, "timeframe": timeframe}}
        )

    async def set_image_focus(self, timeline_id: str, entry_id: str, x: float, y: float) -> Optional[Entry]:
        position = {"x": _clamp_percent(x), "y": _clamp_percent(y)}
        return await self.store.update_entry(timeline_id, entry_id, {"imgPosition": position})

    async def set_entry_tags(self, timeline_id: str, entry_id: str, tag_ids: List[str]) -> Optional[Entry]:
        unique_ids = list(dict.fromkeys(tag_ids))
        return await self.store.update_entry(timeline_id, entry_id, {"tagIds": unique_ids})

    async def link_page(self, timeline_id: str, entry_id: str, page_uuid: str) -> Optional[Entry]:
        return await self.store.update_entry(timeline_id, entry_id, {"pageUuid": page_uuid})

    async def unlink_page(self, timeline_id: str, entry_id: str) -> Optional[Entry]:
        return await self.store.update_entry(timeline_id, entry_id, {"pageUuid": ""})

    async def move_entry_up(self, timeline_id: str, entry_id: str) -> bool:
        return await self._move_entry(timeline_id, entry_id, -1)

    async def move_entry_down(self, timeline_id: str, entry_id: str) -> bool:
        return await self._move_entry(timeline_id, entry_id, 1)

    async def _move_entry(self, timeline_id: str, entry_id: str, offset: int) -> bool:
        timeline = await self.store.get_timeline(timeline_id)
        if timeline is None:
            return False

        index = timeline.entry_index(entry_id)
        target = index + offset
        if index == -1 or target < 0 or target >= len(timeline.entries):
            return False

        ordered_ids = [e.id for e in timeline.entries]
        ordered_ids[index], ordered_ids[target] = ordered_ids[target], ordered_ids[index]
        return await self.store.update_entry_order(timeline_id, ordered_ids)

    async def delete_entry(self, timeline_id: str, entry_id: str) -> bool:
        return await self.store.delete_entry(timeline_id, entry_id)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def _check_tag_label(self, label: str, exclude_id: Optional[str] = None) -> None:
        lowered = label.lower()
        for tag in await self.store.get_tags():
            if tag.id != exclude_id and tag.label.lower() == lowered:
                raise DuplicateNameError("tag", label)

    async def create_tag(self, label: str, color: str) -> Tag:
        label = label.strip()
        await self._check_tag_label(label)
        return await self.store.create_tag(label, color)

    async def update_tag(
        self, tag_id: str, *, label: Optional[str] = None, color: Optional[str] = None
    ) -> Optional[Tag]:
        patch: Dict[str, Any] = {}
        if label is not None:
            patch["label"] = label.strip()
            await self._check_tag_label(patch["label"], exclude_id=tag_id)
        if color is not None:
            patch["color"] = color
        return await self.store.update_tag(tag_id, patch)

    async def delete_tag(self, tag_id: str) -> bool:
        return await self.store.delete_tag(tag_id)

    # ------------------------------------------------------------------
    # Colors
    # ------------------------------------------------------------------

    async def _check_color_label(self, label: str, exclude_id: Optional[str] = None) -> None:
        lowered = label.lower()
        for color in await self.store.get_colors():
            if color.id != exclude_id and color.label.lower() == lowered:
                raise DuplicateNameError("color", label)

    async def create_color(self, label: str, value: str) -> Color:
        label = label.strip()
        await self._check_color_label(label)
        return await self.store.create_color(label, value)

    async def update_color(
        self, color_id: str, *, label: Optional[str] = None, value: Optional[str] = None
    ) -> Optional[Color]:
        patch: Dict[str, Any] = {}
        if label is not None:
            patch["label"] = label.strip()
            await self._check_color_label(patch["label"], exclude_id=color_id)
        if value is not None:
            patch["value"] = value
        return await self.store.update_color(color_id, patch)

    async def delete_color(self, color_id: str) -> bool:
        colors = await self.store.get_colors()
        if not any(c.id == color_id for c in colors):
            return False
        if len(colors) <= 1:
            raise LastColorError()
        return await self.store.delete_color(color_id)
