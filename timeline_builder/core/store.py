"""
Timeline data store.

Single source of truth for timelines, entries, tags, colors and the
broadcast slot. Every mutation reads the whole affected collection,
changes an in-memory copy and writes the whole collection back through
the persistence port. Unknown ids are a no-op returning ``None``/``False``.

Mutations are not serialized here: two unawaited writes to the same
collection race and the later write wins.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from timeline_builder.core import cascade
from timeline_builder.core.events import ChangeHandler, ChangeNotifier, StoreChange
from timeline_builder.core.models import (
    Broadcast,
    Color,
    Entry,
    Tag,
    Timeline,
    random_id,
)
from timeline_builder.core.persistence import Collections, PersistencePort

logger = logging.getLogger(__name__)

# Fields a patch may never overwrite
_PROTECTED_ENTRY_FIELDS = ("id", "sort")


def deep_merge(base: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``patch`` into a copy of ``base``. Lists are replaced."""
    merged = dict(base)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _densify(entries: List[Entry]) -> None:
    for i, entry in enumerate(entries):
        entry.sort = i


def _new_entry(data: Dict[str, Any], sort: int) -> Entry:
    payload = {k: v for k, v in data.items() if k not in _PROTECTED_ENTRY_FIELDS}
    entry = Entry.from_dict(payload)
    entry.id = random_id()
    entry.name = data.get("name") or "New Entry"
    entry.sort = sort
    return entry


class DataStore:
    """
    Command/query interface over an injected persistence port.

    Usage:
        store = DataStore(MemoryPersistence())
        timeline = await store.create_timeline("Campaign")
        await store.add_entry(timeline.id, {"name": "Battle", "period": "01/02/1200"})
    """

    def __init__(self, persistence: PersistencePort, notifier: Optional[ChangeNotifier] = None):
        self._persistence = persistence
        self._notifier = notifier or ChangeNotifier()

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, handler: ChangeHandler) -> Callable[[], None]:
        """Register for collection writes. Returns an unsubscribe callable."""
        return self._notifier.subscribe(handler)

    async def _write(self, key: str, value: Any) -> None:
        await self._persistence.set(key, value)
        logger.debug(f"Persisted collection '{key}'", extra={"collection": key})
        await self._notifier.publish(StoreChange(key=key, value=value))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_timelines(self) -> List[Timeline]:
        raw = await self._persistence.get(Collections.DATA) or []
        return [Timeline.from_dict(t) for t in raw]

    async def get_timeline(self, timeline_id: str) -> Optional[Timeline]:
        for timeline in await self.get_timelines():
            if timeline.id == timeline_id:
                return timeline
        return None

    async def get_tags(self) -> List[Tag]:
        raw = await self._persistence.get(Collections.TAGS) or []
        return [Tag.from_dict(t) for t in raw]

    async def get_colors(self) -> List[Color]:
        raw = await self._persistence.get(Collections.COLORS) or []
        return [Color.from_dict(c) for c in raw]

    async def get_broadcast(self) -> Broadcast:
        return Broadcast.from_dict(await self._persistence.get(Collections.BROADCAST))

    # ------------------------------------------------------------------
    # Whole-collection writes (used by the color cascade)
    # ------------------------------------------------------------------

    async def save_timelines(self, timelines: Iterable[Timeline]) -> None:
        await self._write(Collections.DATA, [t.to_dict() for t in timelines])

    async def save_tags(self, tags: Iterable[Tag]) -> None:
        await self._write(Collections.TAGS, [t.to_dict() for t in tags])

    async def save_colors(self, colors: Iterable[Color]) -> None:
        await self._write(Collections.COLORS, [c.to_dict() for c in colors])

    # ------------------------------------------------------------------
    # Timelines
    # ------------------------------------------------------------------

    async def create_timeline(self, name: str = "") -> Timeline:
        timelines = await self.get_timelines()
        timeline = Timeline(name=name or "New Timeline")
        timelines.append(timeline)
        await self.save_timelines(timelines)
        logger.info(f"Created timeline: {timeline.name}", extra={"timeline_id": timeline.id})
        return timeline

    async def update_timeline(self, timeline_id: str, patch: Dict[str, Any]) -> Optional[Timeline]:
        """Deep-merge ``patch`` (camelCase keys) into the timeline."""
        timelines = await self.get_timelines()
        for i, timeline in enumerate(timelines):
            if timeline.id == timeline_id:
                patch = {k: v for k, v in patch.items() if k != "id"}
                timelines[i] = Timeline.from_dict(deep_merge(timeline.to_dict(), patch))
                await self.save_timelines(timelines)
                return timelines[i]
        logger.debug(f"update_timeline: timeline not found: {timeline_id}")
        return None

    async def update_timeline_permissions(
        self, timeline_id: str, permissions: Dict[str, bool]
    ) -> Optional[Timeline]:
        """Replace the per-viewer visibility overrides wholesale."""
        timelines = await self.get_timelines()
        for timeline in timelines:
            if timeline.id == timeline_id:
                timeline.user_permissions = {
                    uid: value for uid, value in permissions.items() if isinstance(value, bool)
                }
                await self.save_timelines(timelines)
                return timeline
        return None

    async def delete_timeline(self, timeline_id: str) -> bool:
        timelines = await self.get_timelines()
        remaining = [t for t in timelines if t.id != timeline_id]
        if len(remaining) < len(timelines):
            await self.save_timelines(remaining)
            logger.info("Deleted timeline", extra={"timeline_id": timeline_id})
            return True
        return False

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    async def add_entry(self, timeline_id: str, data: Dict[str, Any]) -> Optional[Entry]:
        timelines = await self.get_timelines()
        timeline = next((t for t in timelines if t.id == timeline_id), None)
        if timeline is None:
            return None

        entry = _new_entry(data, sort=len(timeline.entries))
        timeline.entries.append(entry)
        await self.save_timelines(timelines)
        return entry

    async def insert_entry(
        self, timeline_id: str, after_entry_id: str, data: Dict[str, Any]
    ) -> Optional[Entry]:
        """Insert right after ``after_entry_id``, or append when it is not found."""
        timelines = await self.get_timelines()
        timeline = next((t for t in timelines if t.id == timeline_id), None)
        if timeline is None:
            return None

        entry = _new_entry(data, sort=0)
        target_index = timeline.entry_index(after_entry_id)
        if target_index == -1:
            timeline.entries.append(entry)
        else:
            timeline.entries.insert(target_index + 1, entry)
        _densify(timeline.entries)

        await self.save_timelines(timelines)
        return entry

    async def update_entry(
        self, timeline_id: str, entry_id: str, patch: Dict[str, Any]
    ) -> Optional[Entry]:
        """Shallow-merge ``patch`` into the entry. ``id`` and ``sort`` are ignored."""
        timelines = await self.get_timelines()
        timeline = next((t for t in timelines if t.id == timeline_id), None)
        if timeline is None:
            return None

        index = timeline.entry_index(entry_id)
        if index == -1:
            return None

        merged = timeline.entries[index].to_dict()
        merged.update({k: v for k, v in patch.items() if k not in _PROTECTED_ENTRY_FIELDS})
        timeline.entries[index] = Entry.from_dict(merged)
        await self.save_timelines(timelines)
        return timeline.entries[index]

    async def delete_entry(self, timeline_id: str, entry_id: str) -> bool:
        timelines = await self.get_timelines()
        timeline = next((t for t in timelines if t.id == timeline_id), None)
        if timeline is None:
            return False

        remaining = [e for e in timeline.entries if e.id != entry_id]
        if len(remaining) == len(timeline.entries):
            return False

        _densify(remaining)
        timeline.entries = remaining
        await self.save_timelines(timelines)
        return True

    async def update_entry_order(self, timeline_id: str, ordered_ids: List[str]) -> bool:
        """
        Rebuild the entry sequence to follow ``ordered_ids``.

        Entries whose id is not listed are dropped from the timeline.
        Unknown and repeated ids are skipped.
        """
        timelines = await self.get_timelines()
        timeline = next((t for t in timelines if t.id == timeline_id), None)
        if timeline is None:
            return False

        by_id = {e.id: e for e in timeline.entries}
        new_entries: List[Entry] = []
        for entry_id in ordered_ids:
            entry = by_id.pop(entry_id, None)
            if entry is not None:
                new_entries.append(entry)

        if by_id:
            logger.warning(
                f"Reorder dropped {len(by_id)} unlisted entries",
                extra={"timeline_id": timeline_id},
            )

        _densify(new_entries)
        timeline.entries = new_entries
        await self.save_timelines(timelines)
        return True

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def create_tag(self, label: str, color: str) -> Tag:
        tags = await self.get_tags()
        tag = Tag(label=label, color=color)
        tags.append(tag)
        await self.save_tags(tags)
        return tag

    async def update_tag(self, tag_id: str, patch: Dict[str, Any]) -> Optional[Tag]:
        tags = await self.get_tags()
        for i, tag in enumerate(tags):
            if tag.id == tag_id:
                merged = tag.to_dict()
                merged.update({k: v for k, v in patch.items() if k != "id"})
                tags[i] = Tag.from_dict(merged)
                await self.save_tags(tags)
                return tags[i]
        return None

    async def delete_tag(self, tag_id: str) -> bool:
        tags = await self.get_tags()
        remaining = [t for t in tags if t.id != tag_id]
        if len(remaining) == len(tags):
            return False
        await self.save_tags(remaining)
        return True

    # ------------------------------------------------------------------
    # Colors
    # ------------------------------------------------------------------

    async def create_color(self, label: str, value: str) -> Color:
        colors = await self.get_colors()
        color = Color(label=label, value=value)
        colors.append(color)
        await self.save_colors(colors)
        return color

    async def update_color(self, color_id: str, patch: Dict[str, Any]) -> Optional[Color]:
        """Update a palette color and cascade a changed value to its references."""
        colors = await self.get_colors()
        index = next((i for i, c in enumerate(colors) if c.id == color_id), -1)
        if index == -1:
            return None

        old_value = colors[index].value
        merged = colors[index].to_dict()
        merged.update({k: v for k, v in patch.items() if k != "id"})
        colors[index] = Color.from_dict(merged)
        await self.save_colors(colors)

        new_value = patch.get("value")
        if new_value and old_value and new_value.lower() != old_value.lower():
            await cascade.cascade_color_value(self, old_value, new_value)

        return colors[index]

    async def delete_color(self, color_id: str) -> bool:
        colors = await self.get_colors()
        remaining = [c for c in colors if c.id != color_id]
        if len(remaining) == len(colors):
            return False
        await self.save_colors(remaining)
        return True

    # ------------------------------------------------------------------
    # Broadcast
    # ------------------------------------------------------------------

    async def set_broadcast(self, timeline_id: str, timestamp: Optional[int] = None) -> Broadcast:
        broadcast = Broadcast(
            timeline_id=timeline_id,
            timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
        )
        await self._write(Collections.BROADCAST, broadcast.to_dict())
        return broadcast
