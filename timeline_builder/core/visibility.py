"""
Per-viewer visibility of timelines and entries.

Pure functions: the same inputs always give the same result, and nothing
passed in is mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from timeline_builder.core.models import Entry, Tag, Timeline


class Role(Enum):
    GM = "gm"
    PLAYER = "player"


@dataclass(frozen=True)
class ViewerContext:
    """Who is looking. GMs are privileged; everyone else is a player."""
    user_id: str
    role: Role = Role.PLAYER

    @property
    def is_gm(self) -> bool:
        return self.role == Role.GM


@dataclass(frozen=True)
class ViewFilters:
    """Active tag and text filters. Empty filters match everything."""
    tag_ids: FrozenSet[str] = frozenset()
    text: str = ""

    @classmethod
    def of(cls, tag_ids: Iterable[str] = (), text: str = "") -> "ViewFilters":
        return cls(tag_ids=frozenset(tag_ids), text=(text or "").strip())

    @property
    def active(self) -> bool:
        return bool(self.tag_ids or self.text)


@dataclass
class VisibilityResult:
    visible_timelines: List[Timeline] = field(default_factory=list)
    visible_entries: Dict[str, List[Entry]] = field(default_factory=dict)


@dataclass(frozen=True)
class FilterTag:
    """A tag offered in the filter bar."""
    tag: Tag
    active: bool


def can_view_timeline(timeline: Timeline, viewer: ViewerContext) -> bool:
    """A per-viewer override wins when set, otherwise the global flag applies."""
    if viewer.is_gm:
        return True
    override = timeline.user_permissions.get(viewer.user_id)
    if isinstance(override, bool):
        return override
    return timeline.visible


def can_view_entry(entry: Entry, viewer: ViewerContext) -> bool:
    return viewer.is_gm or not entry.hidden


def matches_tags(entry: Entry, tag_ids: FrozenSet[str]) -> bool:
    if not tag_ids:
        return True
    return any(tag_id in tag_ids for tag_id in entry.tag_ids)


def searchable_period(entry: Entry, viewer: ViewerContext) -> str:
    """The period as this viewer sees it; a mystery timeframe is blank to players."""
    if entry.mystery.timeframe and not viewer.is_gm:
        return ""
    return entry.period or ""


def matches_text(entry: Entry, text: str, viewer: Optional[ViewerContext] = None) -> bool:
    if not text:
        return True
    period = searchable_period(entry, viewer) if viewer is not None else (entry.period or "")
    return text.lower() in period.lower()


def role_visible_entries(timeline: Timeline, viewer: ViewerContext) -> List[Entry]:
    """Entries the viewer may see before any filters, in sort order."""
    entries = sorted(timeline.entries, key=lambda e: e.sort)
    return [e for e in entries if can_view_entry(e, viewer)]


def visible_entries(
    timeline: Timeline, viewer: ViewerContext, filters: ViewFilters = ViewFilters()
) -> List[Entry]:
    return [
        e
        for e in role_visible_entries(timeline, viewer)
        if matches_tags(e, filters.tag_ids) and matches_text(e, filters.text, viewer)
    ]


def resolve(
    timelines: Sequence[Timeline],
    viewer: ViewerContext,
    filters: ViewFilters = ViewFilters(),
) -> VisibilityResult:
    """Visible timelines (stored order) and their visible entries (sort order)."""
    result = VisibilityResult()
    for timeline in timelines:
        if not can_view_timeline(timeline, viewer):
            continue
        result.visible_timelines.append(timeline)
        result.visible_entries[timeline.id] = visible_entries(timeline, viewer, filters)
    return result


def filter_bar_tags(
    entries: Iterable[Entry], tags: Iterable[Tag], active_ids: Iterable[str] = ()
) -> List[FilterTag]:
    """Tags used by ``entries``, sorted by label, flagged when active."""
    used = {tag_id for entry in entries for tag_id in entry.tag_ids}
    active = set(active_ids)
    offered = [t for t in tags if t.id in used]
    offered.sort(key=lambda t: t.label.lower())
    return [FilterTag(tag=t, active=t.id in active) for t in offered]
