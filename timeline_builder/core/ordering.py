"""
Chronological ordering of timeline entries.

Each entry gets a sort value derived from its period according to the
timeline's timeframe mode; values are compared case-insensitively with
digit runs compared as numbers. Years are zero-padded to ten digits so
very large fictional years still order correctly.

Malformed periods (wrong number of parts for the mode) fall back to the
raw string, which may interleave with well-formed values.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import TYPE_CHECKING, List, Optional, Union

from timeline_builder.core.models import Timeline, TimeframeMode

if TYPE_CHECKING:
    from timeline_builder.core.store import DataStore

logger = logging.getLogger(__name__)

_DIGIT_RUN = re.compile(r"(\d+)")
YEAR_WIDTH = 10


def sort_value(period: str, mode: TimeframeMode) -> str:
    """Comparable string for a period under ``mode``."""
    p = period or ""
    if not p:
        return ""

    if mode == TimeframeMode.DATE:  # DD/MM/YYYY
        parts = p.split("/")
        if len(parts) != 3:
            return p
        return f"{parts[2].zfill(YEAR_WIDTH)}{parts[1]}{parts[0]}"

    if mode == TimeframeMode.DATE_MY:  # MM/YYYY
        parts = p.split("/")
        if len(parts) != 2:
            return p
        return f"{parts[1].zfill(YEAR_WIDTH)}{parts[0]}"

    if mode == TimeframeMode.DATETIME:  # DD/MM/YYYY HH:MM
        halves = p.split(" ")
        if len(halves) < 2 or not halves[0] or not halves[1]:
            return p
        d_parts = halves[0].split("/")
        t_parts = halves[1].split(":")
        if len(d_parts) != 3 or len(t_parts) != 2:
            return p
        return f"{d_parts[2].zfill(YEAR_WIDTH)}{d_parts[1]}{d_parts[0]}{t_parts[0]}{t_parts[1]}"

    if mode in (TimeframeMode.HOUR, TimeframeMode.HOUR2):
        return p.replace(":", "")

    return p.lower()


def _fold(text: str) -> str:
    # Base-letter comparison: drop case and accents
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def natural_key(value: str) -> List[Union[str, int]]:
    """Split into alternating text / number chunks for number-aware comparison.

    ``re.split`` with a capture group always yields text at even positions
    and digit runs at odd positions, so keys compare position by position
    without mixing types.
    """
    chunks = _DIGIT_RUN.split(value)
    return [int(chunk) if i % 2 else _fold(chunk) for i, chunk in enumerate(chunks)]


def chronological_ids(timeline: Timeline) -> List[str]:
    """Entry ids in ascending chronological order. Ties keep stored order."""
    mode = timeline.timeframe_mode
    entries = sorted(timeline.entries, key=lambda e: e.sort)
    entries.sort(key=lambda e: natural_key(sort_value(e.period, mode)))
    return [e.id for e in entries]


class OrderingEngine:
    """Sorts timelines chronologically and persists the order through the store."""

    def __init__(self, store: DataStore):
        self.store = store

    async def sort_timeline(self, timeline_id: str) -> Optional[List[str]]:
        """Sort one timeline. Returns the new id order, or None if not found."""
        timeline = await self.store.get_timeline(timeline_id)
        if timeline is None:
            return None

        ordered_ids = chronological_ids(timeline)
        await self.store.update_entry_order(timeline_id, ordered_ids)
        logger.info(
            f"Sorted {len(ordered_ids)} entries ({timeline.timeframe_mode.value} mode)",
            extra={"timeline_id": timeline_id},
        )
        return ordered_ids

    async def on_period_committed(self, timeline_id: str) -> bool:
        """Run the sort if the timeline has auto-sort enabled."""
        timeline = await self.store.get_timeline(timeline_id)
        if timeline is None or not timeline.auto_sort:
            return False
        await self.sort_timeline(timeline_id)
        return True
