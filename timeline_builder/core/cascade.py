"""Propagation of a palette color's value change to everything that references it.

Tags, timelines and entries hold raw color values rather than color ids, so
editing a palette color has to rewrite every field that still carries the
old value. Comparison is case-insensitive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from timeline_builder.core.store import DataStore

logger = logging.getLogger(__name__)


@dataclass
class CascadeResult:
    """How many references were rewritten in each collection."""

    tags: int = 0
    timelines: int = 0
    entries: int = 0

    @property
    def total(self) -> int:
        return self.tags + self.timelines + self.entries


def _matches(value: str, lowered_old: str) -> bool:
    return bool(value) and value.lower() == lowered_old


async def cascade_color_value(store: DataStore, old_value: str, new_value: str) -> CascadeResult:
    """Rewrite ``old_value`` to ``new_value`` across tags, timelines and entries.

    Tags and timelines are written as two independent collection writes,
    each skipped when nothing in it matched.
    """
    result = CascadeResult()
    lowered_old = old_value.lower()

    tags = await store.get_tags()
    for tag in tags:
        if _matches(tag.color, lowered_old):
            tag.color = new_value
            result.tags += 1
    if result.tags:
        await store.save_tags(tags)

    timelines = await store.get_timelines()
    for timeline in timelines:
        if _matches(timeline.default_color, lowered_old):
            timeline.default_color = new_value
            result.timelines += 1
        if _matches(timeline.line_color, lowered_old):
            timeline.line_color = new_value
            result.timelines += 1
        for entry in timeline.entries:
            if _matches(entry.color, lowered_old):
                entry.color = new_value
                result.entries += 1
            if _matches(entry.effect_color, lowered_old):
                entry.effect_color = new_value
                result.entries += 1
    if result.timelines or result.entries:
        await store.save_timelines(timelines)

    logger.info(
        f"Color {old_value} -> {new_value}: rewrote {result.tags} tag, "
        f"{result.timelines} timeline and {result.entries} entry references"
    )
    return result
