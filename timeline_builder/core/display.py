"""
Effective display attributes for an entry.

``resolve_display`` never touches the stored entry: it returns a derived
``DisplayEntry`` with colors and effects resolved against the timeline
defaults and, for non-GM viewers, mystery redaction applied.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from timeline_builder.core.models import Entry, ImagePosition, Tag, Timeline
from timeline_builder.core.visibility import Role

MUTED_COLOR = "var(--tl-text-muted)"
FALLBACK_EFFECT_COLOR = "#2ec4a0"
GLOW_EFFECTS = ("glow", "glow-strong", "glitch")
DEFAULT_EFFECT = "default"

_SHORT_HEX = re.compile(r"^#?([a-f\d])([a-f\d])([a-f\d])$", re.IGNORECASE)
_LONG_HEX = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def glass_style(hex_color: str) -> str:
    """Translucent chip style derived from a base color.

    Background is the color at 15% opacity, the border is mixed 50% with
    white and the text 70% with white.
    """
    if not hex_color:
        return ""
    expanded = _SHORT_HEX.sub(lambda m: "".join(g * 2 for g in m.groups()), hex_color)
    match = _LONG_HEX.match(expanded)
    if not match:
        return f"background: {hex_color}; color: #fff;"

    r, g, b = (int(part, 16) for part in match.groups())

    def mix(channel: int, weight: float) -> int:
        # Halves round up
        return math.floor(channel * (1 - weight) + 255 * weight + 0.5)

    return (
        f"background: rgba({r}, {g}, {b}, 0.15); "
        f"border: 1px solid rgb({mix(r, 0.5)}, {mix(g, 0.5)}, {mix(b, 0.5)}); "
        f"color: rgb({mix(r, 0.7)}, {mix(g, 0.7)}, {mix(b, 0.7)});"
    )


@dataclass
class DisplayTag:
    id: str
    label: str
    color: str
    style: str


@dataclass
class DisplayEntry:
    """Render-ready copy of an entry."""
    id: str
    name: str
    period: str
    description: str
    hidden: bool
    img: str
    img_position: ImagePosition
    sort: int
    page_uuid: str
    display_color: str
    display_effect: str
    display_effect_color: str
    has_mystery: bool
    tags: List[DisplayTag] = field(default_factory=list)
    mystery_text: bool = False
    mystery_img: bool = False
    mystery_timeframe: bool = False
    page_name: Optional[str] = None


def resolve_colors(entry: Entry, timeline: Timeline) -> Dict[str, str]:
    """Color, effect and effect color after falling back to timeline defaults."""
    display_color = entry.color or timeline.default_color or MUTED_COLOR

    effect = entry.effect or DEFAULT_EFFECT
    display_effect = (timeline.default_effect or "none") if effect == DEFAULT_EFFECT else effect

    if display_effect in GLOW_EFFECTS:
        display_effect_color = entry.effect_color or timeline.default_color or FALLBACK_EFFECT_COLOR
    else:
        display_effect_color = ""

    return {
        "display_color": display_color,
        "display_effect": display_effect,
        "display_effect_color": display_effect_color,
    }


def hydrate_tags(tag_ids: List[str], tag_map: Mapping[str, Tag]) -> List[DisplayTag]:
    """Look up tag ids; unknown ids are skipped."""
    tags = []
    for tag_id in tag_ids:
        tag = tag_map.get(tag_id)
        if tag is None:
            continue
        tags.append(DisplayTag(id=tag.id, label=tag.label, color=tag.color, style=glass_style(tag.color)))
    return tags


def resolve_display(
    entry: Entry,
    timeline: Timeline,
    role: Role,
    tag_map: Optional[Mapping[str, Tag]] = None,
) -> DisplayEntry:
    display = DisplayEntry(
        id=entry.id,
        name=entry.name,
        period=entry.period,
        description=entry.description,
        hidden=entry.hidden,
        img=entry.img,
        img_position=ImagePosition(x=entry.img_position.x, y=entry.img_position.y),
        sort=entry.sort,
        page_uuid=entry.page_uuid,
        has_mystery=entry.mystery.active,
        tags=hydrate_tags(entry.tag_ids, tag_map or {}),
        **resolve_colors(entry, timeline),
    )

    if role != Role.GM:
        mystery = entry.mystery
        display.mystery_text = mystery.text
        display.mystery_img = mystery.img
        display.mystery_timeframe = mystery.timeframe
        if mystery.text:
            display.name = ""
            display.description = ""
            display.tags = []
        if mystery.timeframe:
            display.period = ""
        if mystery.img:
            display.img = ""

    return display
