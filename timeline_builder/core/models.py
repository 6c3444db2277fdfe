"""
Data models for timelines, entries, tags and colors.

Records are persisted as plain dicts with camelCase keys; ``from_dict``
fills in defaults for any optional field missing from stored data.
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

_ID_ALPHABET = string.ascii_letters + string.digits


def random_id(length: int = 16) -> str:
    """Generate a random alphanumeric record id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


class TimeframeMode(Enum):
    FREE = "free"            # Arbitrary text
    DATE = "date"            # DD/MM/YYYY
    DATE_MY = "date_my"      # MM/YYYY
    DATETIME = "datetime"    # DD/MM/YYYY HH:MM
    HOUR = "hour"            # HH:MM:SS
    HOUR2 = "hour2"          # HH:MM

    @classmethod
    def parse(cls, value: Any) -> "TimeframeMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(value or "free")
        except ValueError:
            return cls.FREE


@dataclass
class ImagePosition:
    """Focus point of an entry image, in percent."""
    x: float = 50
    y: float = 50

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ImagePosition":
        data = data or {}
        return cls(x=data.get("x", 50), y=data.get("y", 50))


@dataclass
class Mystery:
    """Per-entry redaction flags applied to non-GM viewers."""
    img: bool = False
    text: bool = False
    timeframe: bool = False

    @property
    def active(self) -> bool:
        return self.img or self.text or self.timeframe

    def to_dict(self) -> dict:
        return {"img": self.img, "text": self.text, "timeframe": self.timeframe}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Mystery":
        data = data or {}
        return cls(
            img=bool(data.get("img", False)),
            text=bool(data.get("text", False)),
            timeframe=bool(data.get("timeframe", False)),
        )


@dataclass
class Entry:
    """A single dated record within a timeline."""
    id: str = field(default_factory=random_id)
    name: str = "New Entry"
    period: str = ""
    description: str = ""
    hidden: bool = False
    color: str = ""
    effect: str = "default"
    effect_color: str = ""
    img: str = ""
    img_position: ImagePosition = field(default_factory=ImagePosition)
    tag_ids: List[str] = field(default_factory=list)
    page_uuid: str = ""
    mystery: Mystery = field(default_factory=Mystery)
    sort: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "period": self.period,
            "description": self.description,
            "hidden": self.hidden,
            "color": self.color,
            "effect": self.effect,
            "effectColor": self.effect_color,
            "img": self.img,
            "imgPosition": self.img_position.to_dict(),
            "tagIds": list(self.tag_ids),
            "pageUuid": self.page_uuid,
            "mystery": self.mystery.to_dict(),
            "sort": self.sort,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Entry":
        return cls(
            id=data.get("id") or random_id(),
            name=data.get("name") or "",
            period=data.get("period") or "",
            description=data.get("description") or "",
            hidden=bool(data.get("hidden", False)),
            color=data.get("color") or "",
            effect=data.get("effect") or "default",
            effect_color=data.get("effectColor") or "",
            img=data.get("img") or "",
            img_position=ImagePosition.from_dict(data.get("imgPosition")),
            tag_ids=list(data.get("tagIds") or []),
            page_uuid=data.get("pageUuid") or "",
            mystery=Mystery.from_dict(data.get("mystery")),
            sort=int(data.get("sort", 0)),
        )


@dataclass
class Timeline:
    """A named, ordered collection of entries with shared display settings."""
    id: str = field(default_factory=random_id)
    name: str = "New Timeline"
    visible: bool = False
    user_permissions: Dict[str, bool] = field(default_factory=dict)
    entries: List[Entry] = field(default_factory=list)
    timeframe_mode: TimeframeMode = TimeframeMode.FREE
    auto_sort: bool = False
    default_color: str = ""
    default_effect: str = ""
    background_image: str = ""
    line_width: int = 2
    line_color: str = ""
    line_style: str = "solid"
    line_effect: str = "none"
    dot_size: int = 12
    dot_shape: str = "default"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "visible": self.visible,
            "userPermissions": dict(self.user_permissions),
            "entries": [entry.to_dict() for entry in self.entries],
            "timeframeMode": self.timeframe_mode.value,
            "autoSort": self.auto_sort,
            "defaultColor": self.default_color,
            "defaultEffect": self.default_effect,
            "backgroundImage": self.background_image,
            "lineWidth": self.line_width,
            "lineColor": self.line_color,
            "lineStyle": self.line_style,
            "lineEffect": self.line_effect,
            "dotSize": self.dot_size,
            "dotShape": self.dot_shape,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Timeline":
        timeline = cls(
            id=data.get("id") or random_id(),
            name=data.get("name") or "",
            visible=bool(data.get("visible", False)),
            user_permissions=dict(data.get("userPermissions") or {}),
            timeframe_mode=TimeframeMode.parse(data.get("timeframeMode")),
            auto_sort=bool(data.get("autoSort", False)),
            default_color=data.get("defaultColor") or "",
            default_effect=data.get("defaultEffect") or "",
            background_image=data.get("backgroundImage") or "",
            line_width=int(data.get("lineWidth") or 2),
            line_color=data.get("lineColor") or "",
            line_style=data.get("lineStyle") or "solid",
            line_effect=data.get("lineEffect") or "none",
            dot_size=int(data.get("dotSize") or 12),
            dot_shape=data.get("dotShape") or "default",
        )
        timeline.entries = [Entry.from_dict(e) for e in data.get("entries") or []]
        return timeline

    def get_entry(self, entry_id: str) -> Optional[Entry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def entry_index(self, entry_id: str) -> int:
        for i, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return i
        return -1


@dataclass
class Tag:
    id: str = field(default_factory=random_id)
    label: str = ""
    color: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "color": self.color}

    @classmethod
    def from_dict(cls, data: dict) -> "Tag":
        return cls(
            id=data.get("id") or random_id(),
            label=data.get("label") or "",
            color=data.get("color") or "",
        )


@dataclass
class Color:
    id: str = field(default_factory=random_id)
    label: str = ""
    value: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict) -> "Color":
        return cls(
            id=data.get("id") or random_id(),
            label=data.get("label") or "",
            value=data.get("value") or "",
        )


@dataclass
class Broadcast:
    """Last-write-wins pointer telling viewers to show a timeline."""
    timeline_id: str = ""
    timestamp: int = 0  # ms since epoch

    def to_dict(self) -> dict:
        return {"timelineId": self.timeline_id, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Broadcast":
        data = data or {}
        return cls(
            timeline_id=data.get("timelineId") or "",
            timestamp=int(data.get("timestamp") or 0),
        )


DEFAULT_COLORS: List[Dict[str, Any]] = [
    {"id": "red", "label": "Red", "value": "#FF0000"},
    {"id": "orange", "label": "Orange", "value": "#FF8000"},
    {"id": "yellow", "label": "Yellow", "value": "#FFFF00"},
    {"id": "chartreuse", "label": "Chartreuse", "value": "#80FF00"},
    {"id": "green", "label": "Green", "value": "#00FF00"},
    {"id": "cyan", "label": "Cyan", "value": "#00FFFF"},
    {"id": "azure", "label": "Azure", "value": "#0080FF"},
    {"id": "blue", "label": "Blue", "value": "#0000FF"},
    {"id": "violet", "label": "Violet", "value": "#8000FF"},
    {"id": "magenta", "label": "Magenta", "value": "#FF00FF"},
]
