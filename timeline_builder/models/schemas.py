"""Pydantic request / response schemas for the timeline API.

JSON bodies use camelCase, matching the persisted record format.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from timeline_builder.core.display import DisplayEntry
from timeline_builder.core.models import Broadcast, Color, Entry, Tag, Timeline
from timeline_builder.core.viewer import TimelineView

TimeframeModeName = Literal["free", "date", "date_my", "datetime", "hour", "hour2"]

HEX_COLOR_PATTERN = r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_patch(self) -> dict[str, Any]:
        """Only the non-null fields the client actually sent, keyed as stored."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class ImagePositionModel(CamelModel):
    x: float = Field(default=50, ge=0, le=100)
    y: float = Field(default=50, ge=0, le=100)


class MysteryModel(CamelModel):
    img: bool = False
    text: bool = False
    timeframe: bool = False


# ---------------------------------------------------------------------------
# Timeline schemas
# ---------------------------------------------------------------------------


class CreateTimelineRequest(CamelModel):
    name: str = Field(default="", max_length=200)


class UpdateTimelineRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    visible: bool | None = None
    timeframe_mode: TimeframeModeName | None = None
    auto_sort: bool | None = None
    default_color: str | None = None
    default_effect: str | None = None
    background_image: str | None = None
    line_width: int | None = Field(default=None, ge=1, le=2)
    line_color: str | None = None
    line_style: str | None = None
    line_effect: str | None = None
    dot_size: int | None = Field(default=None, ge=1, le=64)
    dot_shape: str | None = None


class PermissionsRequest(CamelModel):
    permissions: dict[str, bool] = Field(default_factory=dict)


class EntryResponse(CamelModel):
    id: str
    name: str
    period: str
    description: str
    hidden: bool
    color: str
    effect: str
    effect_color: str
    img: str
    img_position: ImagePositionModel
    tag_ids: list[str]
    page_uuid: str
    mystery: MysteryModel
    sort: int

    @classmethod
    def from_entry(cls, entry: Entry) -> EntryResponse:
        return cls.model_validate(entry.to_dict())


class TimelineResponse(CamelModel):
    id: str
    name: str
    visible: bool
    user_permissions: dict[str, bool]
    entries: list[EntryResponse]
    timeframe_mode: TimeframeModeName
    auto_sort: bool
    default_color: str
    default_effect: str
    background_image: str
    line_width: int
    line_color: str
    line_style: str
    line_effect: str
    dot_size: int
    dot_shape: str

    @classmethod
    def from_timeline(cls, timeline: Timeline) -> TimelineResponse:
        return cls.model_validate(timeline.to_dict())


class SortResponse(CamelModel):
    timeline_id: str
    ordered_ids: list[str]


# ---------------------------------------------------------------------------
# Entry schemas
# ---------------------------------------------------------------------------


class EntryFieldsRequest(CamelModel):
    name: str | None = Field(default=None, max_length=200)
    period: str | None = Field(default=None, max_length=100)
    description: str | None = None
    hidden: bool | None = None
    color: str | None = None
    effect: str | None = None
    effect_color: str | None = None
    img: str | None = None
    img_position: ImagePositionModel | None = None
    tag_ids: list[str] | None = None
    page_uuid: str | None = None
    mystery: MysteryModel | None = None


class ReorderRequest(CamelModel):
    ordered_ids: list[str]


class ImageFocusRequest(CamelModel):
    x: float
    y: float


class EntryTagsRequest(CamelModel):
    tag_ids: list[str] = Field(default_factory=list)


class PageLinkRequest(CamelModel):
    page_uuid: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Tag & color schemas
# ---------------------------------------------------------------------------


class CreateTagRequest(CamelModel):
    label: str = Field(..., min_length=1, max_length=25)
    color: str = Field(..., pattern=HEX_COLOR_PATTERN)


class UpdateTagRequest(CamelModel):
    label: str | None = Field(default=None, min_length=1, max_length=25)
    color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)


class TagResponse(CamelModel):
    id: str
    label: str
    color: str

    @classmethod
    def from_tag(cls, tag: Tag) -> TagResponse:
        return cls.model_validate(tag.to_dict())


class CreateColorRequest(CamelModel):
    label: str = Field(..., min_length=1, max_length=25)
    value: str = Field(..., pattern=HEX_COLOR_PATTERN)


class UpdateColorRequest(CamelModel):
    label: str | None = Field(default=None, min_length=1, max_length=25)
    value: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)


class ColorResponse(CamelModel):
    id: str
    label: str
    value: str

    @classmethod
    def from_color(cls, color: Color) -> ColorResponse:
        return cls.model_validate(color.to_dict())


# ---------------------------------------------------------------------------
# Viewer schemas
# ---------------------------------------------------------------------------


class BroadcastResponse(CamelModel):
    timeline_id: str
    timestamp: int

    @classmethod
    def from_broadcast(cls, broadcast: Broadcast) -> BroadcastResponse:
        return cls.model_validate(broadcast.to_dict())


class DisplayTagResponse(CamelModel):
    id: str
    label: str
    color: str
    style: str


class DisplayEntryResponse(CamelModel):
    id: str
    name: str
    period: str
    description: str
    hidden: bool
    img: str
    img_position: ImagePositionModel
    sort: int
    page_uuid: str
    page_name: str | None = None
    display_color: str
    display_effect: str
    display_effect_color: str
    has_mystery: bool
    mystery_text: bool
    mystery_img: bool
    mystery_timeframe: bool
    tags: list[DisplayTagResponse]

    @classmethod
    def from_display(cls, entry: DisplayEntry) -> DisplayEntryResponse:
        return cls.model_validate(asdict(entry))


class FilterTagResponse(CamelModel):
    id: str
    label: str
    color: str
    active: bool


class TimelineSummary(CamelModel):
    id: str
    name: str
    background_image: str
    timeframe_mode: TimeframeModeName


class SelectedTimelineResponse(TimelineSummary):
    default_color: str
    default_effect: str
    line_width: int
    line_color: str
    line_style: str
    line_effect: str
    dot_size: int
    dot_shape: str
    entries: list[DisplayEntryResponse]


class ViewResponse(CamelModel):
    is_gm: bool
    has_timelines: bool
    has_active_filters: bool
    timelines: list[TimelineSummary]
    selected_timeline: SelectedTimelineResponse | None
    filter_tags: list[FilterTagResponse]

    @classmethod
    def from_view(cls, view: TimelineView) -> ViewResponse:
        selected = None
        if view.selected_timeline is not None:
            data = view.selected_timeline.to_dict()
            data["entries"] = [DisplayEntryResponse.from_display(e) for e in view.entries]
            selected = SelectedTimelineResponse.model_validate(data)
        return cls(
            is_gm=view.is_gm,
            has_timelines=view.has_timelines,
            has_active_filters=view.has_active_filters,
            timelines=[TimelineSummary.model_validate(t.to_dict()) for t in view.timelines],
            selected_timeline=selected,
            filter_tags=[
                FilterTagResponse(id=f.tag.id, label=f.tag.label, color=f.tag.color, active=f.active)
                for f in view.filter_tags
            ],
        )


# ---------------------------------------------------------------------------
# Health schema
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    timelines: int
