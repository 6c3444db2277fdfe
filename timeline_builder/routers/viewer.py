"""Viewer endpoints: the role-filtered timeline view and the broadcast slot."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from timeline_builder.core.api import TimelineAPI
from timeline_builder.core.visibility import ViewerContext
from timeline_builder.dependencies.viewer import get_timeline_api, get_viewer
from timeline_builder.models.schemas import BroadcastResponse, ViewResponse

router = APIRouter(tags=["viewer"])


@router.get("/view", response_model=ViewResponse, summary="Open the timeline view")
async def open_view(
    timeline_id: str | None = Query(None, alias="timelineId"),
    tag: list[str] = Query(default=[]),
    q: str = Query("", max_length=100),
    viewer: ViewerContext = Depends(get_viewer),
    api: TimelineAPI = Depends(get_timeline_api),
) -> ViewResponse:
    """Return what this viewer may see of the selected timeline.

    Without ``timelineId`` the viewer's previous selection is kept, falling
    back to the first visible timeline. ``tag`` (repeatable) and ``q`` (a
    period substring) narrow the entry list.
    """
    session = api.viewer_session(viewer)
    if timeline_id:
        session.select_timeline(timeline_id)
    session.active_tag_ids = set(tag)
    session.set_text_filter(q)
    return ViewResponse.from_view(await api.open(viewer))


@router.get("/broadcast", response_model=BroadcastResponse, summary="Current broadcast")
async def get_broadcast(
    _viewer: ViewerContext = Depends(get_viewer),
    api: TimelineAPI = Depends(get_timeline_api),
) -> BroadcastResponse:
    """The most recently broadcast timeline, empty if none."""
    return BroadcastResponse.from_broadcast(await api.store.get_broadcast())
