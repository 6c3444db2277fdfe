"""Timeline management endpoints (GM only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from timeline_builder.core.manager import TimelineManager
from timeline_builder.dependencies.viewer import require_gm
from timeline_builder.models.schemas import (
    BroadcastResponse,
    CreateTimelineRequest,
    PermissionsRequest,
    SortResponse,
    TimelineResponse,
    UpdateTimelineRequest,
)

router = APIRouter(prefix="/timelines", tags=["timelines"])

_NOT_FOUND = "Timeline not found"


# ---------------------------------------------------------------------------
# GET / POST /timelines
# ---------------------------------------------------------------------------


@router.get("", response_model=list[TimelineResponse], summary="List all timelines")
async def list_timelines(
    manager: TimelineManager = Depends(require_gm),
) -> list[TimelineResponse]:
    """Every timeline, hidden ones included, in stored order."""
    timelines = await manager.store.get_timelines()
    return [TimelineResponse.from_timeline(t) for t in timelines]


@router.post(
    "",
    response_model=TimelineResponse,
    status_code=201,
    summary="Create a timeline",
)
async def create_timeline(
    body: CreateTimelineRequest,
    manager: TimelineManager = Depends(require_gm),
) -> TimelineResponse:
    """Create a hidden, empty timeline. A blank name gets an automatic one."""
    timeline = await manager.create_timeline(body.name)
    return TimelineResponse.from_timeline(timeline)


# ---------------------------------------------------------------------------
# GET / PATCH / DELETE /timelines/{timeline_id}
# ---------------------------------------------------------------------------


@router.get("/{timeline_id}", response_model=TimelineResponse, summary="Get a timeline")
async def get_timeline(
    timeline_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> TimelineResponse:
    timeline = await manager.store.get_timeline(timeline_id)
    if timeline is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return TimelineResponse.from_timeline(timeline)


@router.patch("/{timeline_id}", response_model=TimelineResponse, summary="Update timeline settings")
async def update_timeline(
    timeline_id: str,
    body: UpdateTimelineRequest,
    manager: TimelineManager = Depends(require_gm),
) -> TimelineResponse:
    timeline = await manager.configure_timeline(timeline_id, body.to_patch())
    if timeline is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return TimelineResponse.from_timeline(timeline)


@router.delete("/{timeline_id}", status_code=204, summary="Delete a timeline")
async def delete_timeline(
    timeline_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> Response:
    if not await manager.delete_timeline(timeline_id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Timeline actions
# ---------------------------------------------------------------------------


@router.put(
    "/{timeline_id}/permissions",
    response_model=TimelineResponse,
    summary="Replace per-viewer visibility overrides",
)
async def set_permissions(
    timeline_id: str,
    body: PermissionsRequest,
    manager: TimelineManager = Depends(require_gm),
) -> TimelineResponse:
    timeline = await manager.set_permissions(timeline_id, body.permissions)
    if timeline is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return TimelineResponse.from_timeline(timeline)


@router.post(
    "/{timeline_id}/visibility/toggle",
    response_model=TimelineResponse,
    summary="Flip the global visibility flag",
)
async def toggle_visibility(
    timeline_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> TimelineResponse:
    timeline = await manager.toggle_visibility(timeline_id)
    if timeline is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return TimelineResponse.from_timeline(timeline)


@router.post(
    "/{timeline_id}/sort",
    response_model=SortResponse,
    summary="Sort entries chronologically",
)
async def sort_timeline(
    timeline_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> SortResponse:
    """Sort by the timeline's timeframe mode. This cannot be undone."""
    ordered_ids = await manager.sort_timeline(timeline_id)
    if ordered_ids is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return SortResponse(timeline_id=timeline_id, ordered_ids=ordered_ids)


@router.post(
    "/{timeline_id}/broadcast",
    response_model=BroadcastResponse,
    summary="Show this timeline to every viewer",
)
async def broadcast_timeline(
    timeline_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> BroadcastResponse:
    """Make the timeline visible and announce it to connected viewers."""
    broadcast = await manager.broadcast(timeline_id)
    if broadcast is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return BroadcastResponse.from_broadcast(broadcast)
