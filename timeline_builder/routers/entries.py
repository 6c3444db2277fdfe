"""Entry editing endpoints (GM only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from timeline_builder.core.manager import TimelineManager
from timeline_builder.core.models import Entry
from timeline_builder.dependencies.viewer import require_gm
from timeline_builder.models.schemas import (
    EntryFieldsRequest,
    EntryResponse,
    EntryTagsRequest,
    ImageFocusRequest,
    MysteryModel,
    PageLinkRequest,
    ReorderRequest,
    TimelineResponse,
)

router = APIRouter(prefix="/timelines/{timeline_id}/entries", tags=["entries"])

_NOT_FOUND = "Timeline or entry not found"


def _entry_or_404(entry: Entry | None) -> EntryResponse:
    if entry is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return EntryResponse.from_entry(entry)


async def _timeline_response(manager: TimelineManager, timeline_id: str) -> TimelineResponse:
    timeline = await manager.store.get_timeline(timeline_id)
    if timeline is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return TimelineResponse.from_timeline(timeline)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


@router.post("", response_model=EntryResponse, status_code=201, summary="Append an entry")
async def add_entry(
    timeline_id: str,
    body: EntryFieldsRequest,
    manager: TimelineManager = Depends(require_gm),
) -> EntryResponse:
    return _entry_or_404(await manager.add_entry(timeline_id, body.to_patch()))


@router.post(
    "/{entry_id}/insert-after",
    response_model=EntryResponse,
    status_code=201,
    summary="Insert an entry after another",
)
async def insert_entry(
    timeline_id: str,
    entry_id: str,
    body: EntryFieldsRequest,
    manager: TimelineManager = Depends(require_gm),
) -> EntryResponse:
    """Insert directly after ``entry_id``; appends when that entry does not exist."""
    return _entry_or_404(await manager.insert_entry(timeline_id, entry_id, body.to_patch()))


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------


@router.put("/order", response_model=TimelineResponse, summary="Reorder entries")
async def reorder_entries(
    timeline_id: str,
    body: ReorderRequest,
    manager: TimelineManager = Depends(require_gm),
) -> TimelineResponse:
    """Apply a full ordering. Entries missing from ``orderedIds`` are removed."""
    if not await manager.store.update_entry_order(timeline_id, body.ordered_ids):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return await _timeline_response(manager, timeline_id)


@router.post("/{entry_id}/move-up", response_model=TimelineResponse, summary="Move an entry up")
async def move_entry_up(
    timeline_id: str,
    entry_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> TimelineResponse:
    await manager.move_entry_up(timeline_id, entry_id)
    return await _timeline_response(manager, timeline_id)


@router.post("/{entry_id}/move-down", response_model=TimelineResponse, summary="Move an entry down")
async def move_entry_down(
    timeline_id: str,
    entry_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> TimelineResponse:
    await manager.move_entry_down(timeline_id, entry_id)
    return await _timeline_response(manager, timeline_id)


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------


@router.patch("/{entry_id}", response_model=EntryResponse, summary="Update an entry")
async def update_entry(
    timeline_id: str,
    entry_id: str,
    body: EntryFieldsRequest,
    manager: TimelineManager = Depends(require_gm),
) -> EntryResponse:
    """Merge the given fields. A new period is validated against the
    timeline's timeframe mode and re-sorts the timeline when auto-sort is on.
    """
    return _entry_or_404(await manager.update_entry(timeline_id, entry_id, body.to_patch()))


@router.delete("/{entry_id}", status_code=204, summary="Delete an entry")
async def delete_entry(
    timeline_id: str,
    entry_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> Response:
    if not await manager.delete_entry(timeline_id, entry_id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return Response(status_code=204)


@router.post("/{entry_id}/hidden/toggle", response_model=EntryResponse, summary="Hide or reveal an entry")
async def toggle_entry_hidden(
    timeline_id: str,
    entry_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> EntryResponse:
    return _entry_or_404(await manager.toggle_entry_hidden(timeline_id, entry_id))


@router.put("/{entry_id}/mystery", response_model=EntryResponse, summary="Set mystery flags")
async def set_mystery(
    timeline_id: str,
    entry_id: str,
    body: MysteryModel,
    manager: TimelineManager = Depends(require_gm),
) -> EntryResponse:
    entry = await manager.set_mystery(
        timeline_id, entry_id, img=body.img, text=body.text, timeframe=body.timeframe
    )
    return _entry_or_404(entry)


@router.put("/{entry_id}/image-focus", response_model=EntryResponse, summary="Set the image focus point")
async def set_image_focus(
    timeline_id: str,
    entry_id: str,
    body: ImageFocusRequest,
    manager: TimelineManager = Depends(require_gm),
) -> EntryResponse:
    """Coordinates are percentages, clamped to 0-100."""
    return _entry_or_404(await manager.set_image_focus(timeline_id, entry_id, body.x, body.y))


@router.put("/{entry_id}/tags", response_model=EntryResponse, summary="Replace the entry's tags")
async def set_entry_tags(
    timeline_id: str,
    entry_id: str,
    body: EntryTagsRequest,
    manager: TimelineManager = Depends(require_gm),
) -> EntryResponse:
    return _entry_or_404(await manager.set_entry_tags(timeline_id, entry_id, body.tag_ids))


@router.put("/{entry_id}/page", response_model=EntryResponse, summary="Link a document page")
async def link_page(
    timeline_id: str,
    entry_id: str,
    body: PageLinkRequest,
    manager: TimelineManager = Depends(require_gm),
) -> EntryResponse:
    return _entry_or_404(await manager.link_page(timeline_id, entry_id, body.page_uuid))


@router.delete("/{entry_id}/page", response_model=EntryResponse, summary="Unlink the document page")
async def unlink_page(
    timeline_id: str,
    entry_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> EntryResponse:
    return _entry_or_404(await manager.unlink_page(timeline_id, entry_id))
