"""Global tag and color registry endpoints (GM only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from timeline_builder.core.manager import TimelineManager
from timeline_builder.dependencies.viewer import require_gm
from timeline_builder.models.schemas import (
    ColorResponse,
    CreateColorRequest,
    CreateTagRequest,
    TagResponse,
    UpdateColorRequest,
    UpdateTagRequest,
)

router = APIRouter(tags=["palette"])


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


@router.get("/tags", response_model=list[TagResponse], summary="List tags")
async def list_tags(manager: TimelineManager = Depends(require_gm)) -> list[TagResponse]:
    return [TagResponse.from_tag(t) for t in await manager.store.get_tags()]


@router.post("/tags", response_model=TagResponse, status_code=201, summary="Create a tag")
async def create_tag(
    body: CreateTagRequest,
    manager: TimelineManager = Depends(require_gm),
) -> TagResponse:
    """Labels are unique regardless of case; a clash returns 409."""
    return TagResponse.from_tag(await manager.create_tag(body.label, body.color))


@router.patch("/tags/{tag_id}", response_model=TagResponse, summary="Edit a tag")
async def update_tag(
    tag_id: str,
    body: UpdateTagRequest,
    manager: TimelineManager = Depends(require_gm),
) -> TagResponse:
    tag = await manager.update_tag(tag_id, label=body.label, color=body.color)
    if tag is None:
        raise HTTPException(status_code=404, detail="Tag not found")
    return TagResponse.from_tag(tag)


@router.delete("/tags/{tag_id}", status_code=204, summary="Delete a tag")
async def delete_tag(
    tag_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> Response:
    if not await manager.delete_tag(tag_id):
        raise HTTPException(status_code=404, detail="Tag not found")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------


@router.get("/colors", response_model=list[ColorResponse], summary="List palette colors")
async def list_colors(manager: TimelineManager = Depends(require_gm)) -> list[ColorResponse]:
    return [ColorResponse.from_color(c) for c in await manager.store.get_colors()]


@router.post("/colors", response_model=ColorResponse, status_code=201, summary="Create a color")
async def create_color(
    body: CreateColorRequest,
    manager: TimelineManager = Depends(require_gm),
) -> ColorResponse:
    return ColorResponse.from_color(await manager.create_color(body.label, body.value))


@router.patch("/colors/{color_id}", response_model=ColorResponse, summary="Edit a color")
async def update_color(
    color_id: str,
    body: UpdateColorRequest,
    manager: TimelineManager = Depends(require_gm),
) -> ColorResponse:
    """A changed value is rewritten in every tag, timeline and entry still using the old one."""
    color = await manager.update_color(color_id, label=body.label, value=body.value)
    if color is None:
        raise HTTPException(status_code=404, detail="Color not found")
    return ColorResponse.from_color(color)


@router.delete("/colors/{color_id}", status_code=204, summary="Delete a color")
async def delete_color(
    color_id: str,
    manager: TimelineManager = Depends(require_gm),
) -> Response:
    """The last remaining color cannot be deleted (409)."""
    if not await manager.delete_color(color_id):
        raise HTTPException(status_code=404, detail="Color not found")
    return Response(status_code=204)
