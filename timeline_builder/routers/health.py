"""Health-check endpoint for load balancers and monitoring."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from timeline_builder import __version__
from timeline_builder.core.api import TimelineAPI
from timeline_builder.dependencies.viewer import get_timeline_api
from timeline_builder.models.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check(
    api: TimelineAPI = Depends(get_timeline_api),
) -> HealthResponse | JSONResponse:
    """Return service health along with the number of stored timelines."""
    try:
        timelines = await api.store.get_timelines()
    except Exception:
        logger.exception("Health check: timeline store read failed")
        return JSONResponse(
            status_code=503,
            content={"status": "degraded", "error": "store_unavailable"},
        )

    return HealthResponse(status="ok", version=__version__, timelines=len(timelines))
