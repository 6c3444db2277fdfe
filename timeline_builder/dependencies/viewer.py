"""FastAPI dependencies for viewer identity and access to the timeline core."""

from __future__ import annotations

import jwt as pyjwt
from fastapi import Depends, Header, HTTPException, Request

from timeline_builder.config import Settings
from timeline_builder.core.api import TimelineAPI
from timeline_builder.core.errors import NotPrivilegedError
from timeline_builder.core.manager import TimelineManager
from timeline_builder.core.visibility import ViewerContext
from timeline_builder.services.viewer_jwt import verify_viewer_token


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings


def get_timeline_api(request: Request) -> TimelineAPI:
    api = getattr(request.app.state, "timeline_api", None)
    if api is None:
        raise RuntimeError("Timeline store not initialised.")
    return api


async def get_viewer(
    authorization: str = Header(..., description="Bearer <viewer_token>"),
    settings: Settings = Depends(get_app_settings),
) -> ViewerContext:
    """Dependency that verifies a viewer-session JWT and returns the viewer context."""
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid Authorization header format")

    token = authorization[len("Bearer ") :]
    try:
        payload = verify_viewer_token(token, jwt_secret=settings.viewer_jwt_secret)
    except pyjwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return payload.to_context()


async def require_gm(
    viewer: ViewerContext = Depends(get_viewer),
    api: TimelineAPI = Depends(get_timeline_api),
) -> TimelineManager:
    """Dependency that hands out the editing surface, or 403 for non-GM viewers."""
    try:
        return api.manage(viewer)
    except NotPrivilegedError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
