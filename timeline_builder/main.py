"""FastAPI application entry-point for the Timeline Builder service.

Serves the GM editing API for timelines, entries, tags and colors, and the
role-filtered viewer API used by players.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timeline_builder import __version__
from timeline_builder.config import Settings, get_settings, is_production
from timeline_builder.core.api import TimelineAPI
from timeline_builder.core.errors import (
    DuplicateNameError,
    LastColorError,
    NotPrivilegedError,
    PeriodValidationError,
)
from timeline_builder.core.pages import PageResolver
from timeline_builder.core.persistence import (
    JsonFilePersistence,
    MemoryPersistence,
    PersistencePort,
    SqlPersistence,
)
from timeline_builder.core.store import DataStore
from timeline_builder.database import create_schema, init_engine, shutdown_engine
from timeline_builder.logging_config import configure_logging
from timeline_builder.routers import entries, health, palette, timelines, viewer

_logger = logging.getLogger(__name__)


async def build_persistence(settings: Settings) -> PersistencePort:
    """Create the persistence adapter selected by ``TLB_PERSISTENCE_BACKEND``."""
    if settings.persistence_backend == "memory":
        return MemoryPersistence()
    if settings.persistence_backend == "json":
        return JsonFilePersistence(settings.json_storage_dir)

    session_factory = init_engine(settings)
    await create_schema()
    return SqlPersistence(session_factory)


def create_app(
    settings: Settings | None = None,
    store: DataStore | None = None,
    page_resolver: PageResolver | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    When ``store`` is given it is used as-is and the lifespan does not open
    a persistence backend.
    """
    if settings is None:
        settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Open the configured persistence on startup, tear down on shutdown."""
        # Configure logging before anything else
        configure_logging()
        _logger.info("Starting Timeline Builder")

        if store is None:
            persistence = await build_persistence(settings)
            app.state.timeline_api = TimelineAPI(DataStore(persistence), page_resolver)
            _logger.info(f"Timeline store ready ({settings.persistence_backend} backend)")
        yield
        _logger.info("Shutting down Timeline Builder")
        await shutdown_engine()

    application = FastAPI(
        title="Timeline Builder",
        description="Chronological timelines with GM-controlled visibility for tabletop sessions.",
        version=__version__,
        lifespan=lifespan,
    )
    application.state.settings = settings
    application.state.timeline_api = TimelineAPI(store, page_resolver) if store is not None else None

    # -- CORS ------------------------------------------------------------------
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    # -- Routers ---------------------------------------------------------------
    application.include_router(health.router)
    application.include_router(viewer.router, prefix="/api/v1")
    application.include_router(timelines.router, prefix="/api/v1")
    application.include_router(entries.router, prefix="/api/v1")
    application.include_router(palette.router, prefix="/api/v1")

    # -- Exception handlers ----------------------------------------------------
    @application.exception_handler(PeriodValidationError)
    async def _period_handler(_request: Request, exc: PeriodValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "mode": exc.mode, "expected": exc.expected},
        )

    @application.exception_handler(DuplicateNameError)
    async def _duplicate_handler(_request: Request, exc: DuplicateNameError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @application.exception_handler(LastColorError)
    async def _last_color_handler(_request: Request, exc: LastColorError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @application.exception_handler(NotPrivilegedError)
    async def _privilege_handler(_request: Request, exc: NotPrivilegedError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": str(exc)})

    @application.exception_handler(Exception)
    async def _global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch unhandled exceptions and return a clean JSON error response."""
        _logger.exception(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
            },
        )

        # Don't expose internal details in production
        if is_production():
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error": str(exc),
                "type": type(exc).__name__,
            },
        )

    return application


app = create_app()
