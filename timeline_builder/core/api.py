"""
Public entry points used by the host application.

``open`` shows a timeline to any viewer; ``manage`` hands out the editing
surface and refuses anyone who is not the GM.
"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple, Union

from timeline_builder.core.errors import NotPrivilegedError
from timeline_builder.core.events import StoreChange
from timeline_builder.core.manager import TimelineManager
from timeline_builder.core.models import Broadcast
from timeline_builder.core.ordering import OrderingEngine
from timeline_builder.core.pages import PageResolver
from timeline_builder.core.persistence import Collections
from timeline_builder.core.store import DataStore
from timeline_builder.core.viewer import TimelineView, TimelineViewer
from timeline_builder.core.visibility import ViewerContext

logger = logging.getLogger(__name__)

OpenHandler = Callable[[TimelineView], Union[None, Awaitable[None]]]


class TimelineAPI:
    def __init__(self, store: DataStore, page_resolver: Optional[PageResolver] = None):
        self.store = store
        self.page_resolver = page_resolver
        self.ordering = OrderingEngine(store)
        self._manager: Optional[TimelineManager] = None
        self._viewers: Dict[Tuple[str, str], TimelineViewer] = {}

    def manage(self, viewer: ViewerContext) -> TimelineManager:
        """Return the editing surface.

        Raises:
            NotPrivilegedError: the viewer is not the GM.
        """
        if not viewer.is_gm:
            logger.warning("Non-GM viewer tried to manage timelines", extra={"viewer_id": viewer.user_id})
            raise NotPrivilegedError()
        if self._manager is None:
            self._manager = TimelineManager(self.store, self.ordering)
        return self._manager

    def viewer_session(self, viewer: ViewerContext) -> TimelineViewer:
        """The viewer's session, created on first use and kept afterwards."""
        key = (viewer.user_id, viewer.role.value)
        session = self._viewers.get(key)
        if session is None:
            session = TimelineViewer(self.store, viewer, self.page_resolver)
            self._viewers[key] = session
        return session

    async def open(self, viewer: ViewerContext, timeline_id: Optional[str] = None) -> TimelineView:
        """Render the viewer's timeline screen, selecting ``timeline_id`` if given.

        Without an id the previous selection is kept, defaulting to the first
        timeline the viewer can see.
        """
        session = self.viewer_session(viewer)
        if timeline_id:
            session.select_timeline(timeline_id)
        return await session.render()

    def follow_broadcasts(self, viewer: ViewerContext, on_open: OpenHandler) -> Callable[[], None]:
        """Open broadcast timelines for this viewer as they are announced.

        GMs start broadcasts and are not redirected by them. Returns an
        unsubscribe callable.
        """

        async def _on_change(change: StoreChange) -> None:
            if change.key != Collections.BROADCAST or viewer.is_gm:
                return
            broadcast = Broadcast.from_dict(change.value)
            if not broadcast.timeline_id:
                return
            view = await self.open(viewer, broadcast.timeline_id)
            result = on_open(view)
            if inspect.isawaitable(result):
                await result

        return self.store.subscribe(_on_change)
