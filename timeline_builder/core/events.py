"""
Change notification for the data store.

Subscribers are called after every persisted collection write, in
subscription order. Handlers may be plain functions or coroutines.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreChange:
    """A collection that was just written."""
    key: str
    value: Any


ChangeHandler = Callable[[StoreChange], Union[None, Awaitable[None]]]


class ChangeNotifier:
    """Minimal publish/subscribe hub keyed on nothing but write order."""

    def __init__(self) -> None:
        self._handlers: List[ChangeHandler] = []

    def subscribe(self, handler: ChangeHandler) -> Callable[[], None]:
        """
        Register a handler for store changes.

        Returns:
            A callable that removes the handler again.
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    async def publish(self, change: StoreChange) -> None:
        # Copy so handlers may unsubscribe while being notified
        for handler in list(self._handlers):
            try:
                result = handler(change)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Store change handler failed for '{change.key}'")
