"""Resolution of linked document references to display names.

The document store itself lives in the host application; the core only
needs a ``resolve_name`` capability and treats any failure as an unknown
page.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Dict, Iterable, Mapping, Optional, Protocol, Union

from timeline_builder.core.display import DisplayEntry

logger = logging.getLogger(__name__)

UNKNOWN_PAGE = "Unknown Page"


class PageResolver(Protocol):
    def resolve_name(self, uuid: str) -> Union[Optional[str], Awaitable[Optional[str]]]:
        ...


class MappingPageResolver:
    """Resolves names from a fixed ``uuid -> name`` mapping."""

    def __init__(self, names: Optional[Mapping[str, str]] = None) -> None:
        self._names: Dict[str, str] = dict(names or {})

    def resolve_name(self, uuid: str) -> Optional[str]:
        return self._names.get(uuid)


async def safe_resolve_name(resolver: PageResolver, uuid: str) -> str:
    """Resolve a page name; never raises."""
    try:
        result = resolver.resolve_name(uuid)
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        logger.warning(f"Page lookup failed for {uuid}: {e}")
        return UNKNOWN_PAGE
    return result or UNKNOWN_PAGE


async def resolve_page_names(entries: Iterable[DisplayEntry], resolver: PageResolver) -> None:
    """Attach ``page_name`` to every linked entry, resolving lookups concurrently."""
    linked = [e for e in entries if e.page_uuid]
    names = await asyncio.gather(*(safe_resolve_name(resolver, e.page_uuid) for e in linked))
    for entry, name in zip(linked, names):
        entry.page_name = name
