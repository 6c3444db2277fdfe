"""
Timeline core: data store, ordering, visibility and display resolution.
"""

from .api import TimelineAPI
from .errors import (
    DuplicateNameError,
    LastColorError,
    NotPrivilegedError,
    PeriodValidationError,
    TimelineBuilderError,
)
from .manager import TimelineManager
from .models import Broadcast, Color, Entry, Tag, Timeline, TimeframeMode
from .ordering import OrderingEngine
from .persistence import JsonFilePersistence, MemoryPersistence, SqlPersistence
from .store import DataStore
from .viewer import TimelineView, TimelineViewer
from .visibility import Role, ViewerContext, ViewFilters

__all__ = [
    'TimelineAPI',
    'TimelineManager',
    'TimelineViewer',
    'TimelineView',
    'DataStore',
    'OrderingEngine',
    'MemoryPersistence',
    'JsonFilePersistence',
    'SqlPersistence',
    'Timeline',
    'Entry',
    'Tag',
    'Color',
    'Broadcast',
    'TimeframeMode',
    'Role',
    'ViewerContext',
    'ViewFilters',
    'TimelineBuilderError',
    'PeriodValidationError',
    'DuplicateNameError',
    'LastColorError',
    'NotPrivilegedError',
]
