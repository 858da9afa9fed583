"""Client-side synchronization of the remote event collection.

Provides:
- EventTransport: HTTP calls to the remote event service
- CacheStore: versioned snapshot per cache key
- SyncController: fetch/coalesce/write/invalidate state machine
- filter_events: client-side text filter
"""

from .cache_store import CacheEntry, CacheStatus, CacheStore
from .controller import (
    EVENTS_KEY,
    EventsView,
    PendingWrite,
    SyncController,
    WriteStatus,
)
from .errors import (
    BusyError,
    DecodeError,
    NetworkError,
    Result,
    ServerError,
    SyncError,
    ValidationError,
)
from .filter_view import TEXT_FIELDS, filter_events
from .transport import EventTransport

__all__ = [
    "BusyError",
    "CacheEntry",
    "CacheStatus",
    "CacheStore",
    "DecodeError",
    "EVENTS_KEY",
    "EventTransport",
    "EventsView",
    "NetworkError",
    "PendingWrite",
    "Result",
    "ServerError",
    "SyncController",
    "SyncError",
    "TEXT_FIELDS",
    "ValidationError",
    "WriteStatus",
    "filter_events",
]
