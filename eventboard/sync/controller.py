"""Sync controller: the only writer of the event cache.

State per key::

    IDLE -> LOADING -> READY | ERROR
    READY | ERROR -> LOADING     (explicit refetch)
    any -> IDLE                  (invalidate, e.g. after a successful write)

Read failures stay in ERROR until an explicit refetch; they are never retried
automatically. At most one fetch per key is in flight: concurrent ``load``
calls wait on the same task.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from ..models import Event
from .cache_store import CacheEntry, CacheStatus, CacheStore
from .errors import BusyError, NetworkError, Result, SyncError
from .filter_view import filter_events
from .transport import EventTransport

logger = logging.getLogger(__name__)

EVENTS_KEY = "events"

# Fetches one load() may start or join before giving up on a settled entry
MAX_LOAD_ATTEMPTS = 2


class WriteStatus(Enum):
    """Status of the tracked write."""

    SENDING = "sending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class PendingWrite:
    """The one write the controller is tracking."""

    payload: dict[str, Any]
    status: WriteStatus = WriteStatus.SENDING
    error: SyncError | None = None


@dataclass(frozen=True)
class EventsView:
    """What the UI renders: filtered events plus status and message."""

    status: CacheStatus
    query: str
    events: list[Event] = field(default_factory=list)
    total: int = 0
    version: int = 0
    error: SyncError | None = None
    message: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.status in (CacheStatus.IDLE, CacheStatus.LOADING)

    @property
    def has_error(self) -> bool:
        return self.status == CacheStatus.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "version": self.version,
            "query": self.query,
            "count": len(self.events),
            "total": self.total,
            "events": [e.to_dict() for e in self.events],
            "error": (
                {"kind": self.error.kind, "message": self.error.describe()}
                if self.error
                else None
            ),
            "message": self.message,
        }


class SyncController:
    """Coordinates the transport and the cache store.

    Handles:
    - Fetch on first read (or whenever the entry is IDLE)
    - Coalescing of concurrent fetches
    - Write, then invalidate on success
    - Rejecting a second write while one is being sent
    """

    def __init__(
        self,
        transport: EventTransport,
        store: CacheStore | None = None,
    ):
        """Initialize the controller.

        Args:
            transport: Transport for the remote event service.
            store: Cache store to own. A new one is created if omitted.
        """
        self.transport = transport
        self.store = store if store is not None else CacheStore()
        self._inflight: dict[str, asyncio.Task] = {}
        self._pending_write: PendingWrite | None = None

        self.store.read(EVENTS_KEY)

    @property
    def pending_write(self) -> PendingWrite | None:
        """The tracked write, or None when nothing is pending or failed."""
        return self._pending_write

    def subscribe(
        self,
        callback: Callable[[CacheEntry], None],
        key: str = EVENTS_KEY,
    ) -> Callable[[], None]:
        """Listen for cache transitions. Returns the unsubscribe handle."""
        return self.store.subscribe(key, callback)

    # ==================== Reads ====================

    async def load(self, key: str = EVENTS_KEY) -> CacheEntry:
        """Make sure the entry has been fetched and return its snapshot.

        Args:
            key: Cache key.

        Returns:
            Entry after any fetch this call started or joined has completed.
            If an invalidation drops that fetch, one more fetch is started;
            after that the entry is returned as it is.
        """
        for _ in range(MAX_LOAD_ATTEMPTS):
            entry = self.store.read(key)

            if entry.status == CacheStatus.LOADING:
                task = self._inflight.get(key)
                if task is None:
                    return entry
                logger.debug(f"Joining in-flight fetch for {key}")
                await asyncio.shield(task)
            elif entry.status == CacheStatus.IDLE:
                await asyncio.shield(self._start_fetch(key))
            else:
                return entry

        return self.store.read(key)

    async def refetch(self, key: str = EVENTS_KEY) -> CacheEntry:
        """Explicitly refetch, e.g. when the user retries after an error."""
        if self.store.read(key).status != CacheStatus.LOADING:
            self.store.invalidate(key)
        return await self.load(key)

    def _start_fetch(self, key: str) -> asyncio.Task:
        token = self.store.begin_load(key)
        task = asyncio.ensure_future(self._fetch(key, token))
        self._inflight[key] = task
        task.add_done_callback(lambda t: self._forget(key, t))
        return task

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _fetch(self, key: str, token: int) -> None:
        logger.debug(f"Fetching {key} (token {token})")
        try:
            result = await self.transport.fetch_collection()
        except Exception as e:
            # Leave the entry in ERROR rather than stuck in LOADING
            self.store.complete_load(key, token, Result.failure(NetworkError(str(e))))
            raise

        if not self.store.complete_load(key, token, result):
            logger.debug(f"Fetch for {key} superseded, result dropped")
        elif not result.ok:
            logger.warning(f"Loading {key} failed: {result.error.describe()}")
        else:
            logger.info(f"Loaded {len(result.value)} {key}")

    def view(self, query: str = "", key: str = EVENTS_KEY) -> EventsView:
        """Project the current snapshot through the filter.

        Never triggers a fetch. While an entry is IDLE or LOADING, the
        previous collection (if any) is still shown.
        """
        entry = self.store.read(key)

        if entry.status == CacheStatus.ERROR:
            return EventsView(
                status=entry.status,
                query=query,
                version=entry.version,
                error=entry.error,
                message=f"Error loading {key}: {entry.error.describe()}",
            )

        events = filter_events(entry.value, query)
        message = None
        if entry.status != CacheStatus.READY and not entry.value:
            message = f"Loading {key}..."

        return EventsView(
            status=entry.status,
            query=query,
            events=events,
            total=len(entry.value),
            version=entry.version,
            message=message,
        )

    async def get_view(self, query: str = "", key: str = EVENTS_KEY) -> EventsView:
        """Load if needed, then return the filtered view."""
        await self.load(key)
        return self.view(query, key)

    # ==================== Writes ====================

    async def submit_event(self, payload: dict[str, Any]) -> Result[Event]:
        """Submit a new event and invalidate the collection on success.

        Args:
            payload: Fields of the new event.

        Returns:
            Result with the created event, BusyError if a write is already
            being sent, or the transport's error.
        """
        current = self._pending_write
        if current is not None and current.status == WriteStatus.SENDING:
            logger.info("Rejecting write: another write is in flight")
            return Result.failure(BusyError())

        pending = PendingWrite(payload=dict(payload))
        self._pending_write = pending

        try:
            result = await self.transport.submit_event(pending.payload)
        except Exception as e:
            pending.status = WriteStatus.FAILED
            pending.error = NetworkError(str(e))
            raise

        if not result.ok:
            pending.status = WriteStatus.FAILED
            pending.error = result.error
            logger.warning(f"Adding event failed: {result.error.describe()}")
            return result

        pending.status = WriteStatus.SUCCEEDED
        self._pending_write = None
        self.store.invalidate(EVENTS_KEY)
        logger.info(f"Added event {result.value.id!r}: {result.value.title}")
        return result

    # ==================== Lifecycle ====================

    async def close(self) -> None:
        """Cancel in-flight fetches, close the transport and drop the cache."""
        for task in list(self._inflight.values()):
            task.cancel()
        self._inflight.clear()
        await self.transport.close()
        self.store.clear()
