"""Versioned single-slot cache for remote collections.

Each key holds one ``CacheEntry`` snapshot. Entries are immutable; every
transition replaces the snapshot and notifies subscribers once. The version
counter lets a fetch that was started before an invalidation (or before a
newer fetch) be recognised and dropped when its response finally arrives.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from .errors import Result, SyncError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheStatus(Enum):
    """Load status of a cache entry."""

    IDLE = "idle"  # Needs a fetch
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Snapshot of one cached collection."""

    key: str
    value: tuple[T, ...] = ()
    status: CacheStatus = CacheStatus.IDLE
    error: SyncError | None = None
    version: int = 0


Listener = Callable[[CacheEntry], None]


class CacheStore:
    """Holds the last known collection per key.

    Only the sync controller should call the mutating methods; everything
    else reads snapshots via ``read`` or ``subscribe``.
    """

    def __init__(self):
        self._entries: dict[str, CacheEntry] = {}
        self._listeners: dict[str, list[Listener]] = {}

    def read(self, key: str) -> CacheEntry:
        """Return the current snapshot for a key, creating an idle one."""
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key)
            self._entries[key] = entry
        return entry

    def keys(self) -> list[str]:
        return list(self._entries)

    def begin_load(self, key: str) -> int | None:
        """Move an entry to LOADING.

        Args:
            key: Cache key.

        Returns:
            The version before the transition, to be passed back to
            ``complete_load``; None if a load is already in progress.
        """
        entry = self.read(key)
        if entry.status == CacheStatus.LOADING:
            logger.debug(f"begin_load({key}) ignored: already loading")
            return None

        token = entry.version
        self._set(replace(entry, status=CacheStatus.LOADING, error=None))
        return token

    def complete_load(self, key: str, token: int, result: Result[Any]) -> bool:
        """Apply a fetch result if it is still current.

        Args:
            key: Cache key.
            token: Version returned by ``begin_load``.
            result: Outcome of the fetch.

        Returns:
            True if applied, False if discarded as stale.
        """
        entry = self.read(key)
        if token != entry.version or entry.status != CacheStatus.LOADING:
            logger.debug(
                f"Discarding stale load for {key}: token={token}, "
                f"current version={entry.version}, status={entry.status.value}"
            )
            return False

        if result.ok:
            new_entry = replace(
                entry,
                value=tuple(result.value or ()),
                status=CacheStatus.READY,
                error=None,
                version=entry.version + 1,
            )
        else:
            # Previous value is kept but not presented as current
            new_entry = replace(
                entry,
                status=CacheStatus.ERROR,
                error=result.error,
                version=entry.version + 1,
            )

        self._set(new_entry)
        return True

    def invalidate(self, key: str) -> None:
        """Force an entry back to IDLE so the next read refetches."""
        entry = self.read(key)
        self._set(
            replace(
                entry,
                status=CacheStatus.IDLE,
                error=None,
                version=entry.version + 1,
            )
        )

    def subscribe(self, key: str, callback: Listener) -> Callable[[], None]:
        """Register a listener for transitions of one key.

        Args:
            key: Cache key.
            callback: Called with the new entry after each transition.

        Returns:
            Function that removes the listener. Safe to call more than once.
        """
        listeners = self._listeners.setdefault(key, [])
        listeners.append(callback)

        def unsubscribe() -> None:
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def clear(self) -> None:
        """Drop all entries and listeners."""
        self._entries.clear()
        self._listeners.clear()

    def _set(self, entry: CacheEntry) -> None:
        previous = self._entries.get(entry.key)
        if previous == entry:
            return

        self._entries[entry.key] = entry
        logger.debug(
            f"Cache {entry.key}: {previous.status.value if previous else '-'} -> "
            f"{entry.status.value} (v{entry.version})"
        )

        for listener in list(self._listeners.get(entry.key, ())):
            try:
                listener(entry)
            except Exception as e:
                logger.error(f"Cache listener for {entry.key} failed: {e}")
