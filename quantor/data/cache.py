"""
Resource Cache

An explicit cache object keyed by resource path. One instance is created
at startup and cleared on logout; tests build isolated instances.

State machine for one key:

    EMPTY -> LOADING -> FRESH
                     -> ERRORED
    FRESH   -> LOADING   (freshness window elapsed, or invalidated)
    ERRORED -> LOADING   (next read)

The cache only records state. Deciding when to go to the network is the
Data-Access Layer's job; the cache answers "is this fresh?" and holds the
single in-flight read for each key.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, Optional


class EntryState(str, Enum):
    """Lifecycle state of one cached resource."""
    EMPTY = "empty"
    LOADING = "loading"
    FRESH = "fresh"
    ERRORED = "errored"


@dataclass
class CacheEntry:
    """Cached value and bookkeeping for one resource key."""

    key: str
    state: EntryState = EntryState.EMPTY
    value: Any = None
    fetched_at: Optional[float] = None
    error: Optional[BaseException] = None
    pending: Optional["asyncio.Future[Any]"] = None
    superseded: bool = False


class ResourceCache:
    """
    Cache of server resources with a fixed freshness window.

    Args:
        freshness_seconds: How long a stored value is served without
            going back to the network
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(
        self,
        freshness_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._freshness = freshness_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    @property
    def freshness_seconds(self) -> float:
        return self._freshness

    def entry(self, key: str) -> CacheEntry:
        """Get the entry for a key, creating an EMPTY one if needed."""
        if key not in self._entries:
            self._entries[key] = CacheEntry(key=key)
        return self._entries[key]

    def peek(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def state(self, key: str) -> EntryState:
        entry = self._entries.get(key)
        return entry.state if entry else EntryState.EMPTY

    def is_fresh(self, entry: CacheEntry) -> bool:
        if entry.state != EntryState.FRESH or entry.fetched_at is None:
            return False
        return (self._clock() - entry.fetched_at) < self._freshness

    def get_fresh(self, key: str) -> tuple[bool, Any]:
        """(hit, value) without touching the network."""
        entry = self._entries.get(key)
        if entry is not None and self.is_fresh(entry):
            return True, entry.value
        return False, None

    # -------------------------------------------------------------------------
    # Transitions driven by the Data-Access Layer
    # -------------------------------------------------------------------------

    def begin(self, key: str, pending: "asyncio.Future[Any]") -> CacheEntry:
        """Move a key to LOADING with its single in-flight read."""
        entry = self.entry(key)
        entry.state = EntryState.LOADING
        entry.pending = pending
        entry.superseded = False
        entry.error = None
        return entry

    def resolve(self, key: str, pending: "asyncio.Future[Any]", value: Any) -> bool:
        """
        Store the outcome of a read.

        Returns False when the read was superseded (invalidated or cleared
        while in flight) and was therefore not cached.
        """
        entry = self._entries.get(key)
        if entry is None or entry.pending is not pending:
            return False
        entry.pending = None
        if entry.superseded:
            self._entries.pop(key, None)
            return False
        entry.state = EntryState.FRESH
        entry.value = value
        entry.fetched_at = self._clock()
        entry.error = None
        return True

    def reject(self, key: str, pending: "asyncio.Future[Any]", error: BaseException) -> None:
        """Record a failed read."""
        entry = self._entries.get(key)
        if entry is None or entry.pending is not pending:
            return
        entry.pending = None
        if entry.superseded:
            self._entries.pop(key, None)
            return
        entry.state = EntryState.ERRORED
        entry.error = error
        entry.fetched_at = None

    def invalidate(self, *keys: str) -> list[str]:
        """
        Drop the given keys so the next read goes to the network.

        A key with a read in flight is marked superseded instead: the read
        still completes for whoever awaits it, but its result is not kept.

        Returns the keys that were present.
        """
        touched = []
        for key in keys:
            entry = self._entries.get(key)
            if entry is None:
                continue
            touched.append(key)
            if entry.pending is not None and not entry.pending.done():
                entry.superseded = True
            else:
                del self._entries[key]
        return touched

    def clear(self) -> None:
        """Forget everything (logout)."""
        self.invalidate(*list(self._entries))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
