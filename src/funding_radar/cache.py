"""Single-slot in-memory TTL cache.

Holds at most one payload. Staleness is checked lazily on read; an expired
entry is ignored until the next set() overwrites it. Each cache is an
explicit object so the funding rate and event catalog caches never share
state and tests can build isolated instances.
"""

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from funding_radar.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    payload: T
    created_at: float  # clock seconds


class ResultCache(Generic[T]):
    """Single-slot cache whose entry is valid while ``now - created_at <= ttl``.

    get()/set() are guarded by a threading lock so they are safe from any
    thread. get_or_load() additionally serializes the whole
    check-load-store sequence on an asyncio lock, so concurrent misses on one
    event loop trigger a single upstream load.

    Args:
        name: Label used in log events.
        ttl_seconds: Maximum entry age.
        clock: Returns the current time in seconds.
    """

    def __init__(
        self,
        name: str,
        ttl_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._name = name
        self._ttl = ttl_seconds
        self._clock = clock
        self._entry: CacheEntry[T] | None = None
        self._lock = threading.Lock()
        self._load_lock = asyncio.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self) -> T | None:
        """Return the cached payload, or None if never set or expired."""
        with self._lock:
            entry = self._entry
        if entry is None:
            return None
        if self._clock() - entry.created_at > self._ttl:
            return None
        return entry.payload

    def set(self, payload: T) -> None:
        with self._lock:
            self._entry = CacheEntry(payload=payload, created_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entry = None

    async def get_or_load(
        self,
        loader: Callable[[], Awaitable[T]],
        force: bool = False,
    ) -> T:
        """Return the cached payload, loading and storing it on a miss.

        Args:
            loader: Produces a fresh payload. Exceptions propagate and leave
                the slot untouched.
            force: Skip the cache read and always load.
        """
        async with self._load_lock:
            if not force:
                cached = self.get()
                if cached is not None:
                    logger.debug("cache_hit", cache=self._name)
                    return cached

            logger.debug("cache_miss", cache=self._name, forced=force)
            payload = await loader()
            self.set(payload)
            return payload
