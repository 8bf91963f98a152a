"""In-memory read-through caching for the client's list endpoints.

Five resources are cached independently (see :class:`ResourceKind`). Each
has one :class:`CacheEntry` holding the last decoded list and the moment it
was fetched. Whether a request may be answered from the entry is decided by
the store-wide :class:`~pgsfares.models.CachingMode` and the resource's TTL
from :class:`~pgsfares.models.CacheTTLConfig`:

* ``NONE`` -- always fetch; nothing is stored.
* ``SMART`` -- serve a non-empty value younger than the TTL, else fetch and
  overwrite.
* ``FORCED`` -- serve any non-empty value; fetch only when empty.

The check and the refresh run under a per-entry :class:`asyncio.Lock`, so
concurrent callers of the same resource trigger at most one request.
Nothing is persisted beyond the process.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from pgsfares.models import CacheTTLConfig, CachingMode

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


class ResourceKind(str, enum.Enum):
    """Cached resources. Values match the field names of :class:`CacheTTLConfig`."""

    LANGUAGES = "languages"
    CURRENCIES = "currencies"
    PORT_MATRIX = "port_matrix"
    DEPARTURE_COUNTRIES = "departure_countries"
    BEST_DEALS_CITIES = "best_deals_cities"


class CacheEntry(Generic[T]):
    """Cached list for one resource plus the time it was last refreshed.

    Args:
        kind: The resource this entry holds.
        clock: Monotonic time source in seconds.
    """

    def __init__(self, kind: ResourceKind, clock: Clock = time.monotonic) -> None:
        self.kind = kind
        self.value: list[T] = []
        self.last_refresh: Optional[float] = None
        self._clock = clock
        self._lock = asyncio.Lock()

    def is_servable(self, mode: CachingMode, ttl: float) -> bool:
        """Whether the cached value may answer a request under *mode*."""
        if not self.value:
            return False
        if mode is CachingMode.FORCED:
            return True
        if mode is CachingMode.SMART and self.last_refresh is not None:
            return self._clock() - self.last_refresh < ttl
        return False

    async def get_or_refresh(
        self,
        mode: CachingMode,
        ttl: float,
        fetch: Callable[[], Awaitable[list[T]]],
    ) -> list[T]:
        """Return the cached list when servable, otherwise the result of *fetch*.

        A fetched list replaces the cached one unless *mode* is ``NONE``.
        Callers always get a list of their own; mutating it never changes
        the stored snapshot.
        """
        async with self._lock:
            if self.is_servable(mode, ttl):
                logger.debug("Cache hit for %s (%d items)", self.kind.value, len(self.value))
                return list(self.value)

            logger.debug("Cache miss for %s (mode=%s)", self.kind.value, mode.value)
            fresh = await fetch()
            if mode is not CachingMode.NONE:
                self.value = list(fresh)
                self.last_refresh = self._clock()
            return fresh


class CacheStore:
    """The five cache entries of a client and the mode they share.

    Args:
        mode: Initial caching mode. It can be changed at any time through
            :attr:`caching_mode` and applies from the next fetch on.
        ttl: Per-resource lifetimes used in ``SMART`` mode.
        clock: Monotonic time source in seconds; tests pass a fake one.

    Example::

        store = CacheStore(CachingMode.SMART)
        languages = await store.get_or_refresh(ResourceKind.LANGUAGES, fetch_languages)
    """

    def __init__(
        self,
        mode: CachingMode = CachingMode.SMART,
        ttl: Optional[CacheTTLConfig] = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._mode = mode
        self._ttl = ttl or CacheTTLConfig()
        self._clock = clock
        self._entries: dict[ResourceKind, CacheEntry[Any]] = {
            kind: CacheEntry(kind, clock) for kind in ResourceKind
        }

    @property
    def caching_mode(self) -> CachingMode:
        return self._mode

    @caching_mode.setter
    def caching_mode(self, mode: CachingMode) -> None:
        self._mode = CachingMode(mode)

    def ttl_for(self, kind: ResourceKind) -> float:
        return getattr(self._ttl, kind.value)

    def entry(self, kind: ResourceKind) -> CacheEntry[Any]:
        return self._entries[kind]

    async def get_or_refresh(
        self,
        kind: ResourceKind,
        fetch: Callable[[], Awaitable[list[T]]],
    ) -> list[T]:
        """Serve *kind* from the cache or refresh it with *fetch*."""
        return await self._entries[kind].get_or_refresh(self._mode, self.ttl_for(kind), fetch)

    def stats(self) -> dict[str, Any]:
        """Return the mode and, per resource, the cached size and age in seconds."""
        now = self._clock()
        return {
            "mode": self._mode.value,
            "entries": {
                kind.value: {
                    "size": len(entry.value),
                    "age_seconds": None if entry.last_refresh is None else now - entry.last_refresh,
                    "ttl_seconds": self.ttl_for(kind),
                }
                for kind, entry in self._entries.items()
            },
        }
