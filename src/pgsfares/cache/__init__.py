"""In-memory response caching for pgsfares.

This package provides :class:`CacheStore`, the read-through cache that
:class:`~pgsfares.client.PegasusClient` consults before fetching
languages, currencies, the port matrix, departure countries and best-deals
cities. Its behaviour is selected by :class:`~pgsfares.models.CachingMode`
and the lifetimes in :class:`~pgsfares.models.CacheTTLConfig`.
"""

from pgsfares.cache.cache import CacheEntry, CacheStore, ResourceKind
from pgsfares.models import CachingMode

__all__ = ["CacheEntry", "CacheStore", "CachingMode", "ResourceKind"]
