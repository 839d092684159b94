"""Factory for building a MemoryCache from explicit settings or configuration.

Exposes create_cache which fills in any missing setting from
lazycache.config (LAZYCACHE_CAPACITY, LAZYCACHE_TTL_SECONDS).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

from lazycache import config
from lazycache.core.cache import MemoryCache
from lazycache.core.expiration import After, ExpirationPolicy, Never


def default_expiration(ttl_seconds: float) -> ExpirationPolicy:
    # Non-positive TTL means entries never expire
    if ttl_seconds <= 0:
        return Never()
    return After(float(ttl_seconds))


def create_cache(
    capacity: Optional[int] = None,
    ttl_seconds: Optional[float] = None,
    *,
    clock: Optional[Callable[[], datetime]] = None,
) -> MemoryCache[Any, Any]:
    """
    Build a cache, taking any setting not given from the environment.

    A capacity of 0 (explicit or from LAZYCACHE_CAPACITY) raises
    InvalidConfigurationError.
    """
    cap = config.CACHE_CAPACITY if capacity is None else capacity
    ttl = config.CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds

    return MemoryCache(cap, default_expiration(ttl), clock=clock)
