"""In-memory key-value cache with per-entry expiration and an optional capacity bound.

Expiration is checked lazily: an entry is only found stale (and dropped)
when a read touches it, when clean() runs, or when a save pushes the store
over capacity. On overflow, expired entries go first, then the oldest
entries by creation time until the bound holds again.

Every operation runs under one lock per cache instance. Fetch functions
given to fetch()/try_fetch() run while that lock is held, so a slow fetch
blocks the whole cache; the compute function given to save_from_compute()
runs before the lock is taken.
"""

from __future__ import annotations

import heapq
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Dict, Generic, Hashable, Iterator, List, Optional, TypeVar

from lazycache.core.errors import CacheReentryError, InvalidConfigurationError, KeyNotFoundError
from lazycache.core.expiration import ExpirationLike, ExpirationPolicy, Never
from lazycache.core.models import CacheEntry, FetchResult, Outcome

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

UNBOUNDED = -1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryCache(Generic[K, V]):
    """Thread-safe cache of values keyed by K.

    Key behavior:
      - save() never stores an entry that is already expired, and always
        trims the store when a capacity is set.
      - count / len() include expired entries that nothing has touched yet.
      - Callback errors never escape: they become a miss, a False result,
        or a KeyNotFoundError chained to the original error.
      - Callbacks must not call back into the same cache while it is locked;
        doing so raises CacheReentryError.
    """

    def __init__(
        self,
        capacity: int = UNBOUNDED,
        expiration: Optional[ExpirationPolicy] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self._store: Dict[K, CacheEntry[V]] = {}
        self._clock = clock or utcnow

        self._capacity = UNBOUNDED
        self.capacity = capacity
        self.expiration = expiration if expiration is not None else Never()

    @property
    def capacity(self) -> int:
        """Maximum number of stored entries; negative means unbounded."""
        return self._capacity

    @capacity.setter
    def capacity(self, value: int) -> None:
        value = int(value)
        if value == 0:
            raise InvalidConfigurationError("capacity cannot be 0")
        self._capacity = value

    @property
    def has_capacity(self) -> bool:
        return self._capacity > 0

    @property
    def expiration(self) -> ExpirationPolicy:
        """Default policy for saves that do not pass one."""
        return self._expiration

    @expiration.setter
    def expiration(self, value: ExpirationPolicy) -> None:
        if not isinstance(value, ExpirationPolicy):
            raise TypeError(f"expected an ExpirationPolicy, got {type(value).__name__}")
        self._expiration = value

    def save(self, key: K, value: V, expiration: ExpirationLike = None) -> None:
        """Store `value` under `key`, replacing any previous entry.

        `expiration` may be a policy, a datetime (expire at), a timedelta or
        a number of seconds (expire after); None uses the cache default.
        """
        policy = ExpirationPolicy.coerce(expiration, self._expiration)
        with self._locked():
            self._save_locked(key, value, policy, self._clock())

    def save_from_compute(self, key: K, compute: Callable[[K], V]) -> bool:
        """Store the result of `compute(key)`, or drop `key` if it raises.

        `compute` runs outside the cache lock, which suits write-through
        callers: persist the value elsewhere first and only cache it on
        success. Returns True if the value was stored.
        """
        outcome = Outcome.of(compute, key)

        with self._locked():
            if outcome.ok:
                self._save_locked(key, outcome.value, self._expiration, self._clock())
                return True
            self._store.pop(key, None)

        logger.warning("Compute for key %r failed; dropped its cache entry", key, exc_info=outcome.error)
        return False

    def remove(self, key: K) -> bool:
        with self._locked():
            return self._store.pop(key, None) is not None

    def clean(self, expired_only: bool = False) -> None:
        """Drop every entry, or only the expired ones when `expired_only` is set."""
        with self._locked():
            if expired_only:
                self._drop_expired(self._clock())
            else:
                self._store = {}

    def fetch(
        self,
        key: K,
        fetch_fn: Optional[Callable[[K], V]] = None,
        expiration: ExpirationLike = None,
    ) -> V:
        """Return the live value under `key`.

        On a miss, `fetch_fn(key)` (if given) provides the value, which is
        stored with `expiration` and returned.

        Raises:
          KeyNotFoundError if the key is absent or expired and there is no
          fetch_fn, or if fetch_fn raised (chained as __cause__).
        """
        policy = ExpirationPolicy.coerce(expiration, self._expiration)
        with self._locked():
            hit = self._lookup_locked(key, self._clock())
            if hit.found:
                return hit.value
            if fetch_fn is None:
                raise KeyNotFoundError(key)

            outcome = self._call_locked(fetch_fn, key)
            if not outcome.ok:
                raise KeyNotFoundError(key) from outcome.error

            self._save_locked(key, outcome.value, policy, self._clock())
            return outcome.value

    def try_fetch(
        self,
        key: K,
        fetch_fn: Optional[Callable[[K], V]] = None,
        expiration: ExpirationLike = None,
    ) -> FetchResult[V]:
        """Like fetch(), but report a miss as FetchResult(found=False) instead of raising.

        A failing fetch_fn is also reported as a miss, and nothing is stored.

        Raises:
          CacheReentryError if fetch_fn calls back into this cache.
        """
        policy = ExpirationPolicy.coerce(expiration, self._expiration)
        with self._locked():
            hit = self._lookup_locked(key, self._clock())
            if hit.found or fetch_fn is None:
                return hit

            outcome = self._call_locked(fetch_fn, key)
            if not outcome.ok:
                logger.debug("Fetch function for key %r failed: %r", key, outcome.error)
                return FetchResult(False)

            self._save_locked(key, outcome.value, policy, self._clock())
            return FetchResult(True, outcome.value)

    def for_each(self, visit: Callable[[K, V], None]) -> None:
        """Call `visit(key, value)` for every stored entry, expired or not.

        Runs under the cache lock; `visit` must not use this cache.
        """
        with self._locked():
            for key, entry in self._store.items():
                visit(key, entry.value)

    def keys(self) -> List[K]:
        """Snapshot of stored keys, including expired ones not yet purged."""
        with self._locked():
            return list(self._store)

    @property
    def count(self) -> int:
        """Number of stored entries. May include expired entries not yet discarded."""
        with self._locked():
            return len(self._store)

    def __len__(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(capacity={self._capacity}, "
            f"expiration={self._expiration!r}, count={len(self._store)})"
        )

    @contextmanager
    def _locked(self) -> Iterator[None]:
        me = threading.get_ident()
        if self._owner == me:
            raise CacheReentryError("cache used from a callback that runs under its own lock")

        with self._lock:
            self._owner = me
            try:
                yield
            finally:
                self._owner = None

    def _call_locked(self, fn: Callable[[K], V], key: K) -> Outcome[V]:
        outcome = Outcome.of(fn, key)
        # Re-entry is a caller bug, not a miss
        if isinstance(outcome.error, CacheReentryError):
            raise outcome.error
        return outcome

    def _lookup_locked(self, key: K, now: datetime) -> FetchResult[V]:
        entry = self._store.get(key)
        if entry is None:
            return FetchResult(False)

        if entry.is_expired(now):
            del self._store[key]
            logger.debug("Discarded expired entry for key %r", key)
            return FetchResult(False)

        return FetchResult(True, entry.value)

    def _save_locked(self, key: K, value: V, expiration: ExpirationPolicy, now: datetime) -> None:
        entry = CacheEntry(value=value, created_at=now, expiration=expiration)
        if entry.is_expired(now):
            logger.debug("Not storing already expired entry for key %r", key)
        else:
            self._store[key] = entry

        # Always runs, even when nothing was stored
        self._enforce_capacity(now)

    def _enforce_capacity(self, now: datetime) -> None:
        if not self.has_capacity or len(self._store) <= self._capacity:
            return

        before = len(self._store)
        self._drop_expired(now)

        if len(self._store) > self._capacity:
            # Keep the most recently created entries
            newest = heapq.nlargest(self._capacity, self._store.items(), key=lambda kv: kv[1].created_at)
            self._store = dict(newest)

        logger.debug("Evicted %d entries to stay within capacity %d", before - len(self._store), self._capacity)

    def _drop_expired(self, now: datetime) -> None:
        self._store = {k: e for k, e in self._store.items() if not e.is_expired(now)}
