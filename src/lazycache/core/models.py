"""Value types shared by the cache engine.

CacheEntry is the stored record, FetchResult is what the non-raising
lookups return, and Outcome captures the result of a caller-supplied
callback so the cache can translate failures instead of propagating them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Generic, NamedTuple, Optional, TypeVar

from lazycache.core.expiration import ExpirationPolicy

K = TypeVar("K")
V = TypeVar("V")


@dataclass(slots=True)
class CacheEntry(Generic[V]):
    # Stores value + wall-clock creation time + its expiration policy
    value: V
    created_at: datetime
    expiration: ExpirationPolicy

    def age(self, now: datetime) -> timedelta:
        return now - self.created_at

    def is_expired(self, now: datetime) -> bool:
        return self.expiration.is_expired(self.created_at, now)


class FetchResult(NamedTuple, Generic[V]):
    found: bool
    value: Optional[V] = None


@dataclass(frozen=True, slots=True)
class Outcome(Generic[V]):
    """Tagged result of a callback: either a value or the error it raised."""

    value: Optional[V] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def of(cls, fn: Callable[[K], V], key: K) -> "Outcome[V]":
        try:
            return cls(value=fn(key))
        except Exception as e:
            return cls(error=e)
