"""Expiration policies for cache entries.

A policy is one of three immutable variants:
- Never: the entry never goes stale.
- At: the entry goes stale once the clock passes a fixed instant.
- After: the entry goes stale once a duration has elapsed since it was created.

Each variant carries only its own payload. The shared accessors `lifespan`
and `expires_at` raise InvalidPolicyStateError when asked for a payload the
variant does not have; Never answers both with "maximum" sentinels.
"""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import ClassVar, Union

from lazycache.core.errors import InvalidPolicyStateError

# Sentinels reported by Never; for display/comparison only
MAX_INSTANT = datetime.max.replace(tzinfo=timezone.utc)
MAX_LIFESPAN = timedelta.max


class ExpirationMode(enum.Enum):
    NEVER = "never"
    AT = "at"
    AFTER = "after"


def to_utc(instant: datetime) -> datetime:
    # Naive datetimes are read as local time
    try:
        return instant.astimezone(timezone.utc)
    except OverflowError:
        # datetime.min / datetime.max cannot be shifted
        return instant.replace(tzinfo=timezone.utc)


class ExpirationPolicy(abc.ABC):
    """Describes when a cache entry becomes stale."""

    mode: ClassVar[ExpirationMode]

    @property
    def expires(self) -> bool:
        return self.mode is not ExpirationMode.NEVER

    @property
    def lifespan(self) -> timedelta:
        raise InvalidPolicyStateError(
            f"{type(self).__name__} policy has no lifespan (mode is {self.mode.value!r})"
        )

    @property
    def expires_at(self) -> datetime:
        raise InvalidPolicyStateError(
            f"{type(self).__name__} policy has no expiration instant (mode is {self.mode.value!r})"
        )

    @abc.abstractmethod
    def is_expired(self, created_at: datetime, now: datetime) -> bool:
        """Return True if an entry created at `created_at` is stale at `now`."""

    @staticmethod
    def never() -> "Never":
        return Never()

    @staticmethod
    def at(instant: datetime) -> "At":
        return At(instant)

    @staticmethod
    def after(duration: Union[timedelta, int, float]) -> "After":
        return After(duration)

    @staticmethod
    def coerce(value: "ExpirationLike", default: "ExpirationPolicy") -> "ExpirationPolicy":
        """Turn a policy, instant, duration or None into a policy.

        None maps to `default`, a datetime to At, a timedelta or a number of
        seconds to After.
        """
        if value is None:
            return default
        if isinstance(value, ExpirationPolicy):
            return value
        if isinstance(value, datetime):
            return At(value)
        if isinstance(value, (timedelta, int, float)) and not isinstance(value, bool):
            return After(value)
        raise TypeError(f"cannot build an expiration policy from {type(value).__name__}")


@dataclass(frozen=True)
class Never(ExpirationPolicy):
    mode: ClassVar[ExpirationMode] = ExpirationMode.NEVER

    @property
    def lifespan(self) -> timedelta:
        return MAX_LIFESPAN

    @property
    def expires_at(self) -> datetime:
        return MAX_INSTANT

    def is_expired(self, created_at: datetime, now: datetime) -> bool:
        return False


@dataclass(frozen=True)
class At(ExpirationPolicy):
    instant: datetime

    mode: ClassVar[ExpirationMode] = ExpirationMode.AT

    def __post_init__(self) -> None:
        if not isinstance(self.instant, datetime):
            raise TypeError(f"At() expects a datetime, got {type(self.instant).__name__}")
        object.__setattr__(self, "instant", to_utc(self.instant))

    @property
    def expires_at(self) -> datetime:
        return self.instant

    def is_expired(self, created_at: datetime, now: datetime) -> bool:
        return now > self.instant


@dataclass(frozen=True)
class After(ExpirationPolicy):
    duration: timedelta

    mode: ClassVar[ExpirationMode] = ExpirationMode.AFTER

    def __post_init__(self) -> None:
        duration = self.duration
        if isinstance(duration, bool) or not isinstance(duration, (timedelta, int, float)):
            raise TypeError(f"After() expects a timedelta or seconds, got {type(duration).__name__}")
        if not isinstance(duration, timedelta):
            object.__setattr__(self, "duration", timedelta(seconds=duration))

    @property
    def lifespan(self) -> timedelta:
        return self.duration

    def is_expired(self, created_at: datetime, now: datetime) -> bool:
        # Compare elapsed time; created_at + duration can overflow
        return now - created_at > self.duration


ExpirationLike = Union[ExpirationPolicy, datetime, timedelta, int, float, None]
