from __future__ import annotations

from typing import Hashable


class CacheError(Exception):
    """Base error for the cache library."""


class InvalidConfigurationError(CacheError, ValueError):
    """Raised when a cache is configured with an unusable setting (capacity of 0)."""


class KeyNotFoundError(CacheError, KeyError):
    """Raised when a key is absent, expired, or its fetch function failed."""

    def __init__(self, key: Hashable) -> None:
        super().__init__(f"no cache item under key {key!r}")
        self.key = key

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0])


class InvalidPolicyStateError(CacheError, RuntimeError):
    """Raised when reading an expiration payload that its mode does not carry."""


class CacheReentryError(CacheError, RuntimeError):
    """Raised when a callback running under the cache lock calls back into the same cache."""


class ExternalServiceError(CacheError):
    """Raised when an upstream service behind a loader fails."""
