"""Memoized JSON reads over HTTP.

CachedJsonLoader fronts a JSON API with a MemoryCache: reads go through
MemoryCache.fetch (the request runs on a miss, under the cache lock), and
refresh() re-reads upstream through save_from_compute (the request runs
outside the lock; a failed refresh drops the stale entry).
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from lazycache.config import HTTP_TIMEOUT, HTTP_VERIFY
from lazycache.core.cache import MemoryCache
from lazycache.core.errors import ExternalServiceError, KeyNotFoundError
from lazycache.core.expiration import ExpirationLike
from lazycache.core.factory import create_cache


class CachedJsonLoader:
    def __init__(
        self,
        *,
        base_url: str,
        cache: Optional[MemoryCache[str, Any]] = None,
        expiration: ExpirationLike = None,
        timeout: float = HTTP_TIMEOUT,
        verify: bool = HTTP_VERIFY,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or "").rstrip("/")
        self._cache = cache if cache is not None else create_cache()
        self._expiration = expiration
        self._http = httpx.Client(
            base_url=self._base_url,
            timeout=timeout,
            verify=verify,
            transport=transport,
        )

    @property
    def cache(self) -> MemoryCache[str, Any]:
        return self._cache

    def get(self, path: str) -> Any:
        """Return the decoded JSON at `path`, from the cache when it is still live."""
        key = self._key(path)
        try:
            return self._cache.fetch(key, self._load, self._expiration)
        except KeyNotFoundError as e:
            failure = e

        # Raised outside the except block so the upstream error keeps its own chain
        cause = failure.__cause__
        if isinstance(cause, ExternalServiceError):
            raise cause
        raise ExternalServiceError(f"Failed to load {key}: {cause!r}") from failure

    def refresh(self, path: str) -> bool:
        # Uses the cache's default expiration, not the loader's
        return self._cache.save_from_compute(self._key(path), self._load)

    def invalidate(self, path: str) -> bool:
        return self._cache.remove(self._key(path))

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "CachedJsonLoader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _key(self, path: str) -> str:
        clean = (path or "").strip().lstrip("/")
        if not clean:
            raise ValueError("path is empty")
        return f"/{clean}"

    def _load(self, key: str) -> Any:
        url = f"{self._base_url}{key}"
        try:
            r = self._http.get(key)
            r.raise_for_status()
            return r.json()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(f"{url} returned an error: {e}") from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Failed to call {url}: {e}") from e
        except ValueError as e:
            raise ExternalServiceError(f"{url} did not return valid JSON") from e
