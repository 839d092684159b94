import httpx
import pytest

from lazycache.clients.http_loader import CachedJsonLoader
from lazycache.core.cache import MemoryCache
from lazycache.core.errors import ExternalServiceError, KeyNotFoundError
from lazycache.core.expiration import After


def _transport(handler):
    return httpx.MockTransport(handler)


class Upstream:
    """Counts requests and serves a configurable response per path."""

    def __init__(self):
        self.calls = []
        self.status = 200
        self.payload = {"n": 0}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        if self.status != 200:
            return httpx.Response(self.status, text="boom")
        return httpx.Response(200, json=self.payload)


def _loader(upstream, cache=None, **kwargs):
    return CachedJsonLoader(
        base_url="https://api.example/",
        cache=cache if cache is not None else MemoryCache(),
        transport=_transport(upstream),
        **kwargs,
    )


def test_get_caches_json():
    up = Upstream()
    with _loader(up) as loader:
        assert loader.get("items/1") == {"n": 0}

        up.payload = {"n": 1}
        assert loader.get("/items/1") == {"n": 0}

    assert up.calls == ["/items/1"]


def test_get_reloads_after_expiration(clock):
    up = Upstream()
    loader = _loader(up, cache=MemoryCache(clock=clock), expiration=After(30))

    loader.get("items/1")
    clock.advance(31)
    up.payload = {"n": 1}

    assert loader.get("items/1") == {"n": 1}
    assert len(up.calls) == 2
    loader.close()


def test_get_http_error_raises_external_service_error():
    up = Upstream()
    up.status = 500
    loader = _loader(up)

    with pytest.raises(ExternalServiceError) as exc:
        loader.get("items/1")

    assert isinstance(exc.value.__cause__, httpx.HTTPStatusError)
    assert not isinstance(exc.value.__context__, KeyNotFoundError)
    assert loader.cache.count == 0
    loader.close()


def test_get_invalid_json_raises_external_service_error():
    def handler(request):
        return httpx.Response(200, content=b"not json")

    loader = CachedJsonLoader(base_url="https://api.example", cache=MemoryCache(), transport=_transport(handler))

    with pytest.raises(ExternalServiceError):
        loader.get("x")
    loader.close()


def test_refresh_replaces_value_and_drops_it_on_failure():
    up = Upstream()
    loader = _loader(up)

    loader.get("items/1")
    up.payload = {"n": 2}
    assert loader.refresh("items/1") is True
    assert loader.get("items/1") == {"n": 2}

    up.status = 503
    assert loader.refresh("items/1") is False
    assert loader.cache.try_fetch("/items/1").found is False
    loader.close()


def test_invalidate():
    up = Upstream()
    loader = _loader(up)

    loader.get("items/1")
    assert loader.invalidate("items/1") is True
    assert loader.invalidate("items/1") is False

    loader.get("items/1")
    assert len(up.calls) == 2
    loader.close()


def test_empty_path_raises():
    loader = _loader(Upstream())
    with pytest.raises(ValueError):
        loader.get("  / ")
    loader.close()
