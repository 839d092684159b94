"""Configuration and environment helpers for the cache library.

Provides small helpers to read typed environment variables and exposes
library-level defaults used when building caches and loaders (capacity,
default TTL, log level, HTTP timeouts).
"""

from __future__ import annotations

import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# Cache defaults (-1 = unbounded, 0 TTL = never expire)
CACHE_CAPACITY = _env_int("LAZYCACHE_CAPACITY", -1)
CACHE_TTL_SECONDS = _env_float("LAZYCACHE_TTL_SECONDS", 0.0)

# Logging
LOG_LEVEL = os.environ.get("LAZYCACHE_LOG_LEVEL", "WARNING").strip().upper()

# Network / HTTP
HTTP_VERIFY = _env_bool("HTTP_VERIFY", True)
HTTP_TIMEOUT = _env_float("HTTP_TIMEOUT", 20.0)
