"""Cache store implementations for Google's JSON Web Key Set.

This module provides implementations of the CacheStore protocol so the JWKS
does not have to be fetched on every login.

Implementations:
- InMemoryCache: Simple in-process caching (good for dev/single-instance)
- RedisCache: Distributed caching via Redis (good for multi-instance production)

Both store opaque bytes with TTL-based expiration. Concurrent writers under
the same key simply overwrite each other; every writer stores the same
upstream document, so no coordination is needed.

Security Note:
    Caching keys introduces a TTL window where rotated keys may not be
    immediately recognized. Google publishes new keys well before signing
    with them, so the default one-day TTL is safe.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class _CacheItem:
    """Internal cache entry with TTL tracking.

    Attributes:
        value: Cached bytes.
        expires_at: Unix timestamp when this entry should be considered expired.
    """

    value: bytes
    expires_at: float


class InMemoryCache:
    """In-process memory cache.

    Entries live in a Python dict with TTL-based expiration. Expired entries
    are lazily removed on access. A lock makes get/set safe across threads.

    Example:
        ```python
        cache = InMemoryCache()
        cache.set("jwtCerts", b'{"keys": []}', ttl_seconds=300)
        cache.get("jwtCerts")  # b'{"keys": []}' until the TTL passes
        ```

    Attributes:
        _store: Internal dict mapping key -> _CacheItem.
        _clock: Source of the current Unix time.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """Initialize an empty in-memory cache.

        Args:
            clock: Returns the current Unix time. Override in tests.
        """
        self._store: dict[str, _CacheItem] = {}
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        """Return the cached bytes, or None if absent or expired."""
        with self._lock:
            item = self._store.get(key)
            if not item:
                return None

            if self._clock() >= item.expires_at:
                # Lazy removal of expired entry
                self._store.pop(key, None)
                return None

            return item.value

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Cache `value` under `key`.

        Raises:
            ValueError: If ttl_seconds is not positive.
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        with self._lock:
            self._store[key] = _CacheItem(value=value, expires_at=self._clock() + ttl_seconds)


class RedisCache:
    """Redis-backed distributed cache.

    Values are stored as-is with Redis's native TTL (`SETEX`), so expiry is
    handled by the server.

    Dependencies:
        Requires a redis client: pip install redis

    Example:
        ```python
        import redis

        client = redis.Redis(host="localhost", port=6379)
        cache = RedisCache(redis_client=client, prefix="myapp:")
        ```

    Attributes:
        _client: Redis client instance (from redis package).
        _prefix: Prepended to every key.
    """

    def __init__(self, redis_client: Any, prefix: str = "") -> None:
        """Initialize Redis cache.

        Args:
            redis_client: Redis client instance. Must support get() and
                setex(). Typed as Any so any compatible client (redis-py,
                fakeredis, ...) can be passed.
            prefix: Namespace prepended to keys.
        """
        self._client = redis_client
        self._prefix = prefix

    def get(self, key: str) -> bytes | None:
        """Return the cached bytes, or None on a miss.

        Clients created with ``decode_responses=True`` return str; it is
        encoded back to bytes.
        """
        data = self._client.get(self._prefix + key)
        if data is None:
            return None
        if isinstance(data, str):
            return data.encode("utf-8")
        return data

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Cache `value` under `key` with a server-side TTL.

        Raises:
            ValueError: If ttl_seconds is not positive.
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._client.setex(self._prefix + key, ttl_seconds, value)
