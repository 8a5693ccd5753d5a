"""
Google JWKS key provider.

Fetches Google's JSON Web Key Set, optionally through a time-bounded cache.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import jwt
from jwt import PyJWKSet

from ..errors import KeySetUnavailable
from ..models import HttpRequest

if TYPE_CHECKING:
    from ..config import CacheConfig, GoogleSsoConfig
    from ..protocols import Transport

logger = logging.getLogger(__name__)


class KeyCache:
    """
    Resolves Google's signing keys with optional caching.

    Responsibilities
    ----------------
    1. Fetch the JWKS document from ``config.jwks_url``.
    2. Serve it from a CacheStore while the cached copy is younger than the TTL.
    3. Refuse to cache anything that does not parse into a usable key set.

    Resolution Strategy
    -------------------
    1) No cache configured
        - GET the JWKS on every call.

    2) Cache hit
        - Parse the stored bytes and return them.

    3) Cache miss
        - GET the JWKS, parse it, then store the raw bytes with the TTL.
        - Parsing first means a failed fetch never writes the cache.

    The key set is always replaced wholesale, never merged. Concurrent misses
    may each fetch and write; the last writer wins, and all of them store the
    same upstream document.

    Parameters
    ----------
    config : GoogleSsoConfig
        Supplies ``jwks_url``.

    transport : Transport
        Sends the GET request. Its errors propagate unchanged.

    cache_config : CacheConfig | None
        Cache backend, TTL and key. ``None`` disables caching.

    Example
    -------
    key_cache = KeyCache(
        config,
        HttpxTransport(),
        CacheConfig(cache=InMemoryCache()),
    )

    key_set = key_cache.get_key_set()
    """

    def __init__(
        self,
        config: GoogleSsoConfig,
        transport: Transport,
        cache_config: CacheConfig | None = None,
    ) -> None:
        self._url = config.jwks_url
        self._transport = transport
        self._cache_config = cache_config

    def get_key_set(self) -> PyJWKSet:
        if self._cache_config is None:
            return _parse_key_set(self._fetch())

        cache = self._cache_config.cache
        cache_key = self._cache_config.cache_key

        cached = cache.get(cache_key)
        if cached is not None:
            logger.debug("JWKS cache hit for %r", cache_key)
            return _parse_key_set(cached)

        logger.debug("JWKS cache miss for %r, fetching %s", cache_key, self._url)
        raw = self._fetch()
        key_set = _parse_key_set(raw)
        cache.set(cache_key, raw, self._cache_config.ttl_seconds)
        return key_set

    def _fetch(self) -> bytes:
        response = self._transport.send(
            HttpRequest(method="GET", url=self._url, headers={"Accept": "application/json"})
        )
        return response.body


def _parse_key_set(raw: bytes) -> PyJWKSet:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise KeySetUnavailable("JWKS document is not valid JSON") from e

    if not isinstance(data, dict):
        raise KeySetUnavailable("JWKS document is not a JSON object")
    keys = data.get("keys")
    if not isinstance(keys, list) or not all(isinstance(k, dict) for k in keys):
        raise KeySetUnavailable("JWKS document 'keys' must be a list of JSON objects")

    try:
        return PyJWKSet.from_dict(data)
    except (jwt.PyJWKSetError, jwt.PyJWKError, KeyError, TypeError, AttributeError) as e:
        raise KeySetUnavailable(f"JWKS document has no usable keys: {e}") from e
