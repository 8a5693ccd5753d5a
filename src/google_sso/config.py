"""Configuration for the Google sign-in flow.

Configuration is passed explicitly at construction; nothing is read from the
environment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .protocols import CacheStore

DEFAULT_AUTHORIZATION_URL: Final[str] = "https://accounts.google.com/o/oauth2/auth"
DEFAULT_OAUTH_BASE_URL: Final[str] = "https://oauth2.googleapis.com"
DEFAULT_JWKS_URL: Final[str] = "https://www.googleapis.com/oauth2/v3/certs"
DEFAULT_SESSION_CSRF_KEY: Final[str] = "googleSsoCsrfToken"

DEFAULT_JWKS_TTL: Final[int] = 86400
"""Default lifetime of a cached key set in seconds (one day)."""

DEFAULT_CACHE_KEY: Final[str] = "jwtCerts"


@dataclass(frozen=True, slots=True)
class GoogleSsoConfig:
    """Client registration and endpoint settings.

    Attributes:
        client_id: OAuth client ID issued by Google.
        client_secret: Secret belonging to `client_id`.
        callback_url: Absolute URL Google redirects to after login. Must be
            registered with the Google client, e.g.
            "https://example.com/sso/login-handler".
        session_csrf_key: Session key holding the CSRF token.
        authorization_url: Browser-facing authorization endpoint.
        oauth_base_url: Base of the token endpoint. A trailing slash is
            stripped.
        jwks_url: Where Google publishes its signing keys.
    """

    client_id: str
    client_secret: str
    callback_url: str
    session_csrf_key: str = DEFAULT_SESSION_CSRF_KEY
    authorization_url: str = DEFAULT_AUTHORIZATION_URL
    oauth_base_url: str = DEFAULT_OAUTH_BASE_URL
    jwks_url: str = DEFAULT_JWKS_URL

    def __post_init__(self) -> None:
        for name in ("client_id", "client_secret", "callback_url", "session_csrf_key"):
            if not getattr(self, name):
                raise ValueError(f"{name} cannot be empty")
        # frozen dataclass: bypass __setattr__ to normalise the base URL
        object.__setattr__(self, "oauth_base_url", self.oauth_base_url.rstrip("/"))

    @property
    def token_url(self) -> str:
        return f"{self.oauth_base_url}/token"


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Where and for how long to cache Google's JWKS.

    Attributes:
        cache: Backend implementing CacheStore.
        ttl_seconds: Lifetime of a cached key set. Google rotates keys
            roughly weekly and publishes new ones well ahead of use.
        cache_key: Key the raw JWKS is stored under.
    """

    cache: CacheStore
    ttl_seconds: int = DEFAULT_JWKS_TTL
    cache_key: str = DEFAULT_CACHE_KEY

    def __post_init__(self) -> None:
        if self.ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {self.ttl_seconds}")
        if not self.cache_key:
            raise ValueError("cache_key cannot be empty")
