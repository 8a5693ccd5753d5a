"""Protocol definitions for the Google sign-in flow.

This module defines structural interfaces using Protocol (PEP 544) for the
collaborators the flow consumes and the seams it exposes:
- HTTP transport
- Cache store (JWKS caching)
- Session store (CSRF token between redirect and callback)
- Key set fetching
- Identity token verification

Any class that implements the required methods satisfies the protocol, which
keeps the core independent of a specific HTTP, cache or session library.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias

if TYPE_CHECKING:
    from jwt import PyJWKSet

    from .models import HttpRequest, HttpResponse, UserIdentity

# ============================================================================
# Type Aliases
# ============================================================================

Claims: TypeAlias = Mapping[str, Any]
"""Represents a decoded JWT payload as an immutable mapping."""


# ============================================================================
# Collaborator Protocols
# ============================================================================


class Transport(Protocol):
    """Protocol for sending a single HTTP request.

    Implementations own timeouts, TLS and connection pooling. They must raise
    on connection failure and on non-2xx statuses; those errors propagate to
    the caller unchanged.
    """

    def send(self, request: HttpRequest) -> HttpResponse:
        """Send `request` and return the response snapshot."""
        ...


class CacheStore(Protocol):
    """Protocol for caching raw bytes with a TTL.

    Used to avoid fetching Google's JWKS on every login. Implementations must
    be safe for concurrent get/set; writes are last-writer-wins.
    """

    def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or None on a miss or expired entry."""
        ...

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store `value` under `key` for `ttl_seconds`."""
        ...


class SessionStore(Protocol):
    """Protocol for per-browser-session string storage.

    Holds the CSRF token between the login redirect and the callback.
    """

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store `value` under `key` for the current session."""
        ...


# ============================================================================
# Core Protocols
# ============================================================================


class KeySetFetcher(Protocol):
    """Protocol for resolving the identity provider's current key set."""

    def get_key_set(self) -> PyJWKSet:
        """Return the current JSON Web Key Set.

        Raises:
            KeySetUnavailable: The fetched or cached data is not a usable JWKS.
        """
        ...


class TokenVerifier(Protocol):
    """Protocol for identity token verification.

    This is the single trust boundary of the flow: a UserIdentity is only
    ever produced by an implementation of this protocol.
    """

    def verify(self, token: str, key_set: PyJWKSet) -> UserIdentity:
        """Verify `token` against `key_set` and return the identity.

        Raises:
            UnknownKey: The token's kid is not in `key_set`.
            SignatureInvalid: Signature mismatch or disallowed algorithm.
            TokenExpired: The exp claim is not in the future.
            MalformedToken: Unparseable token or missing required claim.
            ClaimRejected: Issuer or audience does not match.
        """
        ...
