"""Value objects passed between the sign-in components.

All of these are frozen: once built they are never mutated. HttpRequest and
HttpResponse are plain snapshots so that errors can carry diagnostic data
without holding on to a live transport object.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class HttpRequest:
    """Outbound request handed to a Transport."""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | None = None


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """Response snapshot returned by a Transport."""

    status_code: int
    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class LoginRedirect:
    """Where to send the browser, and the CSRF token bound to that URL."""

    url: str
    csrf_token: str


@dataclass(frozen=True, slots=True)
class CallbackParams:
    """The `code` and `state` Google appended to the callback URL."""

    code: str
    state: str


@dataclass(frozen=True, slots=True)
class TokenExchangeResult:
    """Token endpoint output.

    Transient: only `id_token` is used by the flow, the rest is kept for
    callers that inspect the exchange directly.

    Attributes:
        access_token: Opaque OAuth access token.
        id_token: Signed JWT asserting the user's identity.
        expires_at: Absolute expiry (epoch seconds) computed at receipt time.
        scope: Space-delimited granted scopes.
        token_type: Usually "Bearer".
    """

    access_token: str | None
    id_token: str
    expires_at: float | None
    scope: str | None
    token_type: str | None


@dataclass(frozen=True, slots=True)
class UserIdentity:
    """Verified claims of a Google identity token.

    Only JwtVerifier builds these, after the signature and expiry checks
    have passed. Never construct one from unverified input.
    """

    iss: str
    aud: str
    sub: str
    email: str
    email_verified: bool
    iat: int
    exp: int
    azp: str | None = None
    at_hash: str | None = None
    name: str | None = None
    picture: str | None = None
    given_name: str | None = None
    family_name: str | None = None

    @property
    def full_name(self) -> str | None:
        return self.name

    @property
    def first_name(self) -> str | None:
        return self.given_name

    @property
    def last_name(self) -> str | None:
        return self.family_name
