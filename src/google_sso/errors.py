"""Google sign-in errors.

This module defines the exception hierarchy for the sign-in flow.
All errors inherit from SsoError to allow catch-all error handling.

Every error carries an ``error_code`` (suggested HTTP status) and a generic
``description`` that is safe to show to the browser. Diagnostic data stays on
the exception attributes and should only be logged server-side.

Transport, cache and session collaborator errors (httpx, redis, ...) are not
wrapped and propagate unchanged.
"""

from __future__ import annotations


class SsoError(Exception):
    """Base exception for all sign-in failures.

    Attributes:
        error_code: Suggested HTTP status for the caller's response.
        description: Generic, client-safe message.
    """

    error_code: int = 400
    description: str = "Sign-in failed"


class CsrfTokenMismatch(SsoError):  # noqa: N818
    """Raised when the callback `state` does not equal the stored CSRF token.

    No request is sent to the token endpoint once this is raised.

    Attributes:
        received: The `state` value that came back on the callback.
        expected: The token stored in the session, or None if there was none.
    """

    description = "Sign-in request could not be verified"

    def __init__(self, received: str, expected: str | None) -> None:
        super().__init__(
            "The CSRF token in the callback did not match the one issued for the login request"
        )
        self.received = received
        self.expected = expected


class MissingCallbackParameter(SsoError):  # noqa: N818
    """Raised when the callback request lacks `code` or `state`."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Callback is missing the '{name}' parameter")
        self.name = name


class AuthorizationDenied(SsoError):  # noqa: N818
    """Raised when Google redirects back with an `error` instead of a code.

    Typically ``access_denied`` after the user declined consent.
    """

    description = "Sign-in was cancelled"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Authorization was denied: {reason}")
        self.reason = reason


class UnexpectedResponse(SsoError):  # noqa: N818
    """Raised when the token endpoint answers with an unusable body.

    Only a snapshot of the response is kept, never the response object.

    Attributes:
        status_code: HTTP status of the response.
        body: Response body decoded as UTF-8 (undecodable bytes replaced).
    """

    error_code = 502
    description = "Unexpected response from the identity provider"

    def __init__(self, status_code: int, body: bytes | str, reason: str = "") -> None:
        message = "Unexpected response from the token endpoint"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body if isinstance(body, str) else body.decode("utf-8", "replace")


class KeySetUnavailable(SsoError):  # noqa: N818
    """Raised when Google's JWKS cannot be parsed into a usable key set.

    This covers non-JSON upstream bodies, key sets without usable keys and
    corrupted cache entries. The cache is never written with such data.
    """

    error_code = 502
    description = "Unexpected response from the identity provider"


class VerificationError(SsoError):  # noqa: N818
    """Base class for identity token verification failures.

    Subclasses distinguish "stale" from "forged" for observability, but all
    of them mean the same to the browser: no identity is trusted.
    """

    error_code = 401
    description = "Identity token could not be verified"


class UnknownKey(VerificationError):
    """Raised when the token's `kid` is absent from the current key set."""


class SignatureInvalid(VerificationError):
    """Raised when the signature check fails or the algorithm is not allowed."""


class TokenExpired(VerificationError):
    """Raised when the token's `exp` claim is not in the future.

    Only raised for tokens whose signature verified.
    """

    description = "Identity token has expired"


class MalformedToken(VerificationError):
    """Raised when the token cannot be parsed or a required claim is missing."""


class ClaimRejected(VerificationError):
    """Raised when `iss` or `aud` does not name Google and this client."""
