"""Identity token verification using PyJWT.

This module turns a raw Google identity token into a UserIdentity:
- Extracts the key ID (kid) and algorithm from the token header
- Resolves the public key from a JSON Web Key Set
- Validates the signature and expiry using PyJWT
- Checks issuer/audience and maps claims onto UserIdentity
- Maps PyJWT exceptions to domain-specific error types

This is the single trust boundary of the sign-in flow. Anything ambiguous or
missing is rejected, never defaulted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

import jwt

from .errors import (
    ClaimRejected,
    MalformedToken,
    SignatureInvalid,
    TokenExpired,
    UnknownKey,
)
from .models import UserIdentity

if TYPE_CHECKING:
    from jwt import PyJWKSet

    from .protocols import Claims

logger = logging.getLogger(__name__)

GOOGLE_ISSUERS: Final[tuple[str, ...]] = ("https://accounts.google.com", "accounts.google.com")
"""Issuer values Google puts in identity tokens."""

_REQUIRED_CLAIMS: Final[tuple[str, ...]] = ("iss", "aud", "sub", "email", "iat", "exp")


@dataclass(frozen=True, slots=True)
class JwtVerifyOptions:
    """Validation rules for Google identity tokens.

    Attributes:
        audience: Expected `aud` claim, i.e. your OAuth client ID. If None,
            audience is not validated (not recommended for production).

        issuers: Accepted `iss` values. If empty, issuer is not validated.

        algorithms: Allowed signing algorithms. MUST be an explicit allowlist
            to prevent algorithm confusion attacks. Google signs with RS256.
            Default: ("RS256",)

        leeway: Clock skew tolerance in seconds for exp/iat validation.
            Default: 0 (no leeway), so `exp` must be strictly in the future.

    Example:
        ```python
        options = JwtVerifyOptions(audience="1234.apps.googleusercontent.com", leeway=10)
        verifier = JwtVerifier(options)
        ```
    """

    audience: str | None = None
    issuers: tuple[str, ...] = GOOGLE_ISSUERS
    algorithms: tuple[str, ...] = ("RS256",)
    leeway: int = 0

    def __post_init__(self) -> None:
        if not self.algorithms:
            raise ValueError("algorithms cannot be empty")
        if "none" in (alg.lower() for alg in self.algorithms):
            raise ValueError("'none' is not an acceptable signing algorithm")
        if self.leeway < 0:
            raise ValueError(f"leeway cannot be negative, got {self.leeway}")


class JwtVerifier:
    """Verifies Google identity tokens against a key set.

    This class implements the TokenVerifier protocol. The key set is passed
    per call, so the verifier itself holds no mutable state and is safe to
    share between threads.

    Architecture:
        1. Read kid and alg from the token header (unverified)
        2. Look up the public key for kid in the key set
        3. Verify signature and expiry via PyJWT
        4. Check issuer, then map claims onto UserIdentity

    Example:
        ```python
        verifier = JwtVerifier(JwtVerifyOptions(audience=client_id))

        try:
            identity = verifier.verify(id_token, key_cache.get_key_set())
        except TokenExpired:
            # stale token, start the login again
        except VerificationError:
            # forged or malformed, reject
        ```
    """

    def __init__(self, options: JwtVerifyOptions | None = None) -> None:
        self._opt = options or JwtVerifyOptions()

    def verify(self, token: str, key_set: PyJWKSet) -> UserIdentity:
        """Verify an identity token and return the identity it asserts.

        Args:
            token: Raw JWT string from the token endpoint's `id_token`.
            key_set: Current Google key set.

        Returns:
            UserIdentity whose fields equal the token's claims.

        Raises:
            MalformedToken: Token cannot be parsed or a required claim is
                missing or has the wrong type.
            UnknownKey: No key in `key_set` matches the header's kid.
            SignatureInvalid: Signature mismatch or algorithm not allowed.
            TokenExpired: `exp` is not in the future (accounting for leeway).
            ClaimRejected: Issuer or audience does not match.
        """
        # Step 1: header (no crypto). Only used to select the key; nothing in
        # it is trusted until the signature verifies.
        try:
            header = jwt.get_unverified_header(token)
        except jwt.DecodeError as e:
            raise MalformedToken(f"Token header could not be decoded: {e}") from e
        except jwt.InvalidTokenError as e:
            # PyJWT validates header parameters (e.g. a non-string kid) here
            if "Key ID" in str(e) or "kid" in str(e):
                raise UnknownKey(f"Token header has an unusable kid: {e}") from e
            raise MalformedToken(f"Token header rejected: {e}") from e

        kid = header.get("kid")
        alg = header.get("alg")
        if not kid or not isinstance(kid, str):
            raise UnknownKey("Token header missing 'kid' or 'kid' is not a string")

        # Step 2: key selection
        try:
            jwk = key_set[kid]
        except KeyError as e:
            raise UnknownKey(f"No key with kid {kid!r} in the current key set") from e

        if alg not in self._opt.algorithms:
            raise SignatureInvalid(f"Algorithm {alg!r} is not allowed")
        # PyJWK takes its algorithm from the JWK "alg", or infers it from "kty"
        if jwk.algorithm_name != alg:
            raise SignatureInvalid(
                f"Token algorithm {alg!r} does not match key algorithm {jwk.algorithm_name!r}"
            )

        # Step 3: signature, then exp/iat, then aud. PyJWT checks the
        # signature before any claim, so an expired token is only reported
        # as expired when it was genuinely signed by this key.
        try:
            claims = jwt.decode(
                token,
                jwk.key,
                algorithms=[alg],
                audience=self._opt.audience,
                leeway=self._opt.leeway,
                options={
                    "require": list(_REQUIRED_CLAIMS),
                    "verify_aud": self._opt.audience is not None,
                },
            )
        except jwt.InvalidSignatureError as e:
            raise SignatureInvalid("Token signature verification failed") from e
        except jwt.InvalidAlgorithmError as e:
            raise SignatureInvalid(f"Token algorithm rejected: {e}") from e
        except jwt.ExpiredSignatureError as e:
            raise TokenExpired("Token has expired") from e
        except jwt.MissingRequiredClaimError as e:
            raise MalformedToken(f"Token is missing required claim {e.claim!r}") from e
        except (jwt.InvalidAudienceError, jwt.ImmatureSignatureError) as e:
            raise ClaimRejected(f"Token claim rejected: {e}") from e
        except jwt.InvalidTokenError as e:
            # DecodeError, InvalidIssuedAtError, ...
            raise MalformedToken(f"Token validation failed: {e}") from e

        # Step 4: issuer and claim mapping
        if self._opt.issuers and claims.get("iss") not in self._opt.issuers:
            raise ClaimRejected(f"Unexpected issuer {claims.get('iss')!r}")

        identity = _identity_from_claims(claims)
        logger.debug("Verified identity token for sub=%s", identity.sub)
        return identity


def _identity_from_claims(claims: Claims) -> UserIdentity:
    return UserIdentity(
        iss=_require(claims, "iss", str),
        aud=_require(claims, "aud", str),
        sub=_require(claims, "sub", str),
        email=_require(claims, "email", str),
        email_verified=_require(claims, "email_verified", bool),
        iat=_require(claims, "iat", int),
        exp=_require(claims, "exp", int),
        azp=_optional(claims, "azp"),
        at_hash=_optional(claims, "at_hash"),
        name=_optional(claims, "name"),
        picture=_optional(claims, "picture"),
        given_name=_optional(claims, "given_name"),
        family_name=_optional(claims, "family_name"),
    )


def _require(claims: Claims, name: str, kind: type) -> Any:
    value = claims.get(name)
    if value is None or value == "":
        raise MalformedToken(f"Token is missing required claim {name!r}")
    if not _is_kind(value, kind):
        raise MalformedToken(f"Claim {name!r} has unexpected type {type(value).__name__}")
    return value


def _optional(claims: Claims, name: str) -> str | None:
    value = claims.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedToken(f"Claim {name!r} has unexpected type {type(value).__name__}")
    return value


def _is_kind(value: Any, kind: type) -> bool:
    # bool is a subclass of int
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, kind)
