"""
Server-side "Sign in with Google" (OpenID Connect) for Python web apps.

High-level flow (per login)
---------------------------
1. `SsoFlowController.start_login()` builds the Google authorization URL and
   stores a fresh CSRF token in the session.
2. The browser logs in at Google and comes back to your callback URL with
   ``code`` and ``state``.
3. `SsoFlowController.handle_callback(code, state)`:
   - Checks ``state`` against the stored token (`CsrfTokenMismatch`)
   - POSTs the code to Google's token endpoint (`AuthorizationCodeExchanger`)
   - Loads Google's JWKS, through a cache if configured (`KeyCache`)
   - Verifies the identity token (`JwtVerifier`)
4. On success a `UserIdentity` is returned. Session creation is up to you.

Security notes
--------------
- Never trust identity claims until signature verification succeeds.
- Only RS256 is accepted by default (avoid algorithm confusion).
- ``aud`` must be your client ID and ``iss`` must be Google.
- A CSRF token authorizes exactly one callback.

Example usage
-------------

.. code-block:: python

    from google_sso import (
        CacheConfig,
        GoogleSsoConfig,
        GoogleSsoExtension,
        RedisCache,
        SsoError,
    )

    config = GoogleSsoConfig(
        client_id="1234.apps.googleusercontent.com",
        client_secret="...",
        callback_url="https://example.com/sso/callback",
    )
    sso = GoogleSsoExtension(
        config,
        cache_config=CacheConfig(cache=RedisCache(redis_client), ttl_seconds=3600),
    )
    sso.init_app(app)

    @app.get("/login")
    def login():
        return sso.login_redirect()

    @app.get("/sso/callback")
    def callback():
        try:
            identity = sso.handle_callback()
        except SsoError as e:
            abort(e.error_code, description=e.description)
        session["email"] = identity.email
        return redirect("/")
"""

# Authorization request
from .authorization_request import AuthorizationRequestBuilder, new_csrf_token

# Cache stores
from .cache_stores import InMemoryCache, RedisCache

# Configuration
from .config import CacheConfig, GoogleSsoConfig

# Errors
from .errors import (
    AuthorizationDenied,
    ClaimRejected,
    CsrfTokenMismatch,
    KeySetUnavailable,
    MalformedToken,
    MissingCallbackParameter,
    SignatureInvalid,
    SsoError,
    TokenExpired,
    UnexpectedResponse,
    UnknownKey,
    VerificationError,
)

# Code exchange
from .exchanger import AuthorizationCodeExchanger

# Extractors
from .extractors import QueryArgsExtractor

# Flask extension
from .flask_extension import GoogleSsoExtension, get_sso

# Flow
from .flow import FlowState, SsoFlowController

# Key providers
from .key_providers import KeyCache

# Models
from .models import (
    CallbackParams,
    HttpRequest,
    HttpResponse,
    LoginRedirect,
    TokenExchangeResult,
    UserIdentity,
)

# Protocols
from .protocols import (
    CacheStore,
    Claims,
    KeySetFetcher,
    SessionStore,
    TokenVerifier,
    Transport,
)

# Session stores
from .session_stores import DictSessionStore, FlaskSessionStore

# Transport
from .transport import HttpxTransport

# Verifier
from .verifier import GOOGLE_ISSUERS, JwtVerifier, JwtVerifyOptions

__all__ = [
    # Errors
    "SsoError",
    "CsrfTokenMismatch",
    "MissingCallbackParameter",
    "AuthorizationDenied",
    "UnexpectedResponse",
    "KeySetUnavailable",
    "VerificationError",
    "UnknownKey",
    "SignatureInvalid",
    "TokenExpired",
    "MalformedToken",
    "ClaimRejected",
    # Protocols
    "Transport",
    "CacheStore",
    "SessionStore",
    "KeySetFetcher",
    "TokenVerifier",
    "Claims",
    # Models
    "HttpRequest",
    "HttpResponse",
    "LoginRedirect",
    "CallbackParams",
    "TokenExchangeResult",
    "UserIdentity",
    # Configuration
    "GoogleSsoConfig",
    "CacheConfig",
    # Transport
    "HttpxTransport",
    # Cache stores
    "InMemoryCache",
    "RedisCache",
    # Session stores
    "DictSessionStore",
    "FlaskSessionStore",
    # Key providers
    "KeyCache",
    # Verifier
    "JwtVerifier",
    "JwtVerifyOptions",
    "GOOGLE_ISSUERS",
    # Code exchange
    "AuthorizationCodeExchanger",
    # Authorization request
    "AuthorizationRequestBuilder",
    "new_csrf_token",
    # Flow
    "SsoFlowController",
    "FlowState",
    # Extractors
    "QueryArgsExtractor",
    # Flask extension
    "GoogleSsoExtension",
    "get_sso",
]
