"""Flask extension for Google sign-in.

This module wires the flow controller to Flask's request and session objects.
The core components never touch Flask globals; this is the request layer
that reads them and passes plain values in.

Key Components:
- GoogleSsoExtension: login redirect and callback handling for a Flask app
- get_sso: fetch the extension registered on the current app

Security Model:
1. ``login_redirect()`` stores a fresh CSRF token in ``flask.session`` and
   redirects to Google
2. ``handle_callback()`` reads ``code``/``state`` from the query string,
   checks ``state`` against the session, exchanges the code and verifies
   the identity token
3. The verified UserIdentity is returned; creating the application's own
   login session is left to the caller
"""

from __future__ import annotations

import atexit
from typing import TYPE_CHECKING, Final

from flask import Flask, current_app, redirect

from .extractors import QueryArgsExtractor
from .flow import SsoFlowController
from .session_stores import FlaskSessionStore
from .transport import HttpxTransport

if TYPE_CHECKING:
    from werkzeug.wrappers import Response

    from .config import CacheConfig, GoogleSsoConfig
    from .models import UserIdentity
    from .protocols import Transport

_EXT_KEY: Final[str] = "google_sso"
"""Flask extensions registry key for GoogleSsoExtension."""


class GoogleSsoExtension:
    """
    Flask glue for the Google sign-in flow.

    Responsibilities:
    - Redirect the browser to Google with a CSRF token stored in the session
    - Extract the callback parameters from the request
    - Run the callback through SsoFlowController

    Errors are not converted to HTTP responses: every failure is an SsoError
    whose ``error_code`` and ``description`` can be passed to ``abort()``.

    Usage:
        sso = GoogleSsoExtension(config, cache_config=CacheConfig(cache=RedisCache(r)))
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
            session["user"] = identity.sub
            return redirect(url_for("home"))
    """

    def __init__(
        self,
        config: GoogleSsoConfig,
        transport: Transport | None = None,
        cache_config: CacheConfig | None = None,
        extractor: QueryArgsExtractor | None = None,
    ) -> None:
        self._extractor = extractor or QueryArgsExtractor()
        # A caller-supplied transport stays the caller's to close.
        self._owned_transport: HttpxTransport | None = None
        if transport is None:
            transport = self._owned_transport = HttpxTransport()
            atexit.register(self.close)
        self._flow = SsoFlowController(
            config,
            session=FlaskSessionStore(),
            transport=transport,
            cache_config=cache_config,
        )

    def close(self) -> None:
        """Close the HTTP client created by this extension, if any."""
        if self._owned_transport is not None:
            self._owned_transport.close()

    def init_app(self, app: Flask) -> None:
        """Register the extension on `app`.

        Args:
            app (Flask): The Flask application instance. It must have a
                ``secret_key`` so the CSRF token survives in the session.

        Raises:
            RuntimeError: If the app has no secret key.
        """
        if not app.secret_key:
            raise RuntimeError("GoogleSsoExtension requires app.secret_key for session storage")
        app.extensions[_EXT_KEY] = self

    def login_redirect(self, csrf_token: str | None = None) -> Response:
        """Redirect the browser to Google's authorization endpoint.

        Args:
            csrf_token: Token of an in-flight attempt to reuse. A new one is
                issued when omitted.
        """
        login = self._flow.start_login(csrf_token)
        return redirect(login.url)

    def handle_callback(self) -> UserIdentity:
        """Verify the callback of the current request.

        Raises:
            AuthorizationDenied, MissingCallbackParameter: Bad callback request.
            CsrfTokenMismatch: `state` is not the token in the session.
            UnexpectedResponse, KeySetUnavailable: Unusable upstream data.
            VerificationError: The identity token was rejected.
        """
        params = self._extractor.extract()
        return self._flow.handle_callback(params.code, params.state)


def get_sso() -> GoogleSsoExtension:
    """Return the GoogleSsoExtension registered on the current app.

    Raises:
        RuntimeError: If ``init_app`` was not called for this app.
    """
    ext = current_app.extensions.get(_EXT_KEY)
    if ext is None:
        raise RuntimeError("GoogleSsoExtension is not initialised for this app")
    return ext
