"""Orchestration of the two HTTP-facing steps of Google sign-in.

High-level flow
---------------
1. ``start_login()`` builds the authorization URL and stores a CSRF token in
   the session. The caller redirects the browser there.
2. Google sends the browser back to the callback URL with ``code`` and
   ``state``. The caller's request layer extracts them.
3. ``handle_callback(code, state)``:
   - compares ``state`` with the stored token and consumes it
   - exchanges ``code`` at the token endpoint
   - fetches (or reads from cache) Google's key set
   - verifies the identity token and returns a UserIdentity

Either a fully verified UserIdentity is returned or a typed SsoError is
raised; there is no partial success. Nothing is retried.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from .authorization_request import AuthorizationRequestBuilder
from .errors import CsrfTokenMismatch
from .exchanger import AuthorizationCodeExchanger
from .key_providers import KeyCache
from .verifier import JwtVerifier, JwtVerifyOptions

if TYPE_CHECKING:
    from .config import CacheConfig, GoogleSsoConfig
    from .models import LoginRedirect, UserIdentity
    from .protocols import KeySetFetcher, SessionStore, TokenVerifier, Transport

logger = logging.getLogger(__name__)


class FlowState(enum.Enum):
    """Progress of one login attempt.

    ``CSRF_FAILED``, ``EXCHANGE_FAILED``, ``VERIFY_FAILED`` and
    ``AUTHENTICATED`` are terminal.
    """

    INIT = "init"
    URL_ISSUED = "url_issued"
    CALLBACK_RECEIVED = "callback_received"
    CSRF_FAILED = "csrf_failed"
    EXCHANGE_FAILED = "exchange_failed"
    EXCHANGED = "exchanged"
    VERIFY_FAILED = "verify_failed"
    AUTHENTICATED = "authenticated"

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset(
    {
        FlowState.CSRF_FAILED,
        FlowState.EXCHANGE_FAILED,
        FlowState.VERIFY_FAILED,
        FlowState.AUTHENTICATED,
    }
)


class SsoFlowController:
    """
    Sequences the sign-in components.

    Holds no per-attempt state of its own: the CSRF token lives in the
    injected SessionStore, so one controller can serve every request of a
    process.

    Usage:
        sso = SsoFlowController(config, session=FlaskSessionStore(), transport=HttpxTransport())

        @app.get("/login")
        def login():
            return redirect(sso.start_login().url)

        @app.get("/sso/callback")
        def callback():
            identity = sso.handle_callback(request.args["code"], request.args["state"])
            ...

    Parameters
    ----------
    config : GoogleSsoConfig
        Client credentials and endpoints.
    session : SessionStore
        Holds the CSRF token between redirect and callback.
    transport : Transport
        Used for the token exchange and the JWKS fetch.
    cache_config : CacheConfig | None
        JWKS caching. Ignored when ``key_fetcher`` is given.
    key_fetcher : KeySetFetcher | None
        Replaces the default KeyCache.
    verifier : TokenVerifier | None
        Replaces the default JwtVerifier (audience = client_id).
    on_transition : Callable[[FlowState], None] | None
        Called on every state change, e.g. for metrics.
    """

    def __init__(
        self,
        config: GoogleSsoConfig,
        session: SessionStore,
        transport: Transport,
        cache_config: CacheConfig | None = None,
        *,
        key_fetcher: KeySetFetcher | None = None,
        verifier: TokenVerifier | None = None,
        on_transition: Callable[[FlowState], None] | None = None,
    ) -> None:
        self._config = config
        self._session = session
        self._builder = AuthorizationRequestBuilder(config, session)
        self._exchanger = AuthorizationCodeExchanger(config, transport)
        self._keys: KeySetFetcher = key_fetcher or KeyCache(config, transport, cache_config)
        self._verifier: TokenVerifier = verifier or JwtVerifier(
            JwtVerifyOptions(audience=config.client_id)
        )
        self._on_transition = on_transition

    def start_login(self, csrf_token: str | None = None) -> LoginRedirect:
        """Issue the authorization URL for a new (or in-flight) attempt."""
        self._advance(FlowState.INIT)
        redirect = self._builder.build_login_url(csrf_token)
        self._advance(FlowState.URL_ISSUED)
        return redirect

    def handle_callback(self, code: str, state: str) -> UserIdentity:
        """Complete the attempt identified by `state`.

        Raises:
            CsrfTokenMismatch: `state` is not the token stored for this session.
            UnexpectedResponse: The token endpoint returned an unusable body.
            KeySetUnavailable: Google's key set could not be parsed.
            VerificationError: The identity token was rejected (see subclasses).
        """
        self._advance(FlowState.CALLBACK_RECEIVED)

        key = self._config.session_csrf_key
        expected = self._session.get(key)
        # consume: one token authorizes at most one callback
        self._session.set(key, "")

        try:
            result = self._exchanger.exchange(code, state, expected)
        except CsrfTokenMismatch:
            logger.warning("Rejected sign-in callback: CSRF token mismatch")
            self._advance(FlowState.CSRF_FAILED)
            raise
        except Exception:
            self._advance(FlowState.EXCHANGE_FAILED)
            raise
        self._advance(FlowState.EXCHANGED)

        try:
            identity = self._verifier.verify(result.id_token, self._keys.get_key_set())
        except Exception as e:
            logger.warning("Rejected identity token: %s", e)
            self._advance(FlowState.VERIFY_FAILED)
            raise

        self._advance(FlowState.AUTHENTICATED)
        return identity

    def _advance(self, state: FlowState) -> None:
        logger.debug("Sign-in flow -> %s", state.value)
        if self._on_transition is not None:
            self._on_transition(state)
