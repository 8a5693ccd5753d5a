"""Login URL construction and CSRF token issuance."""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, Final
from urllib.parse import urlencode

from .models import LoginRedirect

if TYPE_CHECKING:
    from .config import GoogleSsoConfig
    from .protocols import SessionStore

logger = logging.getLogger(__name__)

SCOPES: Final[tuple[str, ...]] = ("email", "openid", "profile")
"""https://developers.google.com/identity/protocols/oauth2/scopes"""

_CSRF_TOKEN_BYTES: Final[int] = 16


def new_csrf_token() -> str:
    """Return a fresh 32-character hex CSRF token."""
    return secrets.token_hex(_CSRF_TOKEN_BYTES)


class AuthorizationRequestBuilder:
    """Builds the Google authorization URL and stores its CSRF token.

    Every call issues a new token unless the caller passes the token of an
    attempt that is still in flight (e.g. several login links rendered on one
    page). Nothing is memoized between calls.

    Example:
        ```python
        builder = AuthorizationRequestBuilder(config, FlaskSessionStore())
        login = builder.build_login_url()
        return redirect(login.url)
        ```
    """

    def __init__(self, config: GoogleSsoConfig, session: SessionStore) -> None:
        self._config = config
        self._session = session

    def build_login_url(self, csrf_token: str | None = None) -> LoginRedirect:
        """Build the authorization URL.

        Args:
            csrf_token: Token of an in-flight attempt to reuse. A new one is
                generated when omitted.

        Returns:
            LoginRedirect with the full URL and the token stored in the session.

        Raises:
            ValueError: If an empty `csrf_token` is passed explicitly.
        """
        if csrf_token is None:
            csrf_token = new_csrf_token()
        elif not csrf_token:
            raise ValueError("csrf_token cannot be empty")

        self._session.set(self._config.session_csrf_key, csrf_token)

        query = urlencode(
            {
                "scope": " ".join(SCOPES),
                "response_type": "code",
                "access_type": "offline",
                "state": csrf_token,
                "redirect_uri": self._config.callback_url,
                "client_id": self._config.client_id,
            }
        )
        logger.debug("Issued login URL for client %s", self._config.client_id)
        return LoginRedirect(url=f"{self._config.authorization_url}?{query}", csrf_token=csrf_token)
