"""Authorization code exchange against Google's token endpoint."""

from __future__ import annotations

import hmac
import json
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .errors import CsrfTokenMismatch, UnexpectedResponse
from .models import HttpRequest, TokenExchangeResult

if TYPE_CHECKING:
    from .config import GoogleSsoConfig
    from .protocols import Transport

logger = logging.getLogger(__name__)


def states_match(state: str, expected_state: str | None) -> bool:
    """Constant-time comparison of a callback `state` with the stored token.

    An absent or empty stored token never matches, whatever was received.
    """
    if not expected_state or not state:
        return False
    return hmac.compare_digest(state.encode("utf-8"), expected_state.encode("utf-8"))


class AuthorizationCodeExchanger:
    """Trades an authorization code for token endpoint output.

    One POST per call, no retries. The CSRF check runs first and a mismatch
    never reaches the network. Transport errors (connection failures, non-2xx
    statuses) propagate unchanged; this class only insists on a JSON object
    carrying an `id_token`.

    Attributes:
        _config: Client credentials and token endpoint.
        _transport: Sends the POST.
        _clock: Source of the current Unix time for `expires_at`.
    """

    def __init__(
        self,
        config: GoogleSsoConfig,
        transport: Transport,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._transport = transport
        self._clock = clock

    def exchange(self, code: str, state: str, expected_state: str | None) -> TokenExchangeResult:
        """Exchange `code` for tokens once `state` has been checked.

        Args:
            code: Authorization code from the callback.
            state: `state` value from the callback.
            expected_state: CSRF token stored when the login URL was built.

        Returns:
            TokenExchangeResult with an absolute `expires_at`.

        Raises:
            CsrfTokenMismatch: `state` differs from `expected_state`.
            UnexpectedResponse: The body is not a JSON object with an id_token.
        """
        if not states_match(state, expected_state):
            raise CsrfTokenMismatch(state, expected_state)

        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "redirect_uri": self._config.callback_url,
        }
        request = HttpRequest(
            method="POST",
            url=self._config.token_url,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            body=json.dumps(payload).encode("utf-8"),
        )

        received_at = self._clock()
        response = self._transport.send(request)

        try:
            data: Any = json.loads(response.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise UnexpectedResponse(response.status_code, response.body, "body is not JSON") from e

        if not isinstance(data, dict):
            raise UnexpectedResponse(response.status_code, response.body, "body is not a JSON object")

        id_token = data.get("id_token")
        if not isinstance(id_token, str) or not id_token:
            raise UnexpectedResponse(response.status_code, response.body, "no id_token in response")

        expires_in = data.get("expires_in")
        expires_at: float | None = None
        if expires_in is not None:
            try:
                expires_at = received_at + float(expires_in)
            except (TypeError, ValueError) as e:
                raise UnexpectedResponse(
                    response.status_code, response.body, "expires_in is not a number"
                ) from e

        logger.debug("Exchanged authorization code, granted scope %r", data.get("scope"))
        return TokenExchangeResult(
            access_token=data.get("access_token"),
            id_token=id_token,
            expires_at=expires_at,
            scope=data.get("scope"),
            token_type=data.get("token_type"),
        )
