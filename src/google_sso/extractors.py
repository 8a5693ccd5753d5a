"""Callback parameter extraction from HTTP requests.

Google redirects the browser to the callback URL with either
``?code=...&state=...`` or, when the user declines, ``?error=access_denied``.
This module reads those query parameters from the current Flask request so
that the core flow can receive them as explicit arguments.
"""

from __future__ import annotations

from flask import request

from .errors import AuthorizationDenied, MissingCallbackParameter
from .models import CallbackParams


class QueryArgsExtractor:
    """Extracts `code` and `state` from the callback query string.

    Example:
        ```python
        params = QueryArgsExtractor().extract()
        identity = sso.handle_callback(params.code, params.state)
        ```

    Attributes:
        _code_arg: Query parameter holding the authorization code.
        _state_arg: Query parameter holding the CSRF state.
    """

    def __init__(self, code_arg: str = "code", state_arg: str = "state") -> None:
        if not code_arg or not state_arg:
            raise ValueError("query parameter names cannot be empty")
        self._code_arg = code_arg
        self._state_arg = state_arg

    def extract(self) -> CallbackParams:
        """Read the callback parameters from `flask.request.args`.

        Raises:
            AuthorizationDenied: Google reported an `error` instead of a code.
            MissingCallbackParameter: `code` or `state` is missing or empty.
        """
        error = request.args.get("error")
        if error:
            raise AuthorizationDenied(error)

        code = request.args.get(self._code_arg, "").strip()
        if not code:
            raise MissingCallbackParameter(self._code_arg)

        state = request.args.get(self._state_arg, "").strip()
        if not state:
            raise MissingCallbackParameter(self._state_arg)

        return CallbackParams(code=code, state=state)
