"""Session store implementations for the CSRF token.

Implementations:
- DictSessionStore: wraps any mutable mapping (plain dict, framework session)
- FlaskSessionStore: reads and writes `flask.session` of the current request

Security Note:
    The CSRF token must live in storage bound to the user's browser session.
    With Flask's default cookie session the token is signed, not encrypted,
    which is fine: it only has to be unforgeable, not secret from its owner.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

from flask import session


class DictSessionStore:
    """Session store over an arbitrary mutable mapping.

    Example:
        ```python
        store = DictSessionStore(request.session)  # e.g. a Starlette session
        ```
    """

    def __init__(self, data: MutableMapping[str, Any] | None = None) -> None:
        self._data: MutableMapping[str, Any] = {} if data is None else data

    def get(self, key: str) -> str | None:
        value = self._data.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class FlaskSessionStore:
    """Session store over `flask.session`.

    Must be used inside a Flask request context, and the app needs a
    ``secret_key``.
    """

    def get(self, key: str) -> str | None:
        value = session.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        session[key] = value
