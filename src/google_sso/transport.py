"""Default HTTP transport built on httpx.

Any object with a compatible ``send(HttpRequest) -> HttpResponse`` method can
replace it; tests use an in-memory fake.
"""

from __future__ import annotations

import logging
from typing import Final

import httpx

from .models import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT: Final[float] = 10.0


class HttpxTransport:
    """Sends requests with a (possibly shared) `httpx.Client`.

    Connection failures raise `httpx.TransportError` subclasses and non-2xx
    statuses raise `httpx.HTTPStatusError`. Neither is caught here.

    Example:
        ```python
        with httpx.Client(timeout=5.0) as client:
            transport = HttpxTransport(client)
            response = transport.send(HttpRequest("GET", DEFAULT_JWKS_URL))
        ```
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._client = client or httpx.Client(timeout=timeout)

    def send(self, request: HttpRequest) -> HttpResponse:
        logger.debug("%s %s", request.method, request.url)
        response = self._client.request(
            request.method,
            request.url,
            headers=dict(request.headers),
            content=request.body,
        )
        response.raise_for_status()
        return HttpResponse(
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self._client.close()
