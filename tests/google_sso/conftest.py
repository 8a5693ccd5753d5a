import json
import time
from collections.abc import Callable
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from flask import Flask

import google_sso as m

CLIENT_ID = "abc123"
CALLBACK_URL = "https://example.com/cb"
TOKEN_URL = "https://oauth2.googleapis.com/token"
JWKS_URL = "https://www.googleapis.com/oauth2/v3/certs"


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def jwks_bytes(rsa_key: rsa.RSAPrivateKey) -> bytes:
    """Google-shaped JWKS holding the public half of `rsa_key` as kid "k1"."""
    jwk = json.loads(jwt.algorithms.RSAAlgorithm.to_jwk(rsa_key.public_key()))
    jwk.update({"kid": "k1", "alg": "RS256", "use": "sig"})
    return json.dumps({"keys": [jwk]}).encode("utf-8")


@pytest.fixture
def key_set(jwks_bytes: bytes) -> jwt.PyJWKSet:
    return jwt.PyJWKSet.from_json(jwks_bytes.decode("utf-8"))


@pytest.fixture
def make_claims() -> Callable[..., dict[str, Any]]:
    """
    Factory fixture for identity token claims.

    Usage in tests:
        claims = make_claims(email="bob@example.com", exp=0)
    """

    def _make(**overrides: Any) -> dict[str, Any]:
        now = int(time.time())
        claims: dict[str, Any] = {
            "iss": "https://accounts.google.com",
            "azp": CLIENT_ID,
            "aud": CLIENT_ID,
            "sub": "110169484474386276334",
            "email": "alice@example.com",
            "email_verified": True,
            "at_hash": "HK6E_P6Dh8Y93mRNtsDB1Q",
            "name": "Alice Example",
            "picture": "https://lh3.googleusercontent.com/a/alice",
            "given_name": "Alice",
            "family_name": "Example",
            "iat": now,
            "exp": now + 3600,
        }
        claims.update(overrides)
        return {k: v for k, v in claims.items() if v is not None}

    return _make


@pytest.fixture
def make_id_token(rsa_key: rsa.RSAPrivateKey) -> Callable[..., str]:
    """
    Factory fixture that signs claims as a Google identity token.

    Usage in tests:
        token = make_id_token(claims, kid="k1", key=other_rsa_key)
    """

    def _make(
        claims: dict[str, Any],
        *,
        kid: str | None = "k1",
        key: Any = None,
        algorithm: str = "RS256",
    ) -> str:
        headers = {"kid": kid} if kid is not None else {}
        return jwt.encode(claims, key or rsa_key, algorithm=algorithm, headers=headers)

    return _make


@pytest.fixture
def config() -> m.GoogleSsoConfig:
    return m.GoogleSsoConfig(client_id=CLIENT_ID, client_secret="s3cret", callback_url=CALLBACK_URL)


class FakeTransport:
    """
    Records requests and answers from a per-URL queue of responses.

    A queued exception is raised instead of returned. The last response for a
    URL is reused once its queue is down to one entry.
    """

    def __init__(self):
        self.requests: list[m.HttpRequest] = []
        self._routes: dict[str, list[m.HttpResponse | Exception]] = {}

    def route(self, url: str, *responses: m.HttpResponse | Exception) -> None:
        self._routes[url] = list(responses)

    def route_json(self, url: str, payload: Any, status_code: int = 200) -> None:
        self.route(url, m.HttpResponse(status_code, json.dumps(payload).encode("utf-8")))

    def calls_to(self, url: str) -> list[m.HttpRequest]:
        return [r for r in self.requests if r.url == url]

    def send(self, request: m.HttpRequest) -> m.HttpResponse:
        self.requests.append(request)
        queue = self._routes.get(request.url)
        if not queue:
            raise AssertionError(f"unexpected request to {request.url}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class FakeRedis:
    """
    Minimal redis stub for RedisCache tests.
    Stores bytes under keys and supports setex.
    """

    def __init__(self):
        self._store: dict[str, tuple[bytes, int]] = {}

    def get(self, key: str):
        item = self._store.get(key)
        if item is None:
            return None
        data, expires_at = item
        if int(time.time()) >= expires_at:
            self._store.pop(key, None)
            return None
        return data

    def setex(self, key: str, ttl_seconds: int, value: str | bytes):
        expires_at = int(time.time()) + int(ttl_seconds)
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._store[key] = (value, expires_at)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def app():
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.secret_key = "test-secret"
    return app
