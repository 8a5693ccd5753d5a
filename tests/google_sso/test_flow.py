"""
Tests for SsoFlowController.

Covers the full login round trip against a stub token endpoint and JWKS.
"""

import json
import re
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qs, urlsplit

import pytest

import google_sso as m

from .conftest import JWKS_URL, TOKEN_URL, FakeTransport


def token_response(id_token: str) -> dict[str, Any]:
    return {
        "access_token": "ya29.a0Af",
        "expires_in": 3600,
        "scope": "openid email profile",
        "token_type": "Bearer",
        "id_token": id_token,
    }


@pytest.fixture
def session_data() -> dict[str, str]:
    return {}


@pytest.fixture
def states() -> list[m.FlowState]:
    return []


@pytest.fixture
def sso(
    config: m.GoogleSsoConfig,
    transport: FakeTransport,
    jwks_bytes: bytes,
    session_data: dict[str, str],
    states: list[m.FlowState],
) -> m.SsoFlowController:
    transport.route(JWKS_URL, m.HttpResponse(200, jwks_bytes))
    return m.SsoFlowController(
        config,
        session=m.DictSessionStore(session_data),
        transport=transport,
        cache_config=m.CacheConfig(cache=m.InMemoryCache()),
        on_transition=states.append,
    )


class TestLoginRoundTrip:
    """End-to-end: URL issued, callback replayed, identity returned."""

    def test_alice_signs_in(
        self,
        sso: m.SsoFlowController,
        transport: FakeTransport,
        session_data: dict[str, str],
        states: list[m.FlowState],
        make_claims: Callable[..., dict[str, Any]],
        make_id_token: Callable[..., str],
    ):
        login = sso.start_login()
        state = parse_qs(urlsplit(login.url).query)["state"][0]
        assert re.fullmatch(r"[0-9a-f]{32}", state)
        assert session_data["googleSsoCsrfToken"] == state

        transport.route_json(TOKEN_URL, token_response(make_id_token(make_claims())))

        identity = sso.handle_callback("4/0AX4XfWg", state)

        assert identity.email == "alice@example.com"
        assert identity.email_verified is True
        assert identity.aud == "abc123"
        assert json.loads(transport.calls_to(TOKEN_URL)[0].body or b"")["code"] == "4/0AX4XfWg"
        assert states == [
            m.FlowState.INIT,
            m.FlowState.URL_ISSUED,
            m.FlowState.CALLBACK_RECEIVED,
            m.FlowState.EXCHANGED,
            m.FlowState.AUTHENTICATED,
        ]
        assert states[-1].terminal

    def test_key_set_is_fetched_once_across_logins(
        self,
        sso: m.SsoFlowController,
        transport: FakeTransport,
        make_claims: Callable[..., dict[str, Any]],
        make_id_token: Callable[..., str],
    ):
        transport.route_json(TOKEN_URL, token_response(make_id_token(make_claims())))

        for _ in range(3):
            login = sso.start_login()
            sso.handle_callback("code", login.csrf_token)

        assert len(transport.calls_to(TOKEN_URL)) == 3
        assert len(transport.calls_to(JWKS_URL)) == 1


class TestCsrfProtection:
    def test_mismatched_state_never_reaches_token_endpoint(
        self,
        sso: m.SsoFlowController,
        transport: FakeTransport,
        states: list[m.FlowState],
    ):
        sso.start_login()

        with pytest.raises(m.CsrfTokenMismatch):
            sso.handle_callback("code", "0" * 32)

        assert transport.requests == []
        assert states[-1] is m.FlowState.CSRF_FAILED

    def test_callback_without_login_is_rejected(
        self, sso: m.SsoFlowController, transport: FakeTransport
    ):
        with pytest.raises(m.CsrfTokenMismatch) as exc_info:
            sso.handle_callback("code", "anything")

        assert exc_info.value.expected is None
        assert transport.requests == []

    def test_state_cannot_be_replayed(
        self,
        sso: m.SsoFlowController,
        transport: FakeTransport,
        make_claims: Callable[..., dict[str, Any]],
        make_id_token: Callable[..., str],
    ):
        transport.route_json(TOKEN_URL, token_response(make_id_token(make_claims())))
        login = sso.start_login()
        sso.handle_callback("code", login.csrf_token)

        with pytest.raises(m.CsrfTokenMismatch):
            sso.handle_callback("code", login.csrf_token)

        assert len(transport.calls_to(TOKEN_URL)) == 1

    def test_only_latest_token_is_accepted(self, sso: m.SsoFlowController):
        first = sso.start_login()
        sso.start_login()

        with pytest.raises(m.CsrfTokenMismatch):
            sso.handle_callback("code", first.csrf_token)


class TestVerificationFailures:
    def test_expired_identity_token(
        self,
        sso: m.SsoFlowController,
        transport: FakeTransport,
        states: list[m.FlowState],
        make_claims: Callable[..., dict[str, Any]],
        make_id_token: Callable[..., str],
    ):
        now = int(time.time())
        expired = make_id_token(make_claims(iat=now - 7200, exp=now - 1))
        transport.route_json(TOKEN_URL, token_response(expired))
        login = sso.start_login()

        with pytest.raises(m.TokenExpired):
            sso.handle_callback("code", login.csrf_token)

        assert states[-1] is m.FlowState.VERIFY_FAILED

    def test_foreign_key(
        self,
        sso: m.SsoFlowController,
        transport: FakeTransport,
        make_claims: Callable[..., dict[str, Any]],
        make_id_token: Callable[..., str],
        other_rsa_key: Any,
    ):
        forged = make_id_token(make_claims(), kid="k2", key=other_rsa_key)
        transport.route_json(TOKEN_URL, token_response(forged))
        login = sso.start_login()

        with pytest.raises(m.UnknownKey):
            sso.handle_callback("code", login.csrf_token)

    def test_token_for_another_client(
        self,
        sso: m.SsoFlowController,
        transport: FakeTransport,
        make_claims: Callable[..., dict[str, Any]],
        make_id_token: Callable[..., str],
    ):
        token = make_id_token(make_claims(aud="other-client"))
        transport.route_json(TOKEN_URL, token_response(token))
        login = sso.start_login()

        with pytest.raises(m.ClaimRejected):
            sso.handle_callback("code", login.csrf_token)

    def test_unexpected_token_response(
        self,
        sso: m.SsoFlowController,
        transport: FakeTransport,
        states: list[m.FlowState],
    ):
        transport.route(TOKEN_URL, m.HttpResponse(200, b"Service Unavailable"))
        login = sso.start_login()

        with pytest.raises(m.UnexpectedResponse):
            sso.handle_callback("code", login.csrf_token)

        assert states[-1] is m.FlowState.EXCHANGE_FAILED
        assert transport.calls_to(JWKS_URL) == []


class StaticKeys:
    def __init__(self, key_set: Any):
        self.key_set = key_set
        self.calls = 0

    def get_key_set(self) -> Any:
        self.calls += 1
        return self.key_set


def test_injected_key_fetcher_is_used(
    config: m.GoogleSsoConfig,
    transport: FakeTransport,
    key_set: Any,
    make_claims: Callable[..., dict[str, Any]],
    make_id_token: Callable[..., str],
):
    keys = StaticKeys(key_set)
    sso = m.SsoFlowController(
        config, session=m.DictSessionStore(), transport=transport, key_fetcher=keys
    )
    transport.route_json(TOKEN_URL, token_response(make_id_token(make_claims())))

    login = sso.start_login()
    sso.handle_callback("code", login.csrf_token)

    assert keys.calls == 1
    assert transport.calls_to(JWKS_URL) == []
