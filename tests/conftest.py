"""Pytest configuration and fixtures."""

import base64
import json
import os
from collections.abc import Callable, Generator

import httpx
import pytest
from flask import Flask
from flask.testing import FlaskClient

from implicit_auth.app import create_app
from implicit_auth.cache import InMemoryCacheStorage
from implicit_auth.client import ImplicitAuthClient
from implicit_auth.core.config import ENV_PREFIX, AuthSettings, CacheSettings, ClientConfiguration
from implicit_auth.core.logging import ProtocolLogger
from implicit_auth.network import HttpxNetworkModule

CLIENT_ID = "6226576d-37e9-49eb-b201-ec1eeb0029b6"
TENANT_ID = "72f988bf-86f1-41af-91ab-2d7cd011db47"
AUTHORITY = "https://login.microsoftonline.com/contoso/"
REDIRECT_URI = "https://app.example.com/callback"
POST_LOGOUT_REDIRECT_URI = "https://app.example.com/"
START_PAGE = "https://app.example.com/start"

DISCOVERY_DOCUMENT = {
    "issuer": "https://login.microsoftonline.com/{tenant}/v2.0",
    "authorization_endpoint": "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/authorize",
    "token_endpoint": "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token",
    "end_session_endpoint": "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/logout",
    "jwks_uri": "https://login.microsoftonline.com/{tenant}/discovery/v2.0/keys",
}


def _b64_json(data: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).decode().rstrip("=")


def create_test_jwt(payload: dict, header: dict | None = None) -> str:
    """Create a test JWT token (without valid signature)."""
    if header is None:
        header = {"alg": "RS256", "typ": "JWT"}
    # Fake signature
    return f"{_b64_json(header)}.{_b64_json(payload)}.fake_signature_for_testing"


def create_client_info(uid: str, utid: str) -> str:
    """Create a base64url client_info value."""
    return _b64_json({"uid": uid, "utid": utid})


def default_claims(**overrides) -> dict:
    claims = {
        "iss": f"https://login.microsoftonline.com/{TENANT_ID}/v2.0",
        "aud": CLIENT_ID,
        "sub": "AAAAAAAAAAAAAAAAAAAAAIkzqFVrSaSaFHy782bbtaQ",
        "oid": "00000000-0000-0000-66f3-3332eca7ea81",
        "tid": TENANT_ID,
        "name": "Abe Lincoln",
        "preferred_username": "abeli@microsoft.com",
        "ver": "2.0",
        "exp": 1900000000,
    }
    claims.update(overrides)
    return claims


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's IMPLICIT_AUTH_* environment out of a test."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name)


@pytest.fixture
def make_id_token() -> Callable[..., str]:
    """Build an unsigned identity token; keyword arguments override claims."""

    def _make(**overrides) -> str:
        return create_test_jwt(default_claims(**overrides))

    return _make


@pytest.fixture
def client_info() -> str:
    return create_client_info("00000000-0000-0000-66f3-3332eca7ea81", TENANT_ID)


@pytest.fixture
def discovery_requests() -> list[httpx.Request]:
    """Requests seen by the mock discovery transport."""
    return []


@pytest.fixture
def mock_transport(discovery_requests: list[httpx.Request]) -> httpx.MockTransport:
    """Transport serving the discovery document for any openid-configuration URL."""

    def handler(request: httpx.Request) -> httpx.Response:
        discovery_requests.append(request)
        if request.url.path.endswith("/.well-known/openid-configuration"):
            return httpx.Response(200, json=DISCOVERY_DOCUMENT)
        return httpx.Response(404, json={"error": "not_found"})

    return httpx.MockTransport(handler)


@pytest.fixture
def protocol_logger() -> ProtocolLogger:
    return ProtocolLogger()


@pytest.fixture
def network_client(mock_transport: httpx.MockTransport, protocol_logger: ProtocolLogger) -> HttpxNetworkModule:
    return HttpxNetworkModule(protocol_logger=protocol_logger, transport=mock_transport)


@pytest.fixture
def client_config() -> ClientConfiguration:
    return ClientConfiguration(
        auth=AuthSettings(
            client_id=CLIENT_ID,
            authority=AUTHORITY,
            redirect_uri=REDIRECT_URI,
            post_logout_redirect_uri=POST_LOGOUT_REDIRECT_URI,
        ),
        cache=CacheSettings(location="memory"),
    )


@pytest.fixture
def cache() -> InMemoryCacheStorage:
    return InMemoryCacheStorage()


@pytest.fixture
def auth_client(
    client_config: ClientConfiguration,
    cache: InMemoryCacheStorage,
    network_client: HttpxNetworkModule,
    protocol_logger: ProtocolLogger,
) -> ImplicitAuthClient:
    """Client over an in-memory cache and the mock discovery transport."""
    return ImplicitAuthClient(
        client_config,
        cache,
        network_client=network_client,
        location_provider=lambda: START_PAGE,
        protocol_logger=protocol_logger,
    )


@pytest.fixture
def app(network_client: HttpxNetworkModule) -> Generator[Flask, None, None]:
    """Create application for testing with redirect URIs left to the app's routes."""
    client_config = ClientConfiguration(
        auth=AuthSettings(client_id=CLIENT_ID, authority=AUTHORITY),
        cache=CacheSettings(location="memory"),
    )
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key",
        },
        client_config=client_config,
        network_client=network_client,
    )
    yield app


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create test client."""
    return app.test_client()
