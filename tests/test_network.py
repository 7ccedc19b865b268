"""Tests for the httpx network module."""

import asyncio

import httpx
import pytest

from implicit_auth.core.errors import NetworkError
from implicit_auth.core.logging import ProtocolLogger
from implicit_auth.network import HttpxNetworkModule

URL = "https://idp.example.com/.well-known/openid-configuration"


def _module(handler, protocol_logger: ProtocolLogger | None = None) -> HttpxNetworkModule:
    return HttpxNetworkModule(
        protocol_logger=protocol_logger or ProtocolLogger(),
        transport=httpx.MockTransport(handler),
    )


class TestGetJson:
    """Tests for HttpxNetworkModule.get_json."""

    def test_success(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"issuer": "https://idp.example.com"})

        data = asyncio.run(_module(handler).get_json(URL))

        assert data == {"issuer": "https://idp.example.com"}
        assert seen[0].headers["Accept"] == "application/json"

    def test_http_error(self) -> None:
        module = _module(lambda request: httpx.Response(404, text="not found"))

        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(module.get_json(URL))
        assert exc_info.value.error_code == "network_error"
        assert "HTTP 404" in exc_info.value.error_message

    def test_invalid_json(self) -> None:
        module = _module(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(module.get_json(URL))
        assert "invalid JSON" in exc_info.value.error_message

    def test_not_an_object(self) -> None:
        module = _module(lambda request: httpx.Response(200, json=["a", "b"]))

        with pytest.raises(NetworkError):
            asyncio.run(module.get_json(URL))

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(_module(handler).get_json(URL))
        assert "connection refused" in exc_info.value.error_message

    def test_exchange_recorded(self) -> None:
        protocol_logger = ProtocolLogger()
        module = _module(lambda request: httpx.Response(200, json={"issuer": "x"}), protocol_logger)

        protocol_logger.start_flow("flow-1", "authority_discovery")
        asyncio.run(module.get_json(URL))
        log = protocol_logger.end_flow()

        assert log is not None
        assert len(log.exchanges) == 1
        assert log.exchanges[0].url == URL
        assert log.exchanges[0].response_status == 200

    def test_injected_transport_stays_open(self) -> None:
        class TrackingTransport(httpx.MockTransport):
            closed = False

            async def aclose(self) -> None:
                self.closed = True

        transport = TrackingTransport(lambda request: httpx.Response(200, json={"issuer": "x"}))
        module = HttpxNetworkModule(protocol_logger=ProtocolLogger(), transport=transport)

        async def fetch_twice() -> None:
            await module.get_json(URL)
            await module.get_json(URL)

        asyncio.run(fetch_twice())

        assert transport.closed is False
