"""Network transport used for authority discovery."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from implicit_auth.core.errors import NetworkError
from implicit_auth.core.logging import ProtocolLogger, get_protocol_logger

logger = logging.getLogger(__name__)


class NetworkModule(Protocol):
    """Fetches JSON documents for the authority resolver."""

    async def get_json(self, url: str) -> dict[str, Any]: ...


class HttpxNetworkModule:
    """Network module built on ``httpx.AsyncClient`` with protocol logging."""

    def __init__(
        self,
        timeout: float = 10.0,
        verify_ssl: bool = True,
        protocol_logger: ProtocolLogger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the network module.

        Args:
            timeout: Request timeout in seconds.
            verify_ssl: Whether to verify TLS certificates.
            protocol_logger: Logger for HTTP exchanges. Uses the global one if omitted.
            transport: Transport to wrap, mainly for tests.
        """
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self._protocol_logger = protocol_logger or get_protocol_logger()
        self._transport = transport

    @property
    def protocol_logger(self) -> ProtocolLogger:
        return self._protocol_logger

    async def get_json(self, url: str) -> dict[str, Any]:
        """GET a URL and decode its JSON body.

        Raises:
            NetworkError: On timeouts, connection failures, non-2xx status or invalid JSON.
        """
        logger.debug("Fetching %s", url)
        transport = self._protocol_logger.create_transport(self._transport, verify=self.verify_ssl)

        try:
            async with httpx.AsyncClient(transport=transport, timeout=self.timeout) as client:
                response = await client.get(url, headers={"Accept": "application/json"})
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise NetworkError.create_request_failed_error(url, "request timed out") from e
        except httpx.HTTPStatusError as e:
            raise NetworkError.create_request_failed_error(
                url, f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise NetworkError.create_request_failed_error(url, str(e)) from e
        except ValueError as e:  # JSON decode error
            raise NetworkError.create_request_failed_error(url, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise NetworkError.create_request_failed_error(url, "expected a JSON object")
        return data
