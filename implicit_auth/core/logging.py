"""Protocol logging for the implicit flow.

Records the HTTP exchanges made while resolving authorities, and keeps
token material out of log output.

Log levels:
- ERROR: Only log errors
- INFO: Log flow milestones (login URL built, response handled)
- DEBUG: Log HTTP details (headers, status codes, timing)
- TRACE: Log full response bodies including sensitive data (requires explicit enable)
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import IntEnum
from typing import Any

import httpx

# Custom log level for TRACE (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Package logger; module loggers propagate to it
package_logger = logging.getLogger("implicit_auth")

logger = logging.getLogger("implicit_auth.protocol")


class LogLevel(IntEnum):
    """Protocol logging levels."""

    ERROR = logging.ERROR
    INFO = logging.INFO
    DEBUG = logging.DEBUG
    TRACE = TRACE


# Fragment and query values are matched up to the next '&' or '#'
SENSITIVE_PATTERNS = [
    (re.compile(r"(access_token=)[^&#\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(id_token=)[^&#\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(client_info=)[^&#\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(nonce=)[^&#\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(client_secret=)[^&#\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(Authorization:\s*Bearer\s+)[^\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"^(Bearer\s+)[^\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(Cookie:\s*)[^\r\n]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(Set-Cookie:\s*)[^\r\n]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r'"(access_token)"\s*:\s*"[^"]+"', re.IGNORECASE), r'"\1": "[REDACTED]"'),
    (re.compile(r'"(id_token)"\s*:\s*"[^"]+"', re.IGNORECASE), r'"\1": "[REDACTED]"'),
    (re.compile(r'"(client_secret)"\s*:\s*"[^"]+"', re.IGNORECASE), r'"\1": "[REDACTED]"'),
]

_MAX_BODY_LOG = 2000


def redact_sensitive(text: str) -> str:
    """Redact token material from a URL, fragment, header or body.

    Args:
        text: Text that may contain sensitive data.

    Returns:
        Text with sensitive values replaced by ``[REDACTED]``.
    """
    result = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


@dataclass
class HTTPExchange:
    """A single discovery request and its response."""

    id: str
    timestamp: datetime
    method: str
    url: str
    request_headers: dict[str, str]
    response_status: int | None = None
    response_headers: dict[str, str] = field(default_factory=dict)
    response_body: str | None = None
    duration_ms: float | None = None
    error: str | None = None

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        """Convert to dictionary for serialization.

        Args:
            include_sensitive: If False, token material is redacted.
        """

        def scrub(value: str) -> str:
            return value if include_sensitive else redact_sensitive(value)

        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "method": self.method,
            "url": scrub(self.url),
            "request_headers": {k: scrub(v) for k, v in self.request_headers.items()},
            "response_status": self.response_status,
            "response_headers": {k: scrub(v) for k, v in self.response_headers.items()},
            "response_body": scrub(self.response_body) if self.response_body is not None else None,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }

    def format_log(self, level: LogLevel, include_sensitive: bool = False) -> str:
        """Format the exchange for logging.

        Args:
            level: Log level determines how much detail to include.
            include_sensitive: If True, include raw sensitive data.

        Returns:
            Formatted log string.
        """
        data = self.to_dict(include_sensitive)
        lines = [f"HTTP {self.method} {data['url']} -> {self.response_status or 'ERROR'}"]

        if self.duration_ms is not None:
            lines.append(f"  Duration: {self.duration_ms:.1f}ms")
        if self.error:
            lines.append(f"  Error: {self.error}")

        if level <= LogLevel.DEBUG:
            lines.append("  Request Headers:")
            lines.extend(f"    {name}: {value}" for name, value in data["request_headers"].items())
            if data["response_headers"]:
                lines.append("  Response Headers:")
                lines.extend(f"    {name}: {value}" for name, value in data["response_headers"].items())

        if level <= LogLevel.TRACE and data["response_body"]:
            body = data["response_body"]
            lines.append("  Response Body:")
            lines.append(f"    {body[:_MAX_BODY_LOG]}{'...' if len(body) > _MAX_BODY_LOG else ''}")

        return "\n".join(lines)


@dataclass
class ProtocolLog:
    """Collects the exchanges made while resolving one authority."""

    flow_id: str
    flow_type: str
    exchanges: list[HTTPExchange] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    def add_exchange(self, exchange: HTTPExchange) -> None:
        self.exchanges.append(exchange)

    def complete(self) -> None:
        self.completed_at = datetime.now(UTC)

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        return {
            "flow_id": self.flow_id,
            "flow_type": self.flow_type,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "exchanges": [e.to_dict(include_sensitive) for e in self.exchanges],
            "exchange_count": len(self.exchanges),
        }


class ProtocolLogger:
    """Configurable protocol logger.

    Manages log level settings and the httpx transport hook that
    captures discovery traffic.
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.INFO,
        trace_enabled: bool = False,
    ) -> None:
        """Initialize the protocol logger.

        Args:
            level: Minimum log level.
            trace_enabled: Whether TRACE level is enabled (for sensitive data).
        """
        self._level = level
        self._trace_enabled = trace_enabled
        self._current_log: ProtocolLog | None = None

    @property
    def level(self) -> LogLevel:
        return self._level

    @level.setter
    def level(self, value: LogLevel) -> None:
        self._level = value

    @property
    def trace_enabled(self) -> bool:
        return self._trace_enabled

    @trace_enabled.setter
    def trace_enabled(self, value: bool) -> None:
        self._trace_enabled = value

    @property
    def effective_level(self) -> LogLevel:
        """Get effective log level (TRACE only if explicitly enabled)."""
        if self._level == LogLevel.TRACE and not self._trace_enabled:
            return LogLevel.DEBUG
        return self._level

    @property
    def current_log(self) -> ProtocolLog | None:
        return self._current_log

    def start_flow(self, flow_id: str, flow_type: str) -> ProtocolLog:
        """Start collecting exchanges for a flow.

        Args:
            flow_id: Unique identifier for the flow.
            flow_type: Type of flow (e.g., "authority_discovery").

        Returns:
            ProtocolLog for the flow.
        """
        self._current_log = ProtocolLog(flow_id=flow_id, flow_type=flow_type)
        logger.info("Started protocol logging for %s flow: %s", flow_type, flow_id)
        return self._current_log

    def end_flow(self) -> ProtocolLog | None:
        """End the current flow and return its log, or None if no flow was active."""
        if self._current_log is None:
            return None
        log = self._current_log
        log.complete()
        self._current_log = None
        logger.info(
            "Completed protocol logging for %s flow: %s (%d exchanges)",
            log.flow_type,
            log.flow_id,
            len(log.exchanges),
        )
        return log

    def log_exchange(self, exchange: HTTPExchange) -> None:
        """Record an exchange and emit it at the effective level."""
        if self._current_log:
            self._current_log.add_exchange(exchange)

        effective = self.effective_level
        include_sensitive = self._trace_enabled and self._level <= LogLevel.TRACE

        if effective <= LogLevel.DEBUG:
            logger.debug(exchange.format_log(effective, include_sensitive))
        elif effective <= LogLevel.INFO:
            logger.info(exchange.format_log(effective, include_sensitive))

        if exchange.error:
            logger.error("HTTP error: %s %s: %s", exchange.method, redact_sensitive(exchange.url), exchange.error)

    def create_transport(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        verify: bool = True,
    ) -> LoggingTransport:
        """Create an async httpx transport that logs requests and responses.

        Args:
            transport: Transport to wrap. Defaults to ``httpx.AsyncHTTPTransport``.
            verify: TLS verification for the default transport.
        """
        return LoggingTransport(self, transport=transport, verify=verify)


class LoggingTransport(httpx.AsyncBaseTransport):
    """Async httpx transport that logs every exchange."""

    def __init__(
        self,
        protocol_logger: ProtocolLogger,
        transport: httpx.AsyncBaseTransport | None = None,
        verify: bool = True,
    ) -> None:
        self._logger = protocol_logger
        # An injected transport belongs to the caller and outlives this wrapper
        self._owns_transport = transport is None
        self._transport = transport or httpx.AsyncHTTPTransport(verify=verify)
        self._exchange_counter = 0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Forward the request to the wrapped transport and log the exchange."""
        self._exchange_counter += 1
        start_time = time.perf_counter()

        exchange = HTTPExchange(
            id=f"http_{self._exchange_counter:04d}",
            timestamp=datetime.now(UTC),
            method=request.method,
            url=str(request.url),
            request_headers=dict(request.headers),
        )

        try:
            response = await self._transport.handle_async_request(request)
        except Exception as e:
            exchange.duration_ms = (time.perf_counter() - start_time) * 1000
            exchange.error = str(e)
            self._logger.log_exchange(exchange)
            raise

        # Reading here keeps the body available to the caller afterwards
        body = await response.aread()
        exchange.duration_ms = (time.perf_counter() - start_time) * 1000
        exchange.response_status = response.status_code
        exchange.response_headers = dict(response.headers)
        exchange.response_body = body.decode("utf-8", errors="replace")

        self._logger.log_exchange(exchange)
        return response

    async def aclose(self) -> None:
        if self._owns_transport:
            await self._transport.aclose()


# Global protocol logger instance
_global_logger: ProtocolLogger | None = None


def get_protocol_logger() -> ProtocolLogger:
    """Get the global protocol logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = ProtocolLogger()
    return _global_logger


def set_protocol_logger(logger_instance: ProtocolLogger) -> None:
    """Set the global protocol logger instance."""
    global _global_logger
    _global_logger = logger_instance


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    trace_enabled: bool = False,
    log_file: str | None = None,
) -> ProtocolLogger:
    """Configure package logging and the global protocol logger.

    Args:
        level: Log level (ERROR, INFO, DEBUG, TRACE) or string name.
        trace_enabled: Whether to enable TRACE level (includes sensitive data).
        log_file: Optional file path to write logs to.

    Returns:
        Configured ProtocolLogger.
    """
    if isinstance(level, str):
        level = LogLevel.__members__.get(level.upper(), LogLevel.INFO)

    package_logger.setLevel(level)
    package_logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    protocol_logger = ProtocolLogger(level=level, trace_enabled=trace_enabled)
    set_protocol_logger(protocol_logger)

    if trace_enabled:
        package_logger.warning("TRACE logging enabled - tokens and client info will be logged!")

    return protocol_logger
