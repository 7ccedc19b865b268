"""Core building blocks: errors, constants, configuration and protocol logging."""

from implicit_auth.core.errors import (
    AuthError,
    AuthorityDiscoveryError,
    ClientAuthError,
    ClientConfigurationError,
    InteractionRequiredAuthError,
    NetworkError,
    ServerError,
)
from implicit_auth.core.logging import (
    HTTPExchange,
    LoggingTransport,
    LogLevel,
    ProtocolLog,
    ProtocolLogger,
    configure_logging,
    get_protocol_logger,
    redact_sensitive,
    set_protocol_logger,
)

__all__ = [
    # Errors
    "AuthError",
    "AuthorityDiscoveryError",
    "ClientAuthError",
    "ClientConfigurationError",
    "InteractionRequiredAuthError",
    "NetworkError",
    "ServerError",
    # Logging
    "HTTPExchange",
    "LoggingTransport",
    "LogLevel",
    "ProtocolLog",
    "ProtocolLogger",
    "configure_logging",
    "get_protocol_logger",
    "redact_sensitive",
    "set_protocol_logger",
]
