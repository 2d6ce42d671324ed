"""Core authorization flow implementation."""

from authflow.core.errors import AuthFlowError, ConfigurationFetchError, InsecureRandomError
from authflow.core.logging import (
    AsyncLoggingClient,
    HTTPExchange,
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
    "AuthFlowError",
    "ConfigurationFetchError",
    "InsecureRandomError",
    # Logging
    "AsyncLoggingClient",
    "HTTPExchange",
    "LogLevel",
    "ProtocolLog",
    "ProtocolLogger",
    "configure_logging",
    "get_protocol_logger",
    "redact_sensitive",
    "set_protocol_logger",
]
