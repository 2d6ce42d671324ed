"""Protocol logging for authorization flows.

Records the HTTP traffic of discovery fetches and the milestones of the
redirect flow, with sensitive values redacted unless TRACE is explicitly
enabled.

Log levels:
- ERROR: Only log errors
- INFO: Log flow milestones (request dispatched, response completed)
- DEBUG: Log HTTP details (headers, status codes, timing)
- TRACE: Log full bodies and unredacted tokens (requires explicit enable)
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

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

logger = logging.getLogger("authflow.protocol")


class LogLevel(IntEnum):
    """Protocol logging levels."""

    ERROR = logging.ERROR
    INFO = logging.INFO
    DEBUG = logging.DEBUG
    TRACE = TRACE


# Values that travel in redirect URLs, discovery bodies and headers
_SENSITIVE_PARAMS = ("client_secret", "code", "access_token", "refresh_token", "id_token")

SENSITIVE_PATTERNS = [
    *[
        (re.compile(rf"(\b{name}=)[^&#\s]+", re.IGNORECASE), r"\1[REDACTED]")
        for name in _SENSITIVE_PARAMS
    ],
    *[
        (re.compile(rf'"({name})"\s*:\s*"[^"]+"', re.IGNORECASE), r'"\1": "[REDACTED]"')
        for name in _SENSITIVE_PARAMS
    ],
    (re.compile(r"^(Bearer\s+)\S+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"^(Basic\s+)\S+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(Cookie:\s*)[^\r\n]+", re.IGNORECASE), r"\1[REDACTED]"),
]

_SENSITIVE_HEADERS = {"authorization", "cookie", "set-cookie"}


def redact_sensitive(text: str) -> str:
    """Redact tokens and secrets from a URL, header value or body.

    Args:
        text: Text that may contain sensitive data.

    Returns:
        Text with sensitive values replaced by ``[REDACTED]``.
    """
    result = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    return {
        name: "[REDACTED]" if name.lower() in _SENSITIVE_HEADERS else redact_sensitive(value)
        for name, value in headers.items()
    }


@dataclass
class HTTPExchange:
    """A single HTTP request/response pair seen by the logging client."""

    id: str
    timestamp: datetime
    method: str
    url: str
    request_headers: dict[str, str] = field(default_factory=dict)
    response_status: int | None = None
    response_headers: dict[str, str] = field(default_factory=dict)
    response_body: str | None = None
    duration_ms: float | None = None
    error: str | None = None
    redirects: list[str] = field(default_factory=list)

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary.

        Args:
            include_sensitive: If False, URLs, headers and bodies are redacted.
        """
        def scrub(value: str | None) -> str | None:
            if value is None or include_sensitive:
                return value
            return redact_sensitive(value)

        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "method": self.method,
            "url": scrub(self.url),
            "request_headers": dict(self.request_headers)
            if include_sensitive
            else _redact_headers(self.request_headers),
            "response_status": self.response_status,
            "response_headers": dict(self.response_headers)
            if include_sensitive
            else _redact_headers(self.response_headers),
            "response_body": scrub(self.response_body),
            "duration_ms": self.duration_ms,
            "error": self.error,
            "redirects": [scrub(url) for url in self.redirects],
        }

    def format_log(self, level: LogLevel, include_sensitive: bool = False) -> str:
        """Render the exchange as log text with detail matching ``level``."""
        data = self.to_dict(include_sensitive)
        status = self.response_status or "ERROR"
        lines = [f"HTTP {self.method} {data['url']} -> {status}"]

        if self.duration_ms is not None:
            lines.append(f"  Duration: {self.duration_ms:.1f}ms")
        if self.error:
            lines.append(f"  Error: {self.error}")

        if level <= LogLevel.DEBUG:
            for title, headers in (
                ("Request Headers", data["request_headers"]),
                ("Response Headers", data["response_headers"]),
            ):
                if headers:
                    lines.append(f"  {title}:")
                    lines.extend(f"    {name}: {value}" for name, value in headers.items())
            if data["redirects"]:
                lines.append("  Redirects:")
                lines.extend(f"    -> {url}" for url in data["redirects"])

        if level <= LogLevel.TRACE and data["response_body"]:
            body = data["response_body"]
            lines.append("  Response Body:")
            lines.append(f"    {body[:2000]}{'...' if len(body) > 2000 else ''}")

        return "\n".join(lines)


@dataclass
class ProtocolLog:
    """Exchanges collected while one flow step was active."""

    flow_id: str
    flow_type: str
    exchanges: list[HTTPExchange] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    def complete(self) -> None:
        """Mark the log as complete."""
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
    """Level-aware sink for HTTP exchanges.

    Exchanges are appended to the active ProtocolLog (if any) and written
    to the ``authflow.protocol`` logger.
    """

    def __init__(self, level: LogLevel = LogLevel.INFO, trace_enabled: bool = False) -> None:
        self.level = level
        self.trace_enabled = trace_enabled
        self._current_log: ProtocolLog | None = None
        self._counter = 0

    @property
    def effective_level(self) -> LogLevel:
        """TRACE only takes effect when explicitly enabled."""
        if self.level == LogLevel.TRACE and not self.trace_enabled:
            return LogLevel.DEBUG
        return self.level

    @property
    def current_log(self) -> ProtocolLog | None:
        return self._current_log

    def start_flow(self, flow_id: str, flow_type: str) -> ProtocolLog:
        """Begin collecting exchanges for a flow step."""
        self._current_log = ProtocolLog(flow_id=flow_id, flow_type=flow_type)
        logger.info("Started protocol logging for %s: %s", flow_type, flow_id)
        return self._current_log

    def end_flow(self) -> ProtocolLog | None:
        """Finish the active log and return it, if there is one."""
        log = self._current_log
        if log is None:
            return None
        log.complete()
        self._current_log = None
        logger.info(
            "Completed protocol logging for %s: %s (%d exchanges)",
            log.flow_type,
            log.flow_id,
            len(log.exchanges),
        )
        return log

    def next_exchange_id(self) -> str:
        self._counter += 1
        return f"http_{self._counter:04d}"

    def log_exchange(self, exchange: HTTPExchange, protocol_log: ProtocolLog | None = None) -> None:
        """Record an exchange and emit it at the configured detail.

        The exchange is appended to ``protocol_log`` when given, otherwise to
        the active log started with :meth:`start_flow`.
        """
        target = protocol_log if protocol_log is not None else self._current_log
        if target is not None:
            target.exchanges.append(exchange)

        effective = self.effective_level
        include_sensitive = self.trace_enabled and self.level <= LogLevel.TRACE

        if effective <= LogLevel.DEBUG:
            logger.debug(exchange.format_log(effective, include_sensitive))
        elif effective <= LogLevel.INFO:
            logger.info(exchange.format_log(effective, include_sensitive))

        if exchange.error:
            logger.error(
                "HTTP error: %s %s: %s", exchange.method, redact_sensitive(exchange.url), exchange.error
            )


class AsyncLoggingClient(httpx.AsyncClient):
    """Async HTTPX client that reports every request to a ProtocolLogger.

    Passing ``protocol_log`` collects this client's exchanges in that log
    instead of the logger's shared active log, so concurrent clients do not
    interleave.
    """

    def __init__(
        self,
        protocol_logger: ProtocolLogger | None = None,
        protocol_log: ProtocolLog | None = None,
        **kwargs: Any,
    ) -> None:
        self._protocol_logger = protocol_logger or get_protocol_logger()
        self._protocol_log = protocol_log
        kwargs.setdefault("follow_redirects", True)
        super().__init__(**kwargs)

    @property
    def protocol_logger(self) -> ProtocolLogger:
        return self._protocol_logger

    async def request(self, method: str, url: httpx.URL | str, **kwargs: Any) -> httpx.Response:
        exchange = HTTPExchange(
            id=self._protocol_logger.next_exchange_id(),
            timestamp=datetime.now(UTC),
            method=method.upper(),
            url=str(url),
            request_headers=dict(self.headers),
        )
        start = time.perf_counter()
        try:
            response = await super().request(method, url, **kwargs)
        except httpx.HTTPError as e:
            exchange.duration_ms = (time.perf_counter() - start) * 1000
            exchange.error = str(e) or type(e).__name__
            self._protocol_logger.log_exchange(exchange, self._protocol_log)
            raise

        exchange.duration_ms = (time.perf_counter() - start) * 1000
        exchange.url = str(response.request.url)
        exchange.request_headers = dict(response.request.headers)
        exchange.response_status = response.status_code
        exchange.response_headers = dict(response.headers)
        exchange.redirects = [str(r.headers.get("location", r.url)) for r in response.history]
        try:
            exchange.response_body = response.text
        except httpx.ResponseNotRead:
            exchange.response_body = "<streamed body>"
        self._protocol_logger.log_exchange(exchange, self._protocol_log)
        return response


_global_logger: ProtocolLogger | None = None


def get_protocol_logger() -> ProtocolLogger:
    """Get the process-wide protocol logger, creating it on first use."""
    global _global_logger
    if _global_logger is None:
        _global_logger = ProtocolLogger()
    return _global_logger


def set_protocol_logger(logger_instance: ProtocolLogger) -> None:
    """Replace the process-wide protocol logger."""
    global _global_logger
    _global_logger = logger_instance


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    trace_enabled: bool = False,
    log_file: str | None = None,
) -> ProtocolLogger:
    """Configure the ``authflow`` logger hierarchy and protocol logger.

    Args:
        level: Log level (ERROR, INFO, DEBUG, TRACE) or its name.
        trace_enabled: Whether TRACE may include unredacted tokens.
        log_file: Optional file to write logs to in addition to stderr.

    Returns:
        The newly installed ProtocolLogger.
    """
    if isinstance(level, str):
        level = LogLevel.__members__.get(level.upper(), LogLevel.INFO)

    root = logging.getLogger("authflow")
    root.setLevel(level)
    root.handlers.clear()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    protocol_logger = ProtocolLogger(level=level, trace_enabled=trace_enabled)
    set_protocol_logger(protocol_logger)

    if trace_enabled:
        root.warning("TRACE logging enabled - tokens and secrets will be logged!")

    return protocol_logger
