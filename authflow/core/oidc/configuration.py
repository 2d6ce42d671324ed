"""Authorization service configuration and OIDC discovery.

The configuration is an immutable value: a successful discovery fetch
produces a new instance that replaces the old one wholesale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Protocol

import httpx

from authflow.core.crypto import generate_random
from authflow.core.errors import ConfigurationFetchError
from authflow.core.logging import AsyncLoggingClient, ProtocolLog, ProtocolLogger, get_protocol_logger

logger = logging.getLogger(__name__)

WELL_KNOWN_PATH = ".well-known/openid-configuration"

DISCOVERY_LOG_ID_LENGTH = 8


class FlowType(StrEnum):
    """OAuth flow variant run by the orchestrator."""

    IMPLICIT = "implicit"
    AUTHORIZATION_CODE_PKCE = "pkce"

    @classmethod
    def from_setting(cls, value: str | None) -> FlowType:
        """Map a client setting string to a flow type.

        Only ``"PKCE"`` selects the code flow; every other value, including
        unknown ones, selects the implicit flow.
        """
        if value == "PKCE":
            return cls.AUTHORIZATION_CODE_PKCE
        return cls.IMPLICIT


@dataclass(frozen=True)
class AuthorizationServiceConfiguration:
    """Endpoints of an authorization server tagged with the flow type."""

    oauth_flow_type: FlowType = FlowType.IMPLICIT
    authorization_endpoint: str = ""
    token_endpoint: str = ""
    revocation_endpoint: str = ""
    end_session_endpoint: str = ""
    userinfo_endpoint: str = ""

    @property
    def is_resolved(self) -> bool:
        """Whether an authorization endpoint is known."""
        return bool(self.authorization_endpoint)

    def with_flow_type(self, flow_type: FlowType) -> AuthorizationServiceConfiguration:
        return replace(self, oauth_flow_type=flow_type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "authorization_endpoint": self.authorization_endpoint,
            "token_endpoint": self.token_endpoint,
            "revocation_endpoint": self.revocation_endpoint,
            "end_session_endpoint": self.end_session_endpoint,
            "userinfo_endpoint": self.userinfo_endpoint,
            "oauth_flow_type": str(self.oauth_flow_type),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthorizationServiceConfiguration:
        """Build from a discovery document or a ``to_dict`` payload.

        Missing endpoints become empty strings and an unknown or missing
        ``oauth_flow_type`` becomes IMPLICIT.
        """
        try:
            flow_type = FlowType(data.get("oauth_flow_type"))
        except ValueError:
            flow_type = FlowType.IMPLICIT
        return cls(
            oauth_flow_type=flow_type,
            authorization_endpoint=data.get("authorization_endpoint") or "",
            token_endpoint=data.get("token_endpoint") or "",
            revocation_endpoint=data.get("revocation_endpoint") or "",
            end_session_endpoint=data.get("end_session_endpoint") or "",
            userinfo_endpoint=data.get("userinfo_endpoint") or "",
        )


class ConfigurationFetcher(Protocol):
    """Source of authorization service configuration."""

    async def fetch_from_issuer(self, discovery_uri: str) -> AuthorizationServiceConfiguration: ...


def build_discovery_url(issuer_or_url: str) -> str:
    """Append the well-known path to an issuer unless it is already there."""
    discovery_url = issuer_or_url.rstrip("/")
    if not discovery_url.endswith(WELL_KNOWN_PATH):
        discovery_url = f"{discovery_url}/{WELL_KNOWN_PATH}"
    return discovery_url


class HttpConfigurationFetcher:
    """Fetches the OIDC discovery document over HTTP."""

    def __init__(
        self,
        timeout: float = 10.0,
        verify_ssl: bool = True,
        protocol_logger: ProtocolLogger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            timeout: Request timeout in seconds.
            verify_ssl: Whether to verify TLS certificates.
            protocol_logger: Logger for the HTTP exchange (global one by default).
            transport: Optional HTTPX transport, mainly for tests.
        """
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.protocol_logger = protocol_logger or get_protocol_logger()
        self._transport = transport
        self.last_log: ProtocolLog | None = None

    async def fetch_from_issuer(self, discovery_uri: str) -> AuthorizationServiceConfiguration:
        """Fetch and parse the discovery document for an issuer.

        Raises:
            ConfigurationFetchError: On a malformed URL, timeout, transport
                failure, non-2xx status or a body that is not a JSON object.
        """
        discovery_url = build_discovery_url(discovery_uri)
        logger.debug("Fetching OIDC discovery from %s", discovery_url)

        # One log per fetch; the logger's shared active log is left alone
        protocol_log = ProtocolLog(
            flow_id=f"oidc_discovery_{generate_random(DISCOVERY_LOG_ID_LENGTH)}",
            flow_type="oidc_discovery_fetch",
        )
        self.last_log = protocol_log
        try:
            async with AsyncLoggingClient(
                protocol_logger=self.protocol_logger,
                protocol_log=protocol_log,
                timeout=self.timeout,
                verify=self.verify_ssl,
                transport=self._transport,
            ) as client:
                response = await client.get(discovery_url, headers={"Accept": "application/json"})
                response.raise_for_status()
                document = response.json()
        except httpx.TimeoutException as e:
            raise ConfigurationFetchError(f"Timeout fetching OIDC configuration from {discovery_url}") from e
        except httpx.HTTPStatusError as e:
            raise ConfigurationFetchError(
                f"HTTP {e.response.status_code} fetching OIDC config: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise ConfigurationFetchError(f"Request error fetching OIDC config: {e}") from e
        except httpx.InvalidURL as e:
            raise ConfigurationFetchError(f"Invalid discovery URL {discovery_url}: {e}") from e
        except ValueError as e:  # JSON decode error
            raise ConfigurationFetchError(f"Invalid JSON in OIDC configuration: {e}") from e
        finally:
            protocol_log.complete()
            logger.debug(
                "Discovery fetch %s finished with %d exchanges",
                protocol_log.flow_id,
                len(protocol_log.exchanges),
            )

        if not isinstance(document, dict):
            raise ConfigurationFetchError("OIDC configuration is not a JSON object")

        return AuthorizationServiceConfiguration.from_dict(document)
