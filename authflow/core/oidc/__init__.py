"""OAuth2/OIDC redirect flow orchestration."""

from authflow.core.oidc.configuration import (
    AuthorizationServiceConfiguration,
    ConfigurationFetcher,
    FlowType,
    HttpConfigurationFetcher,
    build_discovery_url,
)
from authflow.core.oidc.flows import AuthorizationFlow, FlowStatus
from authflow.core.oidc.handler import (
    AUTHORIZATION_REQUEST_HANDLE_KEY,
    AuthorizationListener,
    AuthorizationNotifier,
    AuthorizationRequestHandler,
    AuthorizationRequestResult,
    RedirectRequestHandler,
)
from authflow.core.oidc.request import (
    AuthorizationError,
    AuthorizationRequest,
    AuthorizationResponse,
    build_authorization_url,
)
from authflow.core.oidc.utils import Location, UrlLocation, parse_query_string

__all__ = [
    # Configuration
    "AuthorizationServiceConfiguration",
    "ConfigurationFetcher",
    "FlowType",
    "HttpConfigurationFetcher",
    "build_discovery_url",
    # Flows
    "AuthorizationFlow",
    "FlowStatus",
    # Handler
    "AUTHORIZATION_REQUEST_HANDLE_KEY",
    "AuthorizationListener",
    "AuthorizationNotifier",
    "AuthorizationRequestHandler",
    "AuthorizationRequestResult",
    "RedirectRequestHandler",
    # Messages
    "AuthorizationError",
    "AuthorizationRequest",
    "AuthorizationResponse",
    "build_authorization_url",
    # Utils
    "Location",
    "UrlLocation",
    "parse_query_string",
]
