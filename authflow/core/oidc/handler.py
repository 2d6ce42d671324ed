"""Dispatch and completion of authorization requests.

The redirect-based handler persists the pending request before sending the
user agent to the authorization server, and matches the returned ``state``
against it when the redirect target is reached again.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from authflow.core.crypto import generate_random
from authflow.core.logging import redact_sensitive
from authflow.core.oidc.configuration import AuthorizationServiceConfiguration
from authflow.core.oidc.request import (
    AuthorizationError,
    AuthorizationRequest,
    AuthorizationResponse,
    build_authorization_url,
)
from authflow.core.oidc.utils import Location, parse_query_string
from authflow.storage.backends import StorageBackend

logger = logging.getLogger(__name__)

AUTHORIZATION_REQUEST_HANDLE_KEY = "appauth_current_authorization_request"

HANDLE_LENGTH = 10

AuthorizationListener = Callable[
    [AuthorizationRequest, AuthorizationResponse | None, AuthorizationError | None], None
]


def authorization_request_key(handle: str) -> str:
    return f"{handle}_appauth_authorization_request"


def authorization_service_configuration_key(handle: str) -> str:
    return f"{handle}_appauth_authorization_service_configuration"


@dataclass
class AuthorizationRequestResult:
    """A completed request with exactly one of response or error set."""

    request: AuthorizationRequest
    response: AuthorizationResponse | None = None
    error: AuthorizationError | None = None


class AuthorizationNotifier:
    """Single-slot holder for the authorization listener."""

    def __init__(self) -> None:
        self._listener: AuthorizationListener | None = None

    @property
    def listener(self) -> AuthorizationListener | None:
        return self._listener

    def set_authorization_listener(self, listener: AuthorizationListener | None) -> None:
        """Install ``listener``, replacing any previous one."""
        self._listener = listener

    def on_authorization_complete(
        self,
        request: AuthorizationRequest,
        response: AuthorizationResponse | None,
        error: AuthorizationError | None,
    ) -> None:
        if self._listener is not None:
            self._listener(request, response, error)


class AuthorizationRequestHandler(ABC):
    """Performs authorization requests and completes them."""

    def __init__(self) -> None:
        self.notifier: AuthorizationNotifier | None = None

    def set_authorization_notifier(self, notifier: AuthorizationNotifier) -> None:
        self.notifier = notifier

    @abstractmethod
    def perform_authorization_request(
        self,
        configuration: AuthorizationServiceConfiguration,
        request: AuthorizationRequest,
    ) -> None:
        """Send the user agent to the authorization endpoint."""

    @abstractmethod
    def complete_authorization_request(self) -> AuthorizationRequestResult | None:
        """Match the environment against the pending request, if any."""

    def complete_authorization_request_if_possible(self) -> None:
        """Complete the pending request and notify the listener.

        Nothing is delivered when no request is pending or the returned
        state does not match.
        """
        result = self.complete_authorization_request()
        if result is None:
            logger.debug("No authorization request completed")
            return
        if self.notifier is not None:
            self.notifier.on_authorization_complete(result.request, result.response, result.error)


class RedirectRequestHandler(AuthorizationRequestHandler):
    """Handler that round-trips through a browser redirect.

    Args:
        store: Storage for the pending request across the redirect.
        location: Current location; ``assign`` performs the navigation.
    """

    def __init__(self, store: StorageBackend, location: Location) -> None:
        super().__init__()
        self.store = store
        self.location = location

    def perform_authorization_request(
        self,
        configuration: AuthorizationServiceConfiguration,
        request: AuthorizationRequest,
    ) -> None:
        handle = generate_random(HANDLE_LENGTH)
        self.store.set(AUTHORIZATION_REQUEST_HANDLE_KEY, handle)
        self.store.set(authorization_request_key(handle), json.dumps(request.to_dict()))
        self.store.set(
            authorization_service_configuration_key(handle),
            json.dumps(configuration.to_dict()),
        )

        url = build_authorization_url(configuration, request)
        logger.info("Dispatching authorization request to %s", redact_sensitive(url))
        self.location.assign(url)

    def complete_authorization_request(self) -> AuthorizationRequestResult | None:
        handle = self.store.get(AUTHORIZATION_REQUEST_HANDLE_KEY)
        if not handle:
            return None

        raw_request = self.store.get(authorization_request_key(handle))
        if raw_request is None:
            logger.warning("Pending request handle %s has no stored request", handle)
            self.store.remove(AUTHORIZATION_REQUEST_HANDLE_KEY)
            return None
        request = AuthorizationRequest.from_dict(json.loads(raw_request))

        params = parse_query_string(self.location.hash)
        state = params.get("state")
        if state != request.state:
            logger.warning("State mismatch on redirect (expected %s, got %s)", request.state, state)
            return None

        if "error" in params:
            result = AuthorizationRequestResult(request, error=AuthorizationError.from_params(params))
        else:
            result = AuthorizationRequestResult(request, response=AuthorizationResponse.from_params(params))

        self.store.remove(authorization_request_key(handle))
        self.store.remove(authorization_service_configuration_key(handle))
        self.store.remove(AUTHORIZATION_REQUEST_HANDLE_KEY)
        logger.info("Completed authorization request %s", handle)
        return result
