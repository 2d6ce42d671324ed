"""Authorization flow orchestration.

Ties together client settings, the service configuration, the dispatch
handler and the single authorization listener:

1. Construct from ClientSettings (flow type and store are resolved once)
2. Optionally refresh the configuration from the discovery document
3. Build an authorization request and dispatch it (a navigation)
4. On reentry at the redirect target, detect the response in the location
5. Let the handler complete the pending request and notify the listener
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum

from authflow.core.config import ClientSettings
from authflow.core.crypto import generate_random
from authflow.core.errors import ConfigurationFetchError
from authflow.core.oidc.configuration import (
    AuthorizationServiceConfiguration,
    ConfigurationFetcher,
    FlowType,
    HttpConfigurationFetcher,
)
from authflow.core.oidc.handler import (
    AuthorizationListener,
    AuthorizationNotifier,
    AuthorizationRequestHandler,
    RedirectRequestHandler,
)
from authflow.core.oidc.request import (
    AuthorizationError,
    AuthorizationRequest,
    AuthorizationResponse,
)
from authflow.core.oidc.utils import Location, UrlLocation, parse_query_string
from authflow.storage.backends import StorageBackend, create_storage_backend

logger = logging.getLogger(__name__)

STATE_LENGTH = 8
NONCE_LENGTH = 8


class FlowStatus(StrEnum):
    """Where the orchestrator is in the redirect round trip."""

    IDLE = "idle"
    REQUEST_BUILT = "request_built"
    AWAITING_RESPONSE = "awaiting_response"
    COMPLETED = "completed"
    FAILED = "failed"


class AuthorizationFlow:
    """Orchestrates an OAuth2/OIDC redirect flow for one client.

    Only the implicit flow builds requests; under the PKCE flow type
    :meth:`make_authorization_request` is a no-op returning None.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        handler: AuthorizationRequestHandler | None = None,
        fetcher: ConfigurationFetcher | None = None,
        store: StorageBackend | None = None,
        location: Location | None = None,
        on_message: Callable[[str], None] | None = None,
    ) -> None:
        """Initialize the flow.

        Args:
            settings: Client settings (demo defaults if omitted).
            handler: Dispatch collaborator. Defaults to a RedirectRequestHandler
                over ``store`` and ``location``.
            fetcher: Discovery fetcher. Defaults to HttpConfigurationFetcher.
            store: Key/value store. Defaults to the backend named by
                ``settings.user_store``; only used by the default handler.
            location: Current location of the embedding environment.
            on_message: Presentation callback for status messages.
        """
        self.settings = settings or ClientSettings()
        self.flow_type = FlowType.from_setting(self.settings.flow_type)
        self.location: Location = location if location is not None else UrlLocation()
        self.fetcher: ConfigurationFetcher = fetcher or HttpConfigurationFetcher()
        self._on_message = on_message

        self.configuration = AuthorizationServiceConfiguration(
            oauth_flow_type=self.flow_type,
            authorization_endpoint=self.settings.authorize_url,
            token_endpoint=self.settings.token_url,
            revocation_endpoint=self.settings.revoke_url,
            end_session_endpoint=self.settings.logout_url,
            userinfo_endpoint=self.settings.user_info_url,
        )

        self.notifier = AuthorizationNotifier()
        if handler is None:
            self.store = store or create_storage_backend(self.settings.user_store)
            handler = RedirectRequestHandler(self.store, self.location)
        else:
            self.store = store
        self.authorization_handler = handler
        self.status = FlowStatus.IDLE

    def get_configuration(self) -> AuthorizationServiceConfiguration:
        return self.configuration

    def set_listener(self, callback: AuthorizationListener | None = None) -> None:
        """Register the listener for completed authorization requests.

        Replaces any previously registered listener.
        """
        self.authorization_handler.set_authorization_notifier(self.notifier)

        def listener(
            request: AuthorizationRequest,
            response: AuthorizationResponse | None,
            error: AuthorizationError | None,
        ) -> None:
            logger.info("Authorization request complete: state=%s error=%s", request.state, error)
            self.status = FlowStatus.FAILED if error is not None else FlowStatus.COMPLETED
            if response is not None and response.code:
                self.show_message(f"Authorization Code {response.code}")
            if callback is not None:
                callback(request, response, error)

        self.notifier.set_authorization_listener(listener)

    async def fetch_service_configuration(self, discovery_uri: str | None = None) -> None:
        """Refresh the configuration from the discovery document.

        On success the configuration is replaced and tagged with this flow's
        type. On failure the previous configuration is kept and the error is
        reported through :meth:`show_message`; there is no retry.
        """
        uri = discovery_uri or self.settings.discovery_uri
        try:
            fetched = await self.fetcher.fetch_from_issuer(uri)
        except ConfigurationFetchError as e:
            logger.error("Failed to fetch service configuration from %s: %s", uri, e)
            self.status = FlowStatus.FAILED
            self.show_message(f"Something bad happened {e}")
            return

        logger.info("Fetched service configuration from %s", uri)
        self.configuration = fetched.with_flow_type(self.flow_type)
        self.show_message("Completed fetching configuration")

    def make_authorization_request(
        self,
        state: str | None = None,
        nonce: str | None = None,
    ) -> AuthorizationRequest | None:
        """Build an authorization request and hand it to the handler.

        Args:
            state: Anti-CSRF state (generated if omitted).
            nonce: ID token nonce for the implicit flow (generated if omitted).

        Returns:
            The dispatched request, or None when the configured flow type
            does not build requests here.
        """
        if not state:
            state = self.generate_state()

        flow_type = self.configuration.oauth_flow_type
        if flow_type != FlowType.IMPLICIT:
            logger.info("No authorization request built for flow type %s", flow_type)
            return None

        if not nonce:
            nonce = self.generate_nonce()

        request = AuthorizationRequest(
            client_id=self.settings.client_id,
            redirect_uri=self.settings.redirect_uri,
            scope=self.settings.scope,
            response_type=AuthorizationRequest.RESPONSE_TYPE_ID_TOKEN,
            state=state,
            extras={"prompt": "consent", "access_type": "online", "nonce": nonce},
        )
        self.status = FlowStatus.REQUEST_BUILT
        self.authorization_handler.perform_authorization_request(self.configuration, request)
        self.status = FlowStatus.AWAITING_RESPONSE
        return request

    def check_for_authorization_response(self) -> None:
        """Complete the pending request if the location carries a response.

        For the implicit flow a response is present when the fragment holds
        an ``id_token``. Without one this does nothing.
        """
        is_complete = False
        if self.configuration.oauth_flow_type == FlowType.IMPLICIT:
            params = self.parse_query_string(self.location, split_by_hash=True)
            is_complete = "id_token" in params

        if is_complete:
            self.authorization_handler.complete_authorization_request_if_possible()

    def show_message(self, message: str) -> None:
        if self._on_message is not None:
            self._on_message(message)
        else:
            logger.info(message)

    @staticmethod
    def generate_state() -> str:
        return generate_random(STATE_LENGTH)

    @staticmethod
    def generate_nonce() -> str:
        return generate_random(NONCE_LENGTH)

    @staticmethod
    def parse_query_string(location: Location, split_by_hash: bool) -> dict[str, str]:
        """Parse the fragment (``split_by_hash``) or query of ``location``."""
        return parse_query_string(location.hash if split_by_hash else location.search)
