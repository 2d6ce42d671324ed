"""Authorization request and response messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

from authflow.core.oidc.configuration import AuthorizationServiceConfiguration


@dataclass
class AuthorizationRequest:
    """An outbound OAuth2 authorization request.

    A new instance is built for every attempt; ``state`` is matched against
    the value returned on the redirect.
    """

    RESPONSE_TYPE_ID_TOKEN = "id_token"
    RESPONSE_TYPE_CODE = "code"

    client_id: str
    redirect_uri: str
    scope: str
    response_type: str
    state: str
    extras: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "response_type": self.response_type,
            "state": self.state,
            "extras": dict(self.extras),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthorizationRequest:
        return cls(
            client_id=data["client_id"],
            redirect_uri=data["redirect_uri"],
            scope=data["scope"],
            response_type=data["response_type"],
            state=data["state"],
            extras=dict(data.get("extras") or {}),
        )


@dataclass
class AuthorizationResponse:
    """Successful authorization response read from the redirect target."""

    state: str
    code: str | None = None
    id_token: str | None = None
    access_token: str | None = None
    token_type: str | None = None
    expires_in: str | None = None
    scope: str | None = None

    @classmethod
    def from_params(cls, params: dict[str, str]) -> AuthorizationResponse:
        return cls(
            state=params.get("state", ""),
            code=params.get("code"),
            id_token=params.get("id_token"),
            access_token=params.get("access_token"),
            token_type=params.get("token_type"),
            expires_in=params.get("expires_in"),
            scope=params.get("scope"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "code": self.code,
            "id_token": self.id_token,
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
            "scope": self.scope,
        }


@dataclass
class AuthorizationError:
    """Error returned by the authorization server on the redirect.

    Delivered to the listener as a value, never raised.
    """

    error: str
    error_description: str | None = None
    error_uri: str | None = None
    state: str | None = None

    @classmethod
    def from_params(cls, params: dict[str, str]) -> AuthorizationError:
        return cls(
            error=params["error"],
            error_description=params.get("error_description"),
            error_uri=params.get("error_uri"),
            state=params.get("state"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error,
            "error_description": self.error_description,
            "error_uri": self.error_uri,
            "state": self.state,
        }

    def __str__(self) -> str:
        if self.error_description:
            return f"{self.error}: {self.error_description}"
        return self.error


def build_authorization_url(
    configuration: AuthorizationServiceConfiguration,
    request: AuthorizationRequest,
) -> str:
    """Build the URL the user agent is sent to for ``request``."""
    params: dict[str, str] = {
        "redirect_uri": request.redirect_uri,
        "client_id": request.client_id,
        "response_type": request.response_type,
        "scope": request.scope,
        "state": request.state,
    }
    params.update(request.extras)
    return f"{configuration.authorization_endpoint}?{urlencode(params)}"
