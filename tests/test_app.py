"""Tests for the Flask application."""

from urllib.parse import parse_qs, urlsplit

from flask import Flask
from flask.testing import FlaskClient

from authflow.app import create_app
from authflow.core.config import AppConfig, ClientSettings
from authflow.core.errors import ConfigurationFetchError
from authflow.core.oidc import AuthorizationServiceConfiguration
from authflow.storage import MEMORY_URL
from authflow.web.routes import CONFIGURATION_KEY, FETCHER_KEY


class StaticFetcher:
    """Discovery fetcher that never touches the network."""

    def __init__(self, configuration=None, error=None) -> None:
        self.configuration = configuration
        self.error = error

    async def fetch_from_issuer(self, discovery_uri: str) -> AuthorizationServiceConfiguration:
        if self.error is not None:
            raise self.error
        return self.configuration


def _login_state(client: FlaskClient) -> str:
    response = client.post("/login")
    assert response.status_code == 302
    params = parse_qs(urlsplit(response.headers["Location"]).query)
    return params["state"][0]


def test_health_endpoint(client: FlaskClient) -> None:
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json == {"status": "healthy"}


def test_index_page(client: FlaskClient) -> None:
    """Test the index page loads."""
    response = client.get("/")
    assert response.status_code == 200
    assert b"AuthFlow" in response.data
    assert b"test-client" in response.data


def test_login_redirects_to_authorize(client: FlaskClient) -> None:
    """Test login sends the user agent to the authorization endpoint."""
    response = client.post("/login")

    assert response.status_code == 302
    location = urlsplit(response.headers["Location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == "https://idp.example.com/authorize"
    params = {k: v[0] for k, v in parse_qs(location.query).items()}
    assert params["client_id"] == "test-client"
    assert params["response_type"] == "id_token"
    assert params["prompt"] == "consent"
    assert len(params["state"]) == 8
    assert len(params["nonce"]) == 8


def test_login_pkce_not_supported() -> None:
    """Test login under the PKCE flow type builds no request."""
    app = create_app(
        {"TESTING": True, "SECRET_KEY": "test", "DATABASE_URL": MEMORY_URL},
        app_config=AppConfig(
            client=ClientSettings(authorize_url="https://idp.example.com/authorize", flow_type="PKCE")
        ),
    )

    response = app.test_client().post("/login", follow_redirects=True)

    assert response.status_code == 200
    assert b"does not build requests" in response.data


def test_login_without_endpoint_fails() -> None:
    """Test login reports a missing endpoint when discovery fails."""
    app = create_app(
        {"TESTING": True, "SECRET_KEY": "test", "DATABASE_URL": MEMORY_URL},
        app_config=AppConfig(client=ClientSettings(discovery_uri="https://idp.example.com")),
    )
    app.extensions[FETCHER_KEY] = StaticFetcher(error=ConfigurationFetchError("HTTP 503 fetching OIDC config"))

    response = app.test_client().post("/login", follow_redirects=True)

    assert b"Something bad happened HTTP 503" in response.data
    assert b"No authorization endpoint configured" in response.data


def test_discover_caches_configuration(app: Flask, client: FlaskClient) -> None:
    """Test discovery replaces the configuration used by later requests."""
    app.extensions[FETCHER_KEY] = StaticFetcher(
        AuthorizationServiceConfiguration(authorization_endpoint="https://discovered.example.com/auth")
    )

    response = client.post("/discover", follow_redirects=True)

    assert b"Completed fetching configuration" in response.data
    assert app.extensions[CONFIGURATION_KEY].authorization_endpoint == "https://discovered.example.com/auth"
    login = client.post("/login")
    assert login.headers["Location"].startswith("https://discovered.example.com/auth?")


def test_redirect_target_page(client: FlaskClient) -> None:
    response = client.get("/app/")
    assert response.status_code == 200
    assert b'name="fragment"' in response.data


def test_callback_completes_request(client: FlaskClient) -> None:
    """Test the posted fragment completes the pending request."""
    state = _login_state(client)

    response = client.post("/app/callback", data={"fragment": f"#id_token=abc.def.ghi&state={state}"})

    assert response.status_code == 200
    assert b"Authorization complete" in response.data
    assert b"abc.def.ghi" in response.data
    assert state.encode() in response.data


def test_callback_only_completes_once(client: FlaskClient) -> None:
    state = _login_state(client)
    client.post("/app/callback", data={"fragment": f"id_token=abc&state={state}"})

    response = client.post(
        "/app/callback",
        data={"fragment": f"id_token=abc&state={state}"},
        follow_redirects=True,
    )

    assert b"No authorization response found" in response.data


def test_callback_error_response(client: FlaskClient) -> None:
    state = _login_state(client)

    response = client.post(
        "/app/callback",
        data={"fragment": f"#error=access_denied&error_description=Denied&state={state}&id_token=x"},
    )

    assert response.status_code == 200
    assert b"Authorization failed" in response.data
    assert b"access_denied" in response.data


def test_callback_without_id_token(client: FlaskClient) -> None:
    """Test a fragment without an id_token is not treated as a response."""
    state = _login_state(client)

    response = client.post(
        "/app/callback",
        data={"fragment": f"#state={state}"},
        follow_redirects=True,
    )

    assert b"No authorization response found" in response.data


def test_callback_state_mismatch(client: FlaskClient) -> None:
    _login_state(client)

    response = client.post(
        "/app/callback",
        data={"fragment": "#id_token=abc&state=forged"},
        follow_redirects=True,
    )

    assert b"No authorization response found" in response.data
