"""Web routes for the AuthFlow demo client."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from flask import (
    Blueprint,
    Flask,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from authflow.core.oidc import (
    AuthorizationError,
    AuthorizationFlow,
    AuthorizationRequest,
    AuthorizationResponse,
    AuthorizationServiceConfiguration,
    UrlLocation,
)
from authflow.storage import Database, StorageBackend, create_storage_backend

if TYPE_CHECKING:
    from werkzeug.wrappers import Response as WerkzeugResponse

_web_dir = Path(__file__).parent.parent
_templates_dir = _web_dir / "templates"

main_bp = Blueprint("main", __name__, template_folder=str(_templates_dir))

# app.extensions keys
STORE_KEY = "authflow_store"
CONFIGURATION_KEY = "authflow_configuration"
FETCHER_KEY = "authflow_fetcher"


def get_store() -> StorageBackend:
    """Get the application-wide pending request store."""
    store = current_app.extensions.get(STORE_KEY)
    if store is None:
        settings = current_app.config["CLIENT_SETTINGS"]
        store = create_storage_backend(settings.user_store, Database(current_app.config.get("DATABASE_URL")))
        current_app.extensions[STORE_KEY] = store
    return store


def get_flow(location: UrlLocation) -> AuthorizationFlow:
    """Build a flow for this request, reusing the last fetched configuration."""
    flow = AuthorizationFlow(
        current_app.config["CLIENT_SETTINGS"],
        fetcher=current_app.extensions.get(FETCHER_KEY),
        store=get_store(),
        location=location,
        on_message=lambda message: flash(message, "info"),
    )
    cached: AuthorizationServiceConfiguration | None = current_app.extensions.get(CONFIGURATION_KEY)
    if cached is not None:
        flow.configuration = cached
    return flow


def refresh_configuration(flow: AuthorizationFlow) -> None:
    asyncio.run(flow.fetch_service_configuration())
    current_app.extensions[CONFIGURATION_KEY] = flow.configuration


@main_bp.route("/")
def index() -> str:
    """Render the demo client home page."""
    flow = get_flow(UrlLocation(request.url))
    return render_template(
        "index.html",
        settings=flow.settings,
        flow_type=flow.flow_type,
        configuration=flow.configuration,
    )


@main_bp.route("/health")
def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@main_bp.route("/discover", methods=["POST"])
def discover() -> WerkzeugResponse:
    """Refresh the service configuration from the discovery document."""
    flow = get_flow(UrlLocation(request.url))
    refresh_configuration(flow)
    return redirect(url_for("main.index"))


@main_bp.route("/login", methods=["GET", "POST"])
def login() -> WerkzeugResponse:
    """Build an authorization request and redirect to the authorization server."""
    location = UrlLocation(request.url)
    flow = get_flow(location)

    if not flow.configuration.is_resolved and flow.settings.discovery_uri:
        refresh_configuration(flow)
    if not flow.configuration.is_resolved:
        flash("No authorization endpoint configured", "error")
        return redirect(url_for("main.index"))

    auth_request = flow.make_authorization_request()
    if auth_request is None:
        flash(f"Flow type '{flow.flow_type}' does not build requests in this client", "error")
        return redirect(url_for("main.index"))

    return redirect(location.href)


@main_bp.route("/app/")
def redirect_target() -> str:
    """Redirect target; the page posts its fragment back to the server."""
    return render_template("redirect.html")


@main_bp.route("/app/callback", methods=["POST"])
def callback() -> str | WerkzeugResponse:
    """Complete the pending request from the posted fragment."""
    fragment = request.form.get("fragment", "")
    if fragment and not fragment.startswith("#"):
        fragment = f"#{fragment}"
    flow = get_flow(UrlLocation(url_for("main.redirect_target", _external=True) + fragment))

    results: list[tuple[AuthorizationRequest, AuthorizationResponse | None, AuthorizationError | None]] = []
    flow.set_listener(lambda req, resp, err: results.append((req, resp, err)))
    flow.check_for_authorization_response()

    if not results:
        flash("No authorization response found", "error")
        return redirect(url_for("main.index"))

    auth_request, response, error = results[0]
    if error is not None:
        flash(f"Authorization failed: {error}", "error")
    return render_template("result.html", auth_request=auth_request, response=response, error=error)


def init_app(app: Flask) -> None:
    """Register blueprints with the Flask app."""
    app.register_blueprint(main_bp)
