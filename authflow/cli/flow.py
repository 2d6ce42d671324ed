"""Authorization flow CLI commands."""

from __future__ import annotations

import asyncio

import click

from authflow.cli.utils import error_result, get_app_config, json_option, output_result
from authflow.core.errors import AuthFlowError
from authflow.core.oidc import (
    AuthorizationError,
    AuthorizationFlow,
    AuthorizationRequest,
    AuthorizationResponse,
    FlowStatus,
    UrlLocation,
)
from authflow.storage import Database, create_storage_backend


def build_flow(ctx: click.Context, location: UrlLocation, messages: list[str]) -> AuthorizationFlow:
    """Create a flow from the loaded configuration, collecting its messages."""
    app_config = get_app_config(ctx)
    database = Database.from_path(app_config.database_path) if app_config.database_path else Database()
    return AuthorizationFlow(
        app_config.client,
        store=create_storage_backend(app_config.client.user_store, database),
        location=location,
        on_message=messages.append,
    )


@click.command()
@click.option("--issuer", "-i", default=None, help="Issuer or discovery URL (default: from config)")
@json_option
@click.pass_context
def discover(ctx: click.Context, issuer: str | None, output_json: bool) -> None:
    """Fetch the OIDC discovery document and show the endpoints.

    Examples:

        authflow discover

        authflow discover --issuer https://login.example.com --json
    """
    messages: list[str] = []
    flow = build_flow(ctx, UrlLocation(), messages)
    asyncio.run(flow.fetch_service_configuration(issuer))

    if flow.status == FlowStatus.FAILED:
        error_result(messages[-1] if messages else "Discovery failed", output_json)

    output_result(flow.configuration.to_dict(), output_json)


@click.command()
@click.option("--state", default=None, help="State value (generated if omitted)")
@click.option("--nonce", default=None, help="Nonce value (generated if omitted)")
@click.option("--discover/--no-discover", "use_discovery", default=True,
              help="Fetch the discovery document when no authorize URL is configured")
@json_option
@click.pass_context
def authorize(
    ctx: click.Context,
    state: str | None,
    nonce: str | None,
    use_discovery: bool,
    output_json: bool,
) -> None:
    """Build an authorization request and print the URL to open.

    The pending request is stored until 'authflow complete' is run with
    the URL the browser was redirected to.
    """
    messages: list[str] = []
    location = UrlLocation()
    flow = build_flow(ctx, location, messages)

    if not flow.configuration.is_resolved and use_discovery:
        asyncio.run(flow.fetch_service_configuration())
    if not flow.configuration.is_resolved:
        if flow.status == FlowStatus.FAILED and messages:
            error_result(messages[-1], output_json)
        error_result("No authorization endpoint configured", output_json)

    try:
        auth_request = flow.make_authorization_request(state, nonce)
    except AuthFlowError as e:
        error_result(f"Cannot build authorization request: {e}", output_json)
    if auth_request is None:
        error_result(f"Flow type '{flow.flow_type}' does not build authorization requests", output_json)

    output_result(
        {
            "authorization_url": location.href,
            "state": auth_request.state,
            "nonce": auth_request.extras.get("nonce"),
        },
        output_json,
    )


@click.command()
@click.argument("redirect_url")
@json_option
@click.pass_context
def complete(ctx: click.Context, redirect_url: str, output_json: bool) -> None:
    """Complete the pending request from the URL the browser landed on.

    Example:

        authflow complete 'http://localhost:8080/app/#id_token=...&state=...'
    """
    results: list[tuple[AuthorizationRequest, AuthorizationResponse | None, AuthorizationError | None]] = []
    flow = build_flow(ctx, UrlLocation(redirect_url), [])
    flow.set_listener(lambda req, resp, err: results.append((req, resp, err)))
    flow.check_for_authorization_response()

    if not results:
        error_result("No pending authorization request matches this URL", output_json)

    _request, response, error = results[0]
    if error is not None:
        error_result(f"Authorization failed: {error}", output_json)
    if response is not None:
        output_result(response.to_dict(), output_json)
