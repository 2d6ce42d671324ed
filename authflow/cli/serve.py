"""Server CLI commands."""

from pathlib import Path

import click

from authflow.cli.utils import get_app_config


@click.command()
@click.option("--host", "-h", default=None, help="Host to bind to (default: from config or 127.0.0.1)")
@click.option("--port", "-p", type=int, default=None, help="Port to bind to (default: from config or 8080)")
@click.option(
    "--cert",
    type=click.Path(exists=True, path_type=Path),  # type: ignore[type-var]
    help="Path to TLS certificate (PEM format)",
)
@click.option(
    "--key",
    type=click.Path(exists=True, path_type=Path),  # type: ignore[type-var]
    help="Path to TLS private key (PEM format)",
)
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def serve(
    ctx: click.Context,
    host: str | None,
    port: int | None,
    cert: Path | None,
    key: Path | None,
    debug: bool,
) -> None:
    """Start the demo client web server.

    The default redirect URI is http://localhost:8080/app/, which the
    server answers on.

    Examples:

        authflow serve

        authflow serve --port 9000 --cert server.crt --key server.key
    """
    from authflow.app import run_server

    if cert and not key:
        raise click.ClickException("--key is required when --cert is provided")
    if key and not cert:
        raise click.ClickException("--cert is required when --key is provided")

    config = get_app_config(ctx)
    if cert and key:
        config.server.cert_path = cert
        config.server.key_path = key
    if debug:
        config.server.debug = True

    run_server(app_config=config, host=host, port=port)
