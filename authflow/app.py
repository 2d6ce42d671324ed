"""Flask application factory for the demo client."""

from __future__ import annotations

import os
import secrets
import ssl
from pathlib import Path
from typing import TYPE_CHECKING, Any

from flask import Flask

if TYPE_CHECKING:
    from authflow.core.config import AppConfig


def _load_secret_key() -> str:
    """Read the session secret from the environment or a persistent key file."""
    secret_key = os.environ.get("AUTHFLOW_SECRET_KEY")
    if secret_key:
        return secret_key

    key_path = Path.home() / ".authflow" / "flask_secret.key"
    if key_path.exists():
        return key_path.read_text().strip()

    secret_key = secrets.token_hex(32)
    key_path.parent.mkdir(parents=True, exist_ok=True)
    key_path.write_text(secret_key)
    key_path.chmod(0o600)
    return secret_key


def create_app(config: dict[str, Any] | None = None, app_config: AppConfig | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Flask configuration overrides. ``DATABASE_URL`` selects the
            store database (``sqlite://`` for an in-memory store).
        app_config: Application configuration; loaded from file/env if omitted.

    Returns:
        Configured Flask application instance.
    """
    from authflow.core.config import load_config

    app = Flask(__name__)
    config = dict(config or {})
    if app_config is None:
        app_config = load_config()

    app.config.from_mapping(
        CLIENT_SETTINGS=app_config.client,
        DATABASE_URL=f"sqlite:///{app_config.database_path}" if app_config.database_path else None,
    )
    app.config.from_mapping(config)
    if not app.config.get("SECRET_KEY"):
        app.config["SECRET_KEY"] = _load_secret_key()

    from authflow.web import routes

    routes.init_app(app)

    return app


def create_ssl_context(cert_path: Path, key_path: Path) -> ssl.SSLContext:
    """Create an SSL context for HTTPS.

    Args:
        cert_path: Path to the certificate file (PEM format).
        key_path: Path to the private key file (PEM format).
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(str(cert_path), str(key_path))
    return context


def run_server(
    app_config: AppConfig | None = None,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Run the Flask development server.

    Args:
        app_config: Application configuration. Loads from file/env if not provided.
        host: Override host from config.
        port: Override port from config.
    """
    from authflow.core.config import load_config

    if app_config is None:
        app_config = load_config()

    server = app_config.server
    server_host = host or server.host
    server_port = port or server.port

    app = create_app(app_config=app_config)
    app.debug = server.debug

    ssl_context: ssl.SSLContext | None = None
    protocol = "http"
    if server.cert_path and server.key_path:
        ssl_context = create_ssl_context(server.cert_path, server.key_path)
        protocol = "https"

    print("Starting AuthFlow demo client...")
    print(f"  URL: {protocol}://{server_host}:{server_port}")
    print(f"  Redirect URI: {app_config.client.redirect_uri}")
    print("")

    # Single-threaded: the flow state is not shared safely across threads
    app.run(host=server_host, port=server_port, ssl_context=ssl_context, threaded=False)
