"""Application configuration management.

Loads client, server and logging settings from a config.yaml file and
environment variables. Environment variables take precedence over the file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".authflow"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

ENV_PREFIX = "AUTHFLOW_"

# Demo client registered for http://localhost:8080/app/ only; not a production credential.
DEMO_CLIENT_ID = "511828570984-7nmej36h9j2tebiqmpqh835naet4vci4.apps.googleusercontent.com"


@dataclass
class ClientSettings:
    """OAuth client settings supplied by the embedding application.

    ``flow_type`` and ``user_store`` are free strings; unrecognized values
    fall back to the implicit flow and the local store respectively.
    """

    authorize_url: str = ""
    token_url: str = ""
    revoke_url: str = ""
    logout_url: str = ""
    user_info_url: str = ""
    flow_type: str = "IMPLICIT"
    user_store: str = "LOCAL_STORAGE"
    client_id: str = DEMO_CLIENT_ID
    client_secret: str = ""
    redirect_uri: str = "http://localhost:8080/app/"
    scope: str = "openid"
    post_logout_redirect_uri: str = "http://localhost:8080/app/"
    discovery_uri: str = "https://accounts.google.com"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientSettings:
        """Create ClientSettings from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown client settings: %s", ", ".join(sorted(unknown)))
        return cls(**{k: str(v) for k, v in data.items() if k in known and v is not None})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ServerSettings:
    """Demo web server settings."""

    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    cert_path: Path | None = None
    key_path: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServerSettings:
        return cls(
            host=data.get("host", "127.0.0.1"),
            port=int(data.get("port", 8080)),
            debug=bool(data.get("debug", False)),
            cert_path=Path(data["cert_path"]) if data.get("cert_path") else None,
            key_path=Path(data["key_path"]) if data.get("key_path") else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "cert_path": str(self.cert_path) if self.cert_path else None,
            "key_path": str(self.key_path) if self.key_path else None,
        }


@dataclass
class LoggingSettings:
    """Protocol logging settings."""

    level: str = "INFO"
    trace_enabled: bool = False
    log_file: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoggingSettings:
        return cls(
            level=str(data.get("level", "INFO")).upper(),
            trace_enabled=bool(data.get("trace_enabled", False)),
            log_file=data.get("log_file"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AppConfig:
    """Main application configuration."""

    client: ClientSettings = field(default_factory=ClientSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    database_path: Path | None = None
    config_path: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], config_path: Path | None = None) -> AppConfig:
        """Create AppConfig from a dictionary."""
        return cls(
            client=ClientSettings.from_dict(data.get("client") or {}),
            server=ServerSettings.from_dict(data.get("server") or {}),
            logging=LoggingSettings.from_dict(data.get("logging") or {}),
            database_path=Path(data["database_path"]).expanduser() if data.get("database_path") else None,
            config_path=config_path,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "client": self.client.to_dict(),
            "server": self.server.to_dict(),
            "logging": self.logging.to_dict(),
            "database_path": str(self.database_path) if self.database_path else None,
        }

    def save(self, path: Path | None = None) -> Path:
        """Save configuration to a YAML file.

        Args:
            path: Path to save to. Uses config_path or default if not specified.

        Returns:
            The path written.
        """
        save_path = path or self.config_path or DEFAULT_CONFIG_FILE
        save_path.parent.mkdir(parents=True, exist_ok=True)

        with open(save_path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
        return save_path


def _get_env_bool(key: str, default: bool) -> bool:
    """Get a boolean from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _get_env_int(key: str, default: int) -> int:
    """Get an integer from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load application configuration.

    Configuration is loaded in this order (later values override earlier):
    1. Default values
    2. config.yaml file (if exists)
    3. Environment variables (``AUTHFLOW_CLIENT_ID``, ``AUTHFLOW_FLOW_TYPE``, ...)

    Args:
        config_path: Path to config file. Uses default if not specified.

    Returns:
        AppConfig with merged settings.
    """
    config = AppConfig()

    file_path = config_path or DEFAULT_CONFIG_FILE
    if file_path.exists():
        try:
            with open(file_path) as f:
                data = yaml.safe_load(f) or {}
            config = AppConfig.from_dict(data, config_path=file_path)
        except (yaml.YAMLError, OSError, TypeError, ValueError) as e:
            logger.warning("Ignoring invalid config file %s: %s", file_path, e)

    # Client settings map one-to-one onto AUTHFLOW_<FIELD>
    for f in fields(ClientSettings):
        value = os.environ.get(f"{ENV_PREFIX}{f.name.upper()}")
        if value is not None:
            setattr(config.client, f.name, value)

    if os.environ.get(f"{ENV_PREFIX}HOST"):
        config.server.host = os.environ[f"{ENV_PREFIX}HOST"]
    config.server.port = _get_env_int(f"{ENV_PREFIX}PORT", config.server.port)
    config.server.debug = _get_env_bool(f"{ENV_PREFIX}DEBUG", config.server.debug)

    if os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        config.logging.level = os.environ[f"{ENV_PREFIX}LOG_LEVEL"].upper()
    config.logging.trace_enabled = _get_env_bool(f"{ENV_PREFIX}LOG_TRACE", config.logging.trace_enabled)
    if os.environ.get(f"{ENV_PREFIX}LOG_FILE"):
        config.logging.log_file = os.environ[f"{ENV_PREFIX}LOG_FILE"]

    if os.environ.get(f"{ENV_PREFIX}DB_PATH"):
        config.database_path = Path(os.environ[f"{ENV_PREFIX}DB_PATH"])

    return config


def get_default_config_yaml() -> str:
    """Get the default config.yaml content as a string."""
    return """\
# AuthFlow Configuration File
# Environment variables override these settings (prefix: AUTHFLOW_)

client:
  # IMPLICIT or PKCE (anything else falls back to IMPLICIT)
  flow_type: "IMPLICIT"

  # Pending-request storage; only LOCAL_STORAGE is supported
  user_store: "LOCAL_STORAGE"

  # Demo client, only valid for the redirect below
  client_id: "511828570984-7nmej36h9j2tebiqmpqh835naet4vci4.apps.googleusercontent.com"
  client_secret: ""
  redirect_uri: "http://localhost:8080/app/"
  post_logout_redirect_uri: "http://localhost:8080/app/"
  scope: "openid"

  # Issuer used for .well-known/openid-configuration discovery
  discovery_uri: "https://accounts.google.com"

  # Explicit endpoints, used until discovery succeeds
  authorize_url: ""
  token_url: ""
  revoke_url: ""
  logout_url: ""
  user_info_url: ""

server:
  host: "127.0.0.1"
  port: 8080
  debug: false
  # cert_path: ~/.authflow/server.crt
  # key_path: ~/.authflow/server.key

logging:
  # ERROR, INFO, DEBUG or TRACE
  level: "INFO"
  # Required for TRACE to include unredacted tokens
  trace_enabled: false
  # log_file: ~/.authflow/authflow.log

# database_path: ~/.authflow/store.db
"""
