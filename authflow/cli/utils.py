"""Helpers shared by the CLI command groups."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, NoReturn

import click

from authflow.core.config import AppConfig, load_config
from authflow.core.logging import configure_logging

# Common option for JSON output
json_option = click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON for scripting",
)


def output_result(data: dict[str, Any], as_json: bool = False) -> None:
    """Output result as JSON or as ``key: value`` lines."""
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
        return
    for key, value in data.items():
        click.echo(f"{key}: {value if value not in (None, '') else '-'}")


def error_result(message: str, as_json: bool = False) -> NoReturn:
    """Output error message and exit.

    This function never returns - it either raises ClickException or calls sys.exit.
    """
    if as_json:
        click.echo(json.dumps({"error": message}, indent=2), err=True)
        sys.exit(1)
    raise click.ClickException(message)


def get_app_config(ctx: click.Context) -> AppConfig:
    """Load configuration once per invocation and configure logging from it."""
    obj = ctx.ensure_object(dict)
    if "app_config" not in obj:
        config_path: Path | None = obj.get("config_path")
        app_config = load_config(config_path)
        if obj.get("log_level"):
            app_config.logging.level = obj["log_level"].upper()
        configure_logging(
            app_config.logging.level,
            trace_enabled=app_config.logging.trace_enabled,
            log_file=app_config.logging.log_file,
        )
        obj["app_config"] = app_config
    return obj["app_config"]
