"""Configuration management CLI commands."""

from __future__ import annotations

from pathlib import Path

import click

from authflow.cli.utils import error_result, get_app_config, json_option, output_result
from authflow.core.config import DEFAULT_CONFIG_FILE, get_default_config_yaml


def write_default_config(path: Path, force: bool) -> None:
    if path.exists() and not force:
        raise click.ClickException(f"Config file already exists: {path} (use --force to overwrite)")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(get_default_config_yaml())


@click.group()
def config() -> None:
    """Manage AuthFlow configuration."""
    pass


@config.command("init")
@click.option("--path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Where to write the file (default: ~/.authflow/config.yaml)")
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
@click.pass_context
def config_init(ctx: click.Context, path: Path | None, force: bool) -> None:
    """Write a commented default config.yaml."""
    target = path or ctx.find_root().obj.get("config_path") or DEFAULT_CONFIG_FILE
    write_default_config(target, force)
    click.echo(f"Configuration written to: {target}")


@config.command("show")
@click.option("--show-secret", is_flag=True, help="Include the client secret in the output.")
@json_option
@click.pass_context
def config_show(ctx: click.Context, show_secret: bool, output_json: bool) -> None:
    """Show the effective configuration (file + environment)."""
    try:
        app_config = get_app_config(ctx)
    except OSError as e:
        error_result(f"Cannot load configuration: {e}", output_json)

    data = app_config.to_dict()
    if app_config.client.client_secret and not show_secret:
        data["client"]["client_secret"] = "[REDACTED]"
    data["config_path"] = str(app_config.config_path) if app_config.config_path else None

    if output_json:
        output_result(data, as_json=True)
        return
    for section in ("client", "server", "logging"):
        click.echo(f"[{section}]")
        for key, value in data[section].items():
            click.echo(f"  {key}: {value if value not in (None, '') else '-'}")
    click.echo(f"database_path: {data['database_path'] or '-'}")
    click.echo(f"config_path: {data['config_path'] or '-'}")
