"""CLI entry point for AuthFlow."""

from pathlib import Path

import click

from authflow import __version__
from authflow.cli import config as config_commands
from authflow.cli import flow as flow_commands
from authflow.cli import serve as serve_commands
from authflow.core.config import DEFAULT_CONFIG_FILE


@click.group()
@click.version_option(version=__version__, prog_name="authflow")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.authflow/config.yaml)",
)
@click.option(
    "--log-level",
    type=click.Choice(["ERROR", "INFO", "DEBUG", "TRACE"], case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str | None) -> None:
    """AuthFlow - OAuth2/OIDC Redirect Flow Client."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Initialize AuthFlow configuration.

    This is a convenience command that runs 'authflow config init'.
    """
    path = ctx.obj.get("config_path") or DEFAULT_CONFIG_FILE
    config_commands.write_default_config(path, force)

    click.echo(f"Configuration written to: {path}")
    click.echo("")
    click.echo("Next steps:")
    click.echo("  1. Set client_id and redirect_uri for your client in the config file")
    click.echo("  2. Run 'authflow serve' and open the printed URL, or")
    click.echo("  3. Run 'authflow authorize' and 'authflow complete <redirect-url>'")


cli.add_command(config_commands.config)
cli.add_command(flow_commands.discover)
cli.add_command(flow_commands.authorize)
cli.add_command(flow_commands.complete)
cli.add_command(serve_commands.serve)
