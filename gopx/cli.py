"""Command-line interface for gopx."""

from __future__ import annotations

import os
from pathlib import Path

import click

from gopx import __version__
from gopx.config import Config, load_config
from gopx.exceptions import ConfigError
from gopx.utils.output import (
    configure_logging,
    error,
    set_color,
    set_pager,
    set_verbosity,
    warning,
)


EXIT_NO_CONFIG = 3


class Context:
    """Shared context for all commands."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: bool = False
        self.debug: bool = False
        self.quiet: bool = False
        self.pager: bool | None = None  # None = auto

    def require_config(self) -> Config:
        """Return the loaded configuration, exiting if there is none."""
        if self.config is None:
            error("Configuration not loaded")
            raise SystemExit(EXIT_NO_CONFIG)
        return self.config


pass_context = click.make_pass_decorator(Context, ensure=True)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, path_type=Path),
    help="Path to config file (default: ~/.config/gopx/config.toml)",
)
@click.option(
    "--database",
    "-d",
    "database_url",
    default=None,
    help="SQLAlchemy URL of the registry database (overrides config)",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug output (implies --verbose)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Suppress non-error output",
)
@click.option(
    "--pager/--no-pager",
    default=None,
    help="Force pager on/off (default: auto-detect)",
)
@click.version_option(version=__version__, prog_name="gopx")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    database_url: str | None,
    no_color: bool,
    verbose: bool,
    debug: bool,
    quiet: bool,
    pager: bool | None,
) -> None:
    """gopx: Search and inspect a Go package registry.

    Queries use the registry search syntax: free words plus
    ``key:value`` qualifiers such as ``in:name,desc``, ``downloads:>=1000``
    or ``created:2020-01-01..2020-12-31``.

    Configuration is loaded from ~/.config/gopx/config.toml by default.
    Use --config to specify an alternative configuration file.

    Examples:

        # Most downloaded packages mentioning websocket
        gopx search packages websocket --sort downloads --order desc

        # Show the SQL a query compiles to
        gopx search users "location:berlin packages:>5" --format sql
    """
    ctx.ensure_object(Context)
    app_ctx = ctx.obj
    app_ctx.verbose = verbose or debug
    app_ctx.debug = debug
    app_ctx.quiet = quiet
    app_ctx.pager = pager

    set_verbosity(verbose=verbose, debug=debug)
    configure_logging(verbose=verbose, debug=debug)
    set_pager(pager)

    # Color is disabled by --no-color, NO_COLOR env, or config
    disable_color = no_color or os.environ.get("NO_COLOR") is not None

    if disable_color:
        set_color(False)

    try:
        loaded_config, warnings = load_config(config)
    except ConfigError as e:
        error(str(e))
        ctx.exit(1)
        return

    app_ctx.config = loaded_config

    if database_url is not None:
        loaded_config.database_url = database_url

    if not disable_color and not loaded_config.colored_output:
        set_color(False)

    if not quiet:
        for warn in warnings:
            warning(warn)


@cli.command("help")
@click.argument("command", required=False, nargs=-1)
@click.pass_context
def help_cmd(ctx: click.Context, command: tuple[str, ...]) -> None:
    """Show help for a command."""
    group = cli
    for name in command:
        cmd = group.get_command(ctx, name)
        if cmd is None:
            error(f"Unknown command: {name}")
            ctx.exit(1)
            return
        if isinstance(cmd, click.Group):
            group = cmd
        else:
            click.echo(cmd.get_help(ctx))
            return
    click.echo(group.get_help(ctx))


def register_commands() -> None:
    """Register all commands from the commands package."""
    from gopx.commands import discover_commands

    for command in discover_commands():
        cli.add_command(command)


# Register commands on import
register_commands()
