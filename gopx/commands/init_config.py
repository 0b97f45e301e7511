"""Initialize configuration file for gopx."""

from __future__ import annotations

from importlib import resources
from pathlib import Path

import click

from gopx.cli import Context, pass_context
from gopx.config import get_default_config_path
from gopx.utils.output import error, info, success


def _load_example_config() -> str:
    """Load the example configuration from package data."""
    return resources.files("gopx").joinpath("config.example.toml").read_text()


@click.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    default=False,
    help="Overwrite existing config file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for config file (default: ~/.config/gopx/config.toml)",
)
@pass_context
def cli(ctx: Context, force: bool, output: Path | None) -> None:
    """Create a new configuration file with default settings.

    The file holds the VCS registry auth key, so it is created readable
    by its owner only.

    \b
      # Create config at default location
      gopx init-config

    \b
      # Create config at custom location, replacing an existing one
      gopx init-config --output ./gopx.toml --force
    """
    config_path = (output if output is not None else get_default_config_path()).expanduser()
    config_path = config_path.resolve()

    if config_path.exists() and not force:
        error(
            f"Config file already exists: {config_path}",
            hint="Use --force to overwrite",
        )
        raise SystemExit(1)

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(_load_example_config())
        config_path.chmod(0o600)
    except OSError as e:
        error(f"Failed to write config file: {e}")
        raise SystemExit(1)

    success(f"Created config file: {config_path}")
    info("Edit this file to point [database] url at your registry database.")
