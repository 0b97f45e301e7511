"""Rich console output helpers for gopx."""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
import sys
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from rich.theme import Theme

# Module-level verbosity flags (set by cli.py after argument parsing)
_verbose_enabled: bool = False

# None = auto, True = forced, False = disabled
_pager_mode: bool | None = None

THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "package.name": "bold",
        "package.version": "magenta",
        "user.name": "bold cyan",
    }
)

# Global console instances
console = Console(theme=THEME, stderr=False)
error_console = Console(theme=THEME, stderr=True)


def set_verbosity(*, verbose: bool = False, debug: bool = False) -> None:
    """Configure module-level verbosity flags.

    Called from the CLI entry point after argument parsing.
    """
    global _verbose_enabled
    _verbose_enabled = verbose or debug


def set_color(enabled: bool) -> None:
    """Enable or disable color on both console instances."""
    console.no_color = not enabled
    error_console.no_color = not enabled


def set_pager(mode: bool | None) -> None:
    """Configure pager mode.

    Args:
        mode: True = always, False = never, None = auto (TTY + content > height).
    """
    global _pager_mode
    _pager_mode = mode


def configure_logging(*, verbose: bool = False, debug: bool = False) -> None:
    """Route the ``gopx`` logger hierarchy through a RichHandler on stderr.

    Without either flag only warnings are shown.
    """
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logger = logging.getLogger("gopx")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=error_console, show_path=debug, rich_tracebacks=debug)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)


def _find_pager() -> list[str]:
    """Determine the pager command: $PAGER, else ``less -RFS``."""
    pager_env = os.environ.get("PAGER")
    if pager_env:
        return pager_env.split()

    return ["less", "-RFS"]


def pager_print(content: str) -> None:
    """Print content through a pager if appropriate.

    Pages only if stdout is a TTY and content exceeds the terminal
    height, unless forced on or off with ``set_pager``.
    """
    lines = content.count("\n")
    term_height = shutil.get_terminal_size().lines

    use_pager = _pager_mode
    if use_pager is None:
        use_pager = sys.stdout.isatty() and lines > term_height

    if not use_pager:
        sys.stdout.write(content)
        sys.stdout.flush()
        return

    try:
        env = os.environ.copy()
        env.setdefault("LESSCHARSET", "utf-8")
        proc = subprocess.Popen(
            _find_pager(),
            stdin=subprocess.PIPE,
            encoding="utf-8",
            errors="replace",
            env=env,
        )
        proc.communicate(input=content)
    except (OSError, subprocess.SubprocessError):
        # Pager failed, fall back to direct output
        sys.stdout.write(content)
        sys.stdout.flush()


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/info]")


def warning(message: str) -> None:
    """Print a warning message to stderr."""
    error_console.print(f"[warning]Warning:[/warning] {message}")


def error(message: str, hint: str | None = None) -> None:
    """Print an error message to stderr.

    Args:
        message: The error message.
        hint: Optional hint for resolution.
    """
    error_console.print(f"[error]Error:[/error] {message}")
    if hint:
        error_console.print(f"  [info]Hint:[/info] {hint}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/success]")


def verbose(message: str) -> None:
    """Print a message only when verbose mode is enabled.

    Goes to stderr so it never mixes with data written to stdout.
    """
    if _verbose_enabled:
        error_console.print(f"[info]{message}[/info]")


def create_table(title: str | None = None, **kwargs: Any) -> Table:
    """Create a styled table.

    Args:
        title: Optional table title.
        **kwargs: Additional Table arguments.
    """
    return Table(title=title, **kwargs)


def print_json(data: Any) -> None:
    """Print data as JSON.

    Plain ``json.dumps`` output goes straight to stdout so it can be piped.
    """
    text = json.dumps(data, indent=2, default=str)
    if console.is_terminal and not console.no_color:
        console.print_json(text)
    else:
        write_raw(text + "\n")


def print_sql(statement: str, params: dict[str, Any]) -> None:
    """Print a compiled SQL statement with its bound parameters."""
    if console.is_terminal and not console.no_color:
        console.print(Syntax(statement, "sql", word_wrap=True))
    else:
        write_raw(statement + "\n")
    for name, value in params.items():
        console.print(
            f"  [info]:{name}[/info] = {escape(repr(value))}", highlight=False, emoji=False
        )


def write_raw(text: str) -> None:
    """Write text through the stdout console without markup processing."""
    console.file.write(text)
    console.file.flush()
