"""Resolve an Authorization header to a registry user."""

from __future__ import annotations

import click

from gopx.auth import authenticate
from gopx.cli import Context, pass_context
from gopx.db.session import get_session
from gopx.exceptions import AuthError, DatabaseError
from gopx.utils.output import console, create_table, error, print_json

EXIT_UNAUTHORIZED = 1
EXIT_DATABASE_ERROR = 2


@click.command("whoami")
@click.option(
    "--auth",
    "-a",
    "header",
    required=True,
    help="Authorization header value, e.g. 'Basic <base64>' or 'APIKey <key>'",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON")
@pass_context
def cli(ctx: Context, header: str, as_json: bool) -> None:
    """Show the user an Authorization header belongs to.

    \b
      gopx whoami --auth "APIKey 0123abcd"
    """
    config = ctx.require_config()
    try:
        with get_session(config.database_url) as session:
            user = authenticate(session, header)
    except AuthError as e:
        error(str(e))
        raise SystemExit(EXIT_UNAUTHORIZED)
    except DatabaseError as e:
        error(str(e))
        raise SystemExit(EXIT_DATABASE_ERROR)

    if user is None:
        error("Invalid credentials")
        raise SystemExit(EXIT_UNAUTHORIZED)

    if as_json:
        print_json(user.to_dict())
        return

    table = create_table(title=user.username, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for field, value in user.to_dict().items():
        if field == "social":
            value = ", ".join(f"{k}: {v}" for k, v in value.items() if v) or None
        if value is None or field == "username":
            continue
        table.add_row(field, str(value))
    console.print(table)
