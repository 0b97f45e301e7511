"""Search packages and users in the registry database."""

from __future__ import annotations

import io
from collections.abc import Callable
from typing import Any

import click
from rich.console import Console

from gopx.cli import Context, pass_context
from gopx.config import Config
from gopx.db.queries import PackageRow, UserRow, search_packages, search_users
from gopx.db.session import get_session
from gopx.exceptions import DatabaseError, QueryError
from gopx.search.query import CompiledSearch, compile_search
from gopx.search.sorting import SORT_ORDERS
from gopx.utils.output import (
    THEME,
    console,
    create_table,
    error,
    info,
    pager_print,
    print_json,
    print_sql,
    verbose,
)

EXIT_SUCCESS = 0
EXIT_PARSE_ERROR = 1
EXIT_DATABASE_ERROR = 2
OUTPUT_FORMATS = ("table", "json", "sql")


def _search_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Arguments and options shared by the entity subcommands."""
    options = [
        click.argument("query", nargs=-1),
        click.option(
            "--sort",
            "-s",
            default=None,
            help="Comma-separated sort keys; unknown keys are ignored",
        ),
        click.option(
            "--order",
            "-o",
            type=click.Choice(SORT_ORDERS, case_sensitive=False),
            default=None,
            help="Sort direction (default: ASC)",
        ),
        click.option("--page", "-p", default=None, help="Page number, starting at 1"),
        click.option(
            "--per-page",
            "-n",
            default=None,
            help="Results per page (clamped to the configured maximum)",
        ),
        click.option(
            "--format",
            "-f",
            "output_format",
            type=click.Choice(OUTPUT_FORMATS),
            default="table",
            help="Output format (default: table); sql prints the compiled query only",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group("search")
def cli() -> None:
    """Search packages or users.

    QUERY is free text plus ``key:value`` qualifiers. Multiple arguments
    are joined with spaces; ``+`` inside a value stands for a space.

    \b
    Package qualifiers:
      in:name,desc,tag   fields the free text is matched against
      downloads:>=1000   download count
      created:2020-01-01..2020-12-31
      updated:>2021-06-01
      owner:alice        exact owner username

    \b
    User qualifiers:
      in:username,name,email
      packages:>5        number of owned packages
      location:new+york  any of the words
      joined:<2019-01-01
    """


def _compile(
    config: Config, entity: str, query: tuple[str, ...], **params: Any
) -> CompiledSearch:
    try:
        return compile_search(config.search_entity(entity), " ".join(query), **params)
    except QueryError as e:
        error(f"Invalid search query: {e}")
        raise SystemExit(EXIT_PARSE_ERROR)


def _run(
    config: Config,
    search: CompiledSearch,
    executor: Callable[..., list[Any]],
    output_format: str,
    printer: Callable[[list[Any]], None],
) -> None:
    verbose(f"ORDER BY {search.order_by} LIMIT {search.limit} OFFSET {search.offset}")

    if output_format == "sql":
        where, binds = search.bind()
        statement = f"WHERE {where}" if where else "-- no filter"
        statement += f"\nORDER BY {search.order_by}\nLIMIT {search.limit} OFFSET {search.offset}"
        print_sql(statement, binds)
        raise SystemExit(EXIT_SUCCESS)

    try:
        with get_session(config.database_url) as session:
            rows = executor(session, search)
    except DatabaseError as e:
        error(str(e))
        raise SystemExit(EXIT_DATABASE_ERROR)

    if output_format == "json":
        print_json([row.to_dict() for row in rows])
    elif not rows:
        info("No results")
    else:
        printer(rows)

    raise SystemExit(EXIT_SUCCESS)


@cli.command("packages")
@_search_options
@pass_context
def packages_cmd(
    ctx: Context,
    query: tuple[str, ...],
    sort: str | None,
    order: str | None,
    page: str | None,
    per_page: str | None,
    output_format: str,
) -> None:
    """Search packages.

    \b
    Examples:
      gopx search packages websocket
      gopx search packages "router in:name,tag downloads:>=100" --sort downloads -o desc
      gopx search packages owner:alice --format json
    """
    config = ctx.require_config()
    search = _compile(
        config, "packages", query, sort=sort, order=order, page=page, per_page=per_page
    )
    _run(config, search, search_packages, output_format, _print_packages)


@cli.command("users")
@_search_options
@pass_context
def users_cmd(
    ctx: Context,
    query: tuple[str, ...],
    sort: str | None,
    order: str | None,
    page: str | None,
    per_page: str | None,
    output_format: str,
) -> None:
    """Search users.

    \b
    Examples:
      gopx search users alice
      gopx search users "location:berlin packages:>=3" --sort packages -o desc
    """
    config = ctx.require_config()
    search = _compile(
        config, "users", query, sort=sort, order=order, page=page, per_page=per_page
    )
    _run(config, search, search_users, output_format, _print_users)


def _format_date(value: Any) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def _print_packages(rows: list[PackageRow]) -> None:
    table = create_table(show_header=True, header_style="bold")
    table.add_column("Name", style="package.name", no_wrap=True)
    table.add_column("Version", style="package.version", no_wrap=True)
    table.add_column("Downloads", justify="right")
    table.add_column("Owner", style="user.name")
    table.add_column("Updated")
    table.add_column("Description")
    for row in rows:
        table.add_row(
            row.name,
            row.latest_version,
            str(row.downloads),
            row.owner_username,
            _format_date(row.last_released_at),
            row.description or "",
        )
    _page_table(table, len(rows))


def _print_users(rows: list[UserRow]) -> None:
    table = create_table(show_header=True, header_style="bold")
    table.add_column("Username", style="user.name", no_wrap=True)
    table.add_column("Name")
    table.add_column("Packages", justify="right")
    table.add_column("Location")
    table.add_column("Joined")
    for row in rows:
        table.add_row(
            row.username,
            row.name or "",
            str(row.packages_count),
            row.location or "",
            _format_date(row.joined_at),
        )
    _page_table(table, len(rows))


def _page_table(table: Any, count: int) -> None:
    """Render a table to a buffer and route it through the pager."""
    info(f"{count} results")
    buf = io.StringIO()
    render_console = Console(
        file=buf,
        theme=THEME,
        force_terminal=not console.no_color,
        width=max(console.width, 120),
        no_color=console.no_color,
    )
    render_console.print(table)
    pager_print(buf.getvalue())
