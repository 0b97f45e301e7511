"""Inspect a single package and manage its payload in the VCS registry."""

from __future__ import annotations

import base64
from typing import BinaryIO, NoReturn

import click
from rich.markdown import Markdown

from gopx.cli import Context, pass_context
from gopx.db.queries import (
    get_package,
    get_user,
    package_downloads,
    package_readme,
    package_versions,
    registry_total_downloads,
)
from gopx.db.session import get_session
from gopx.exceptions import (
    DatabaseError,
    NotFoundError,
    ValidationError,
    VCSError,
    VersionNotFoundError,
)
from gopx.utils.output import console, create_table, error, print_json, success
from gopx.validate import is_same_version, sanitize_package_version, validate_package_name
from gopx.vcs import PackageMeta, PackageOwner, PackageType, VCSClient

EXIT_NOT_FOUND = 1
EXIT_DATABASE_ERROR = 2
EXIT_VCS_ERROR = 4

json_option = click.option(
    "--json", "as_json", is_flag=True, default=False, help="Print JSON instead of a table"
)


@click.group("package")
def cli() -> None:
    """Show registry packages and manage their VCS payloads."""


def _fail(e: Exception) -> NoReturn:
    error(str(e))
    if isinstance(e, (NotFoundError, ValidationError)):
        raise SystemExit(EXIT_NOT_FOUND)
    if isinstance(e, VCSError):
        raise SystemExit(EXIT_VCS_ERROR)
    raise SystemExit(EXIT_DATABASE_ERROR)


@cli.command("show")
@click.argument("name")
@json_option
@pass_context
def show_cmd(ctx: Context, name: str, as_json: bool) -> None:
    """Show metadata of package NAME."""
    config = ctx.require_config()
    try:
        validate_package_name(name)
        with get_session(config.database_url) as session:
            row = get_package(session, name)
    except (ValidationError, NotFoundError, DatabaseError) as e:
        _fail(e)

    if as_json:
        print_json(row.to_dict())
        return

    table = create_table(title=row.name, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for field, value in row.to_dict().items():
        if field == "engines":
            value = value.get("go")
        elif field == "os":
            value = ", ".join(value) or None
        if value is None or field == "name":
            continue
        table.add_row(field, str(value))
    console.print(table)


@cli.command("versions")
@click.argument("name")
@json_option
@pass_context
def versions_cmd(ctx: Context, name: str, as_json: bool) -> None:
    """List released versions of package NAME, oldest first."""
    config = ctx.require_config()
    try:
        validate_package_name(name)
        with get_session(config.database_url) as session:
            history = package_versions(session, name)
    except (ValidationError, NotFoundError, DatabaseError) as e:
        _fail(e)

    if as_json:
        print_json(history.to_dict())
        return

    table = create_table(title=history.name, show_header=True, header_style="bold")
    table.add_column("Version", style="package.version")
    table.add_column("Released")
    for version, released_at in history.versions:
        table.add_row(version, released_at.isoformat(sep=" ") if released_at else "")
    console.print(table)


@cli.command("readme")
@click.argument("name")
@click.option("--version", "-V", "version", default=None, help="Version (default: latest)")
@click.option("--raw", is_flag=True, default=False, help="Print the README source")
@json_option
@pass_context
def readme_cmd(ctx: Context, name: str, version: str | None, raw: bool, as_json: bool) -> None:
    """Print the README of package NAME."""
    config = ctx.require_config()
    try:
        validate_package_name(name)
        if version:
            version = sanitize_package_version(version)
        with get_session(config.database_url) as session:
            readme = package_readme(session, name, version)
    except (ValidationError, NotFoundError, DatabaseError) as e:
        _fail(e)

    if as_json:
        print_json(readme.to_dict())
        return

    text = base64.b64decode(readme.content).decode("utf-8", errors="replace")
    if raw or not readme.name.lower().endswith(".md"):
        click.echo(text)
    else:
        console.print(Markdown(text))


@cli.command("downloads")
@click.argument("names", nargs=-1)
@json_option
@pass_context
def downloads_cmd(ctx: Context, names: tuple[str, ...], as_json: bool) -> None:
    """Show download counts, for NAMES or for every package."""
    config = ctx.require_config()
    try:
        with get_session(config.database_url) as session:
            counts = package_downloads(session, names or None)
            total = registry_total_downloads(session)
    except DatabaseError as e:
        _fail(e)

    missing = sorted(set(names) - set(counts))
    if missing:
        error(f"Package not found: {', '.join(missing)}")
        raise SystemExit(EXIT_NOT_FOUND)

    if as_json:
        print_json({"packages": counts, "total": total})
        return

    table = create_table(show_header=True, header_style="bold")
    table.add_column("Package", style="package.name")
    table.add_column("Downloads", justify="right")
    for package, count in counts.items():
        table.add_row(package, str(count))
    table.add_section()
    table.add_row("registry total", str(total), style="bold")
    console.print(table)


@cli.command("register")
@click.argument("name")
@click.argument("tarball", type=click.File("rb"))
@click.option(
    "--version", "-V", "version", default=None, help="Version to upload (default: latest)"
)
@click.option("--private", is_flag=True, default=False, help="Register as a private package")
@pass_context
def register_cmd(
    ctx: Context, name: str, tarball: BinaryIO, version: str | None, private: bool
) -> None:
    """Upload TARBALL as the payload of package NAME to the VCS registry.

    The package and version must already be known to the registry
    database; the owner recorded there is sent along.

    \b
      gopx package register websocket websocket-1.2.0.tar.gz -V 1.2.0
    """
    config = ctx.require_config()
    try:
        validate_package_name(name)
        with get_session(config.database_url) as session:
            package = get_package(session, name)
            owner = get_user(session, package.owner_username)
            history = package_versions(session, name)
        version = sanitize_package_version(version or package.latest_version)
        if not any(is_same_version(version, released) for released, _ in history.versions):
            raise VersionNotFoundError(name, version)
    except (ValidationError, NotFoundError, DatabaseError) as e:
        _fail(e)

    meta = PackageMeta(
        name=package.name,
        version=version,
        owner=PackageOwner(
            name=owner.name or "",
            public_email=owner.email if owner.is_public_email else "",
            username=owner.username,
        ),
        type=PackageType.PRIVATE if private else PackageType.PUBLIC,
    )
    try:
        VCSClient.from_config(config).register_package(meta, tarball)
    except VCSError as e:
        _fail(e)
    success(f"Registered {name}@{version}")


@cli.command("delete")
@click.argument("name")
@pass_context
def delete_cmd(ctx: Context, name: str) -> None:
    """Remove the payloads of package NAME from the VCS registry."""
    config = ctx.require_config()
    try:
        validate_package_name(name)
        with get_session(config.database_url) as session:
            get_package(session, name)
    except (ValidationError, NotFoundError, DatabaseError) as e:
        _fail(e)

    try:
        VCSClient.from_config(config).delete_package(name)
    except VCSError as e:
        _fail(e)
    success(f"Deleted {name} from the VCS registry")
