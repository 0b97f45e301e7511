"""Create the registry tables in a database."""

from __future__ import annotations

from pathlib import Path

import click
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from gopx.cli import Context, pass_context
from gopx.db.session import get_engine, init_db
from gopx.exceptions import DatabaseError
from gopx.utils.output import error, info, success


def _ensure_sqlite_dir(database_url: str) -> None:
    """Create the directory of a file-backed SQLite database."""
    try:
        url = make_url(database_url)
    except ArgumentError:
        return  # reported by get_engine
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


@click.command("init-db")
@pass_context
def cli(ctx: Context) -> None:
    """Create missing registry tables.

    Existing tables and their rows are left alone, so running this
    against an initialized database is harmless.

    \b
      gopx --database sqlite:///registry.db init-db
    """
    config = ctx.require_config()

    try:
        _ensure_sqlite_dir(config.database_url)
        engine = get_engine(config.database_url)
        try:
            created = init_db(engine)
        finally:
            engine.dispose()
    except (DatabaseError, SQLAlchemyError, OSError) as e:
        error(f"Failed to initialize database: {e}")
        raise SystemExit(2)

    if created:
        success(f"Created {len(created)} tables: {', '.join(created)}")
    else:
        info("All registry tables already exist")
