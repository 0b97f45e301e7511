"""Read queries against the registry database.

Package and user rows are read from derived views that add computed
columns (download counts, owner names, package counts) so that search
filters can refer to them like plain columns.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from gopx.db.models import Package, PackageDownload, PackageVersion
from gopx.exceptions import (
    DatabaseError,
    PackageNotFoundError,
    UserNotFoundError,
    VersionNotFoundError,
)
from gopx.search.clauses import bind_positional
from gopx.validate import list_os_names

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from gopx.search.query import CompiledSearch

log = logging.getLogger(__name__)

# Packages with owner username, download count and one row per tag.
# Counts are CAST so that SQLite compares them numerically with bound strings.
PACKAGES_VIEW = """
SELECT DISTINCT
    id, name, owner_username, downloads, latest_version, published_at,
    last_released_at, description, license, homepage_url, repository_url,
    documentation_url, bugs_url, engines_go, os
FROM (
    SELECT counted.*, users.username AS owner_username, package_tags.tag
    FROM (
        SELECT packages.*, CAST(COUNT(package_downloads.id) AS INTEGER) AS downloads
        FROM packages
        LEFT JOIN package_downloads ON packages.id = package_downloads.package_id
        GROUP BY packages.id
    ) AS counted
    INNER JOIN users ON users.id = counted.owner_id
    LEFT JOIN package_tags ON counted.id = package_tags.package_id
) AS packages
"""

# Users with package count, social accounts and API key.
USERS_VIEW = """
SELECT * FROM (
    SELECT
        counted.id, counted.name, counted.packages_count, counted.joined_at,
        counted.email, counted.is_public_email, counted.username, counted.password,
        counted.avatar, counted.url, counted.organization, counted.location,
        user_social_accounts.github, user_social_accounts.twitter,
        user_social_accounts.stack_overflow, user_social_accounts.linkedin,
        user_api_keys.api_key
    FROM (
        SELECT users.*, CAST(COUNT(packages.id) AS INTEGER) AS packages_count
        FROM users
        LEFT JOIN packages ON users.id = packages.owner_id
        GROUP BY users.id
    ) AS counted
    LEFT JOIN user_social_accounts ON counted.id = user_social_accounts.user_id
    LEFT JOIN user_api_keys ON counted.id = user_api_keys.user_id
) AS users
"""

# Largest LIMIT/OFFSET a 64-bit SQL integer can hold.
MAX_SQL_INTEGER = 2**63 - 1

README_TEMPLATE = "# {name}\n\nNo README provided for this package.\n"


def _as_datetime(value: Any) -> datetime | None:
    """SQLite hands textual selects back as strings; other engines as datetimes."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass
class PackageRow:
    """A package as seen through the packages view."""

    id: int
    name: str
    owner_username: str
    downloads: int
    latest_version: str
    published_at: datetime | None
    last_released_at: datetime | None
    description: str | None = None
    license: str | None = None
    homepage_url: str | None = None
    repository_url: str | None = None
    documentation_url: str | None = None
    bugs_url: str | None = None
    engines_go: str | None = None
    os: str | None = None

    @classmethod
    def from_mapping(cls, row: Any) -> PackageRow:
        data = {f.name: row[f.name] for f in fields(cls)}
        data["published_at"] = _as_datetime(data["published_at"])
        data["last_released_at"] = _as_datetime(data["last_released_at"])
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation."""
        return {
            "id": self.id,
            "name": self.name,
            "owner": self.owner_username,
            "downloads": self.downloads,
            "version": self.latest_version,
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
            "lastReleasedAt": (
                self.last_released_at.isoformat() if self.last_released_at else None
            ),
            "description": self.description,
            "license": self.license,
            "homepage": self.homepage_url,
            "repository": self.repository_url,
            "documentation": self.documentation_url,
            "bugs": self.bugs_url,
            "engines": {"go": self.engines_go},
            "os": list_os_names(self.os or ""),
        }


@dataclass
class UserRow:
    """A user as seen through the users view.

    ``password`` and ``api_key`` hold hashes and never leave ``to_dict()``.
    """

    id: int
    username: str
    name: str | None
    email: str
    is_public_email: bool
    packages_count: int
    joined_at: datetime | None
    password: str | None = None
    avatar: str | None = None
    url: str | None = None
    organization: str | None = None
    location: str | None = None
    github: str | None = None
    twitter: str | None = None
    stack_overflow: str | None = None
    linkedin: str | None = None
    api_key: str | None = None

    @classmethod
    def from_mapping(cls, row: Any) -> UserRow:
        data = {f.name: row[f.name] for f in fields(cls)}
        data["is_public_email"] = bool(data["is_public_email"])
        data["joined_at"] = _as_datetime(data["joined_at"])
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation."""
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "email": self.email if self.is_public_email else None,
            "packages": self.packages_count,
            "joinedAt": self.joined_at.isoformat() if self.joined_at else None,
            "avatar": self.avatar,
            "url": self.url,
            "organization": self.organization,
            "location": self.location,
            "social": {
                "github": self.github,
                "twitter": self.twitter,
                "stackOverflow": self.stack_overflow,
                "linkedin": self.linkedin,
            },
        }


@dataclass
class VersionHistory:
    """Released versions of one package, oldest first."""

    name: str
    id: int
    versions: list[tuple[str, datetime | None]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "id": self.id,
            "versions": [
                {"version": v, "releasedAt": at.isoformat() if at else None}
                for v, at in self.versions
            ],
        }


@dataclass
class ReadmeData:
    """A package README, content base64-encoded."""

    name: str
    version: str
    size: int
    content: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _view_query(
    view: str,
    where: str = "",
    params: Sequence[Any] = (),
    order_by: str = "",
    limit: int | None = None,
    offset: int | None = None,
) -> tuple[str, dict[str, Any]]:
    """Append filter, ordering and window to a view's SELECT.

    *where* and *order_by* must come from the search compiler (or be
    literal), never from request input.
    """
    sql = view
    binds: dict[str, Any] = {}
    if where:
        fragment, binds = bind_positional(where, params)
        sql = f"{sql} WHERE {fragment}"
    if order_by:
        sql = f"{sql} ORDER BY {order_by}"
    if limit is not None:
        sql = f"{sql} LIMIT :limit"
        binds["limit"] = limit
        if offset:
            sql = f"{sql} OFFSET :offset"
            binds["offset"] = offset
    return sql, binds


def _execute(session: Session, sql: str, binds: dict[str, Any]) -> Any:
    try:
        return session.execute(text(sql), binds)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Query failed: {e}") from e


def _out_of_range(limit: int | None, offset: int | None) -> bool:
    return any(v is not None and v > MAX_SQL_INTEGER for v in (limit, offset))


def query_packages(
    session: Session,
    where: str = "",
    params: Sequence[Any] = (),
    order_by: str = "",
    limit: int | None = None,
    offset: int | None = None,
) -> list[PackageRow]:
    """Low-level package query over the packages view.

    Args:
        session: Active database session.
        where: Filter with ``?`` placeholders, e.g. ``"id = ?"``.
        params: Values bound to the placeholders, in order.
        order_by: ORDER BY expression, e.g. ``"id ASC"``.
        limit: Maximum number of rows.
        offset: Rows to skip (only applied together with *limit*).

    Returns:
        Matching package rows. A window past the largest SQL integer
        matches nothing.

    Raises:
        DatabaseError: If the database rejects the query.
    """
    if _out_of_range(limit, offset):
        return []
    sql, binds = _view_query(PACKAGES_VIEW, where, params, order_by, limit, offset)
    log.debug("Package query: %s %r", " ".join(sql.split()), binds)
    result = _execute(session, sql, binds)
    return [PackageRow.from_mapping(row) for row in result.mappings()]


def query_users(
    session: Session,
    where: str = "",
    params: Sequence[Any] = (),
    order_by: str = "",
    limit: int | None = None,
    offset: int | None = None,
) -> list[UserRow]:
    """Low-level user query over the users view. See ``query_packages``."""
    if _out_of_range(limit, offset):
        return []
    sql, binds = _view_query(USERS_VIEW, where, params, order_by, limit, offset)
    log.debug("User query: %s %r", " ".join(sql.split()), binds)
    result = _execute(session, sql, binds)
    return [UserRow.from_mapping(row) for row in result.mappings()]


def search_packages(session: Session, search: CompiledSearch) -> list[PackageRow]:
    """Execute a compiled package search."""
    return query_packages(
        session, search.where, search.params, search.order_by, search.limit, search.offset
    )


def search_users(session: Session, search: CompiledSearch) -> list[UserRow]:
    """Execute a compiled user search."""
    return query_users(
        session, search.where, search.params, search.order_by, search.limit, search.offset
    )


def get_package(session: Session, name: str) -> PackageRow:
    """Fetch one package by name.

    Raises:
        PackageNotFoundError: If no package has that name.
    """
    rows = query_packages(session, "name = ?", (name,), "id ASC", 1)
    if not rows:
        raise PackageNotFoundError(name)
    return rows[0]


def get_user(session: Session, username: str) -> UserRow:
    """Fetch one user by username.

    Raises:
        UserNotFoundError: If no user has that username.
    """
    rows = query_users(session, "username = ?", (username,), "id ASC", 1)
    if not rows:
        raise UserNotFoundError(username)
    return rows[0]


def registry_total_downloads(session: Session) -> int:
    """Total package downloads across the registry."""
    return session.scalar(select(func.count(PackageDownload.id))) or 0


def package_downloads(session: Session, names: Iterable[str] | None = None) -> dict[str, int]:
    """Download counts per package name, optionally restricted to *names*."""
    stmt = (
        select(Package.name, func.count(PackageDownload.id))
        .outerjoin(PackageDownload, PackageDownload.package_id == Package.id)
        .group_by(Package.id, Package.name)
        .order_by(Package.name)
    )
    if names is not None:
        stmt = stmt.where(Package.name.in_(list(names)))
    return {name: count for name, count in session.execute(stmt)}


def package_versions(session: Session, name: str) -> VersionHistory:
    """Version history of a package, oldest release first.

    Raises:
        PackageNotFoundError: If no package has that name.
    """
    package_id = session.scalar(select(Package.id).where(Package.name == name))
    if package_id is None:
        raise PackageNotFoundError(name)

    stmt = (
        select(PackageVersion.version, PackageVersion.released_at)
        .where(PackageVersion.package_id == package_id)
        .order_by(PackageVersion.released_at, PackageVersion.id)
    )
    versions = [(version, released_at) for version, released_at in session.execute(stmt)]
    return VersionHistory(name=name, id=package_id, versions=versions)


def _default_readme(name: str) -> bytes:
    return README_TEMPLATE.format(name=name).encode("utf-8")


def package_readme(session: Session, name: str, version: str | None = None) -> ReadmeData:
    """README of a package version (the latest one by default).

    A version without a stored README gets a generated placeholder.

    Raises:
        PackageNotFoundError: If no package has that name.
        VersionNotFoundError: If the package has no such version.
    """
    package = session.scalar(select(Package).where(Package.name == name))
    if package is None:
        raise PackageNotFoundError(name)
    version = version or package.latest_version

    row = session.scalar(
        select(PackageVersion).where(
            PackageVersion.package_id == package.id, PackageVersion.version == version
        )
    )
    if row is None:
        raise VersionNotFoundError(name, version)

    content = row.readme_content
    readme_name = row.readme_name
    if not content:
        content = _default_readme(name)
        readme_name = "README.md"

    return ReadmeData(
        name=readme_name or "README.md",
        version=version,
        size=len(content),
        content=base64.b64encode(content).decode("ascii"),
    )
