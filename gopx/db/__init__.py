"""Database layer for the package registry."""

from gopx.db.models import (
    Base,
    Package,
    PackageDownload,
    PackageTag,
    PackageVersion,
    User,
    UserApiKey,
    UserSocialAccount,
)
from gopx.db.queries import (
    PackageRow,
    ReadmeData,
    UserRow,
    VersionHistory,
    get_package,
    get_user,
    package_downloads,
    package_readme,
    package_versions,
    query_packages,
    query_users,
    registry_total_downloads,
    search_packages,
    search_users,
)
from gopx.db.session import get_engine, get_session, init_db

__all__ = [
    # Models
    "Base",
    "User",
    "UserSocialAccount",
    "UserApiKey",
    "Package",
    "PackageTag",
    "PackageDownload",
    "PackageVersion",
    # Session
    "get_engine",
    "get_session",
    "init_db",
    # Rows
    "PackageRow",
    "UserRow",
    "VersionHistory",
    "ReadmeData",
    # Read queries
    "query_packages",
    "query_users",
    "search_packages",
    "search_users",
    "get_package",
    "get_user",
    "registry_total_downloads",
    "package_downloads",
    "package_versions",
    "package_readme",
]
