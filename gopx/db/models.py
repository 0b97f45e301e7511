"""SQLAlchemy ORM models for the registry database."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    """Naive UTC timestamp, as stored in DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for registry ORM models."""

    pass


class User(Base):
    """A registered user; packages are owned by users."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True)
    name: Mapped[str | None] = mapped_column(String(256))
    email: Mapped[str] = mapped_column(String(256), unique=True)
    is_public_email: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")
    password: Mapped[str] = mapped_column(String(128))
    avatar: Mapped[str | None] = mapped_column(Text)
    url: Mapped[str | None] = mapped_column(Text)
    organization: Mapped[str | None] = mapped_column(String(256))
    location: Mapped[str | None] = mapped_column(String(256))
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    __table_args__ = (Index("ix_users_joined_at", "joined_at"),)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


class UserSocialAccount(Base):
    """Social network handles shown on a user's profile."""

    __tablename__ = "user_social_accounts"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    github: Mapped[str | None] = mapped_column(String(128))
    twitter: Mapped[str | None] = mapped_column(String(128))
    stack_overflow: Mapped[str | None] = mapped_column(String(128))
    linkedin: Mapped[str | None] = mapped_column(String(128))


class UserApiKey(Base):
    """Hashed API key of a user."""

    __tablename__ = "user_api_keys"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    api_key: Mapped[str] = mapped_column(String(128), unique=True)


class Package(Base):
    """A published package and the metadata of its latest release."""

    __tablename__ = "packages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(214), unique=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    latest_version: Mapped[str] = mapped_column(String(64))
    published_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    last_released_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    description: Mapped[str | None] = mapped_column(Text)
    license: Mapped[str | None] = mapped_column(String(64))
    homepage_url: Mapped[str | None] = mapped_column(Text)
    repository_url: Mapped[str | None] = mapped_column(Text)
    documentation_url: Mapped[str | None] = mapped_column(Text)
    bugs_url: Mapped[str | None] = mapped_column(Text)
    engines_go: Mapped[str | None] = mapped_column(String(64))
    os: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        Index("ix_packages_owner_id", "owner_id"),
        Index("ix_packages_published_at", "published_at"),
        Index("ix_packages_last_released_at", "last_released_at"),
    )

    def __repr__(self) -> str:
        return f"<Package(id={self.id}, name='{self.name}', version='{self.latest_version}')>"


class PackageTag(Base):
    """Multi-value tags of a package."""

    __tablename__ = "package_tags"

    package_id: Mapped[int] = mapped_column(ForeignKey("packages.id"), primary_key=True)
    tag: Mapped[str] = mapped_column(String(64), primary_key=True)

    __table_args__ = (Index("ix_package_tags_tag", "tag"),)


class PackageDownload(Base):
    """One download of a package; counted to rank packages."""

    __tablename__ = "package_downloads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    package_id: Mapped[int] = mapped_column(ForeignKey("packages.id"))
    downloaded_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    __table_args__ = (Index("ix_package_downloads_package_id", "package_id"),)


class PackageVersion(Base):
    """A released version of a package, with its README."""

    __tablename__ = "package_versions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    package_id: Mapped[int] = mapped_column(ForeignKey("packages.id"))
    version: Mapped[str] = mapped_column(String(64))
    released_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    readme_name: Mapped[str | None] = mapped_column(String(256))
    readme_size: Mapped[int | None] = mapped_column(Integer)
    readme_content: Mapped[bytes | None] = mapped_column(LargeBinary)

    __table_args__ = (UniqueConstraint("package_id", "version", name="uq_package_versions"),)

    def __repr__(self) -> str:
        return f"<PackageVersion(package_id={self.package_id}, version='{self.version}')>"
