"""Shared pytest fixtures."""

from __future__ import annotations

import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.orm import sessionmaker

from gopx.auth import create_hash
from gopx.db.models import (
    Package,
    PackageDownload,
    PackageTag,
    PackageVersion,
    User,
    UserApiKey,
    UserSocialAccount,
)
from gopx.db.session import get_engine, init_db

if TYPE_CHECKING:
    from collections.abc import Generator

    from sqlalchemy.orm import Session


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample config file."""
    config_path = temp_dir / "config.toml"
    config_path.write_text("""[database]
url = "sqlite:///registry.db"

[search]
packages_max_page_size = 50
users_max_page_size = 20

[display]
colored_output = false

[vcs]
host = "vcs.internal"
port = 9090
auth_key = "s3cret"
timeout = 5
""")
    return config_path


def _populate(session: Session) -> None:
    """Three users and three packages with tags, downloads and versions.

    alice owns websocket (5 downloads) and router (2 downloads),
    bob owns logfmt (no downloads), carol owns nothing.
    """
    alice = User(
        username="alice",
        name="Alice Anders",
        email="alice@example.com",
        is_public_email=True,
        password=create_hash("wonderland"),
        location="Berlin, Germany",
        joined_at=datetime(2018, 5, 1, 9, 0),
    )
    bob = User(
        username="bob",
        name="Bob Brown",
        email="bob@example.com",
        is_public_email=False,
        password=create_hash("hunter2"),
        location="New York",
        joined_at=datetime(2019, 7, 15, 12, 30),
    )
    carol = User(
        username="carol",
        name="Carol Chen",
        email="carol@example.com",
        password=create_hash("carol"),
        joined_at=datetime(2021, 1, 10, 8, 0),
    )
    session.add_all([alice, bob, carol])
    session.flush()

    session.add(UserSocialAccount(user_id=alice.id, github="alice-gh", twitter="alice_tw"))
    session.add(UserApiKey(user_id=alice.id, api_key=create_hash("alice-api-key")))

    websocket = Package(
        name="websocket",
        owner_id=alice.id,
        latest_version="1.2.0",
        published_at=datetime(2019, 3, 1, 10, 0),
        last_released_at=datetime(2020, 6, 1, 10, 0),
        description="Fast websocket client and server",
        license="MIT",
        engines_go=">=1.11",
        os="linux, darwin",
    )
    router = Package(
        name="router",
        owner_id=alice.id,
        latest_version="0.3.1",
        published_at=datetime(2020, 2, 10, 10, 0),
        last_released_at=datetime(2020, 11, 20, 10, 0),
        description="HTTP request router",
    )
    logfmt = Package(
        name="logfmt",
        owner_id=bob.id,
        latest_version="2.0.0",
        published_at=datetime(2021, 4, 5, 10, 0),
        last_released_at=datetime(2021, 8, 30, 10, 0),
        description="Structured log formatting",
    )
    session.add_all([websocket, router, logfmt])
    session.flush()

    session.add_all(
        [
            PackageTag(package_id=websocket.id, tag="network"),
            PackageTag(package_id=websocket.id, tag="websocket"),
            PackageTag(package_id=router.id, tag="http"),
            PackageTag(package_id=router.id, tag="network"),
        ]
    )
    session.add_all(
        [PackageDownload(package_id=websocket.id) for _ in range(5)]
        + [PackageDownload(package_id=router.id) for _ in range(2)]
    )
    session.add_all(
        [
            PackageVersion(
                package_id=websocket.id,
                version="1.0.0",
                released_at=datetime(2019, 3, 1, 10, 0),
                readme_name="README.md",
                readme_content=b"# websocket\n\nFast websockets.\n",
            ),
            PackageVersion(
                package_id=websocket.id,
                version="1.2.0",
                released_at=datetime(2020, 6, 1, 10, 0),
            ),
            PackageVersion(
                package_id=logfmt.id,
                version="2.0.0",
                released_at=datetime(2021, 4, 5, 10, 0),
                readme_name="README.txt",
                readme_content=b"logfmt\n",
            ),
        ]
    )


@pytest.fixture
def registry_db_url(temp_dir: Path) -> str:
    """A file-backed SQLite registry populated with sample data."""
    url = f"sqlite:///{temp_dir / 'registry.db'}"
    engine = get_engine(url)
    try:
        init_db(engine)
        with sessionmaker(bind=engine)() as session:
            _populate(session)
            session.commit()
    finally:
        engine.dispose()
    return url


@pytest.fixture
def registry_session(registry_db_url: str) -> Generator[Session, None, None]:
    """A session on the populated sample registry."""
    engine = get_engine(registry_db_url)
    session = sessionmaker(bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
