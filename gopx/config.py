"""Configuration management for gopx."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from gopx.exceptions import (
    ConfigParseError,
    ConfigValidationError,
)
from gopx.search.query import DEFAULT_MAX_PAGE_SIZE, ENTITIES, EntitySearch

# Environment variables overriding config file values
ENV_DATABASE_URL = "GOPX_DATABASE_URL"
ENV_VCS_HOST = "GOPX_VCS_API_HOST"
ENV_VCS_PORT = "GOPX_VCS_API_PORT"
ENV_VCS_AUTH_KEY = "GOPX_VCS_API_AUTH_KEY"


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "gopx" / "config.toml"


def get_default_database_url() -> str:
    """Get the default (SQLite) database URL."""
    return f"sqlite:///{Path.home() / '.local' / 'share' / 'gopx' / 'registry.db'}"


@dataclass
class Config:
    """Application configuration.

    Attributes:
        database_url: SQLAlchemy URL of the registry database.
        packages_max_page_size: Page-size ceiling for package searches.
        users_max_page_size: Page-size ceiling for user searches.
        colored_output: Whether to use colored terminal output.
        vcs_host: Host of the VCS registry service.
        vcs_port: Port of the VCS registry service.
        vcs_auth_key: Key sent as ``Authorization: AuthKey <key>``.
        vcs_timeout: Request timeout for the VCS registry, in seconds.
        config_path: Path where config was loaded from (None if defaults).
    """

    database_url: str = field(default_factory=get_default_database_url)
    packages_max_page_size: int = DEFAULT_MAX_PAGE_SIZE
    users_max_page_size: int = DEFAULT_MAX_PAGE_SIZE
    colored_output: bool = True
    vcs_host: str = "localhost"
    vcs_port: int = 8080
    vcs_auth_key: str | None = None
    vcs_timeout: float = 30.0
    config_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns:
            List of warning messages for non-fatal issues.

        Raises:
            ConfigValidationError: If a critical validation fails.
        """
        warnings: list[str] = []

        for key in ("packages_max_page_size", "users_max_page_size"):
            value = getattr(self, key)
            if value <= 0:
                raise ConfigValidationError(f"search.{key}", value, "must be positive")

        if not 0 < self.vcs_port < 65536:
            raise ConfigValidationError("vcs.port", self.vcs_port, "must be a TCP port")

        if self.database_url.startswith("sqlite:///"):
            db_path = Path(self.database_url.removeprefix("sqlite:///")).expanduser()
            if not db_path.exists():
                warnings.append(
                    f"Database not found: {db_path}. Create it with: gopx init-db"
                )

        if self.vcs_auth_key is None:
            warnings.append(
                f"No VCS registry auth key configured (set vcs.auth_key or {ENV_VCS_AUTH_KEY})"
            )

        return warnings

    def apply_env(self, environ: Mapping[str, str] | None = None) -> None:
        """Override values from ``GOPX_*`` environment variables."""
        environ = os.environ if environ is None else environ

        if environ.get(ENV_DATABASE_URL):
            self.database_url = environ[ENV_DATABASE_URL]
        if environ.get(ENV_VCS_HOST):
            self.vcs_host = environ[ENV_VCS_HOST]
        if environ.get(ENV_VCS_PORT):
            value = environ[ENV_VCS_PORT]
            try:
                self.vcs_port = int(value)
            except ValueError:
                raise ConfigValidationError(ENV_VCS_PORT, value, "must be an integer") from None
        if environ.get(ENV_VCS_AUTH_KEY):
            self.vcs_auth_key = environ[ENV_VCS_AUTH_KEY]

    def search_entity(self, name: str) -> EntitySearch:
        """Search configuration of an entity with the configured page size.

        Raises:
            KeyError: For an unknown entity name.
        """
        entity = ENTITIES[name]
        return entity.with_max_page_size(getattr(self, f"{name}_max_page_size"))


def load_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[Config, list[str]]:
    """Load configuration from file or use defaults.

    Environment variables take precedence over the file.

    Args:
        config_path: Explicit config file path. If None, uses default location.
        environ: Environment to read overrides from (default: ``os.environ``).

    Returns:
        Tuple of (Config object, list of warning messages).

    Raises:
        ConfigParseError: If config file exists but has invalid syntax.
        ConfigValidationError: If config values are invalid.
    """
    warnings: list[str] = []

    if config_path is None:
        config_path = get_default_config_path()

    config_path = config_path.expanduser().resolve()

    if not config_path.exists():
        # Use defaults
        config = Config()
        warnings.append(
            f"No config file found at {config_path}. Using defaults. "
            f"Create config with: gopx init-config"
        )
    else:
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigParseError(config_path, str(e)) from e

        config = _parse_config_dict(data, config_path)

    config.apply_env(environ)
    config_warnings = config.validate()

    return config, warnings + config_warnings


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [database] section
    database = data.get("database", {})
    if "url" in database:
        value = database["url"]
        if not isinstance(value, str):
            raise ConfigValidationError("database.url", value, "must be a string URL")
        config.database_url = value

    # Parse [search] section
    search = data.get("search", {})
    for key in ("packages_max_page_size", "users_max_page_size"):
        if key in search:
            value = search[key]
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigValidationError(f"search.{key}", value, "must be an integer")
            setattr(config, key, value)

    # Parse [display] section
    display = data.get("display", {})
    if "colored_output" in display:
        value = display["colored_output"]
        if not isinstance(value, bool):
            raise ConfigValidationError("display.colored_output", value, "must be a boolean")
        config.colored_output = value

    # Parse [vcs] section
    vcs = data.get("vcs", {})
    if "host" in vcs:
        value = vcs["host"]
        if not isinstance(value, str):
            raise ConfigValidationError("vcs.host", value, "must be a string")
        config.vcs_host = value

    if "port" in vcs:
        value = vcs["port"]
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigValidationError("vcs.port", value, "must be an integer")
        config.vcs_port = value

    if "auth_key" in vcs:
        value = vcs["auth_key"]
        if value is not None and not isinstance(value, str):
            raise ConfigValidationError("vcs.auth_key", value, "must be a string or null")
        config.vcs_auth_key = value

    if "timeout" in vcs:
        value = vcs["timeout"]
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise ConfigValidationError("vcs.timeout", value, "must be a number")
        config.vcs_timeout = float(value)

    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Path to save to. If None, uses config.config_path or default.
    """
    if config_path is None:
        config_path = config.config_path or get_default_config_path()

    config_path = config_path.expanduser().resolve()

    # Ensure directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # Build TOML structure
    data: dict[str, Any] = {
        "database": {"url": config.database_url},
        "search": {
            "packages_max_page_size": config.packages_max_page_size,
            "users_max_page_size": config.users_max_page_size,
        },
        "display": {"colored_output": config.colored_output},
        "vcs": {
            "host": config.vcs_host,
            "port": config.vcs_port,
            "timeout": config.vcs_timeout,
        },
    }

    if config.vcs_auth_key is not None:
        data["vcs"]["auth_key"] = config.vcs_auth_key

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
