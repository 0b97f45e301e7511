"""Unit tests for configuration."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from gopx.config import Config, load_config, save_config
from gopx.exceptions import ConfigParseError, ConfigValidationError


def test_default_config() -> None:
    """Test that default config has sensible values."""
    config = Config()
    assert config.database_url.startswith("sqlite:///")
    assert config.packages_max_page_size == 100
    assert config.users_max_page_size == 100
    assert config.colored_output is True
    assert config.vcs_auth_key is None


def test_load_missing_config(temp_dir: Path) -> None:
    """A missing file yields defaults and a warning."""
    config, warnings = load_config(temp_dir / "nonexistent.toml", environ={})

    assert config.config_path is None
    assert any("No config file found" in w for w in warnings)


def test_load_valid_config(sample_config: Path) -> None:
    config, _ = load_config(sample_config, environ={})

    assert config.database_url == "sqlite:///registry.db"
    assert config.packages_max_page_size == 50
    assert config.users_max_page_size == 20
    assert config.colored_output is False
    assert config.vcs_host == "vcs.internal"
    assert config.vcs_port == 9090
    assert config.vcs_auth_key == "s3cret"
    assert config.vcs_timeout == 5.0
    assert config.config_path == sample_config.resolve()


def test_load_invalid_toml(temp_dir: Path) -> None:
    config_path = temp_dir / "invalid.toml"
    config_path.write_text("this is not valid [ toml")

    with pytest.raises(ConfigParseError):
        load_config(config_path, environ={})


@pytest.mark.parametrize(
    "content",
    [
        '[display]\ncolored_output = "yes"\n',
        '[search]\npackages_max_page_size = "10"\n',
        "[search]\nusers_max_page_size = 0\n",
        '[vcs]\nport = "80"\n',
        "[vcs]\nport = 70000\n",
        "[database]\nurl = 5\n",
    ],
)
def test_config_validation_invalid_values(temp_dir: Path, content: str) -> None:
    config_path = temp_dir / "bad.toml"
    config_path.write_text(content)

    with pytest.raises(ConfigValidationError):
        load_config(config_path, environ={})


class TestEnvironmentOverrides:
    def test_overrides_file(self, sample_config: Path) -> None:
        config, _ = load_config(
            sample_config,
            environ={
                "GOPX_DATABASE_URL": "sqlite:///other.db",
                "GOPX_VCS_API_HOST": "vcs.example",
                "GOPX_VCS_API_PORT": "7000",
                "GOPX_VCS_API_AUTH_KEY": "from-env",
            },
        )
        assert config.database_url == "sqlite:///other.db"
        assert config.vcs_host == "vcs.example"
        assert config.vcs_port == 7000
        assert config.vcs_auth_key == "from-env"

    def test_empty_values_ignored(self, sample_config: Path) -> None:
        config, _ = load_config(sample_config, environ={"GOPX_VCS_API_HOST": ""})
        assert config.vcs_host == "vcs.internal"

    def test_bad_port(self, sample_config: Path) -> None:
        with pytest.raises(ConfigValidationError):
            load_config(sample_config, environ={"GOPX_VCS_API_PORT": "http"})


def test_missing_auth_key_warns() -> None:
    warnings = Config(database_url="sqlite://").validate()
    assert any("auth key" in w for w in warnings)


def test_search_entity_uses_page_size() -> None:
    config = Config(users_max_page_size=7)
    assert config.search_entity("users").max_page_size == 7
    assert config.search_entity("packages").max_page_size == 100


def test_save_and_reload(temp_dir: Path) -> None:
    config_path = temp_dir / "nested" / "config.toml"
    config = Config(database_url="sqlite:///x.db", vcs_auth_key="k", users_max_page_size=30)
    save_config(config, config_path)

    data = tomllib.loads(config_path.read_text())
    assert data["vcs"]["auth_key"] == "k"

    reloaded, _ = load_config(config_path, environ={})
    assert reloaded.database_url == "sqlite:///x.db"
    assert reloaded.users_max_page_size == 30
    assert reloaded.vcs_auth_key == "k"


def test_example_config_loads(temp_dir: Path) -> None:
    from importlib import resources

    config_path = temp_dir / "example.toml"
    config_path.write_text(resources.files("gopx").joinpath("config.example.toml").read_text())
    config, _ = load_config(config_path, environ={})
    assert config.vcs_port == 8080
