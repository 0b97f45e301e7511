"""Unit tests for package metadata validation."""

from __future__ import annotations

import pytest

from gopx.exceptions import ValidationError
from gopx.validate import (
    PACKAGE_NAME_MAX_LENGTH,
    is_same_version,
    list_os_names,
    sanitize_package_version,
    validate_package_name,
)


class TestPackageName:
    @pytest.mark.parametrize("name", ["websocket", "go-router", "log_fmt", "x1"])
    def test_valid(self, name: str) -> None:
        validate_package_name(name)

    @pytest.mark.parametrize(
        "name",
        [
            "",
            "a" * PACKAGE_NAME_MAX_LENGTH,
            "WebSocket",
            "web socket",
            "web.socket",
            "~home",
            "a/b",
            "what!",
            "fn()",
            "star*",
            "caf%C3%A9",
            "café",
        ],
    )
    def test_invalid(self, name: str) -> None:
        with pytest.raises(ValidationError):
            validate_package_name(name)

    def test_error_names_field(self) -> None:
        with pytest.raises(ValidationError, match="Invalid package name"):
            validate_package_name("Bad")


class TestVersion:
    @pytest.mark.parametrize(
        ("version", "expected"),
        [
            ("1.2.3", "1.2.3"),
            ("v1.2.3", "1.2.3"),
            ("1.2", "1.2.0"),
            ("2", "2.0.0"),
            ("1.0.0-beta.1", "1.0.0-beta.1"),
            ("1.0.0+build.5", "1.0.0"),
            (" 3.1.4 ", "3.1.4"),
        ],
    )
    def test_sanitize(self, version: str, expected: str) -> None:
        assert sanitize_package_version(version) == expected

    @pytest.mark.parametrize("version", ["", "latest", "1.2.3.4", "01.2.3", "1..2"])
    def test_invalid(self, version: str) -> None:
        with pytest.raises(ValidationError):
            sanitize_package_version(version)

    def test_same_version(self) -> None:
        assert is_same_version("v1.2", "1.2.0")
        assert is_same_version("1.0.0+a", "1.0.0+b")
        assert not is_same_version("1.0.0", "1.0.0-rc.1")


class TestOsNames:
    def test_split(self) -> None:
        assert list_os_names("linux:amd64, darwin") == ["linux:amd64", "darwin"]

    def test_spaces_around_separators(self) -> None:
        assert list_os_names(" linux : arm64 ,windows ") == ["linux:arm64", "windows"]

    def test_empty_arch_dropped(self) -> None:
        assert list_os_names("linux:") == ["linux"]

    def test_blank(self) -> None:
        assert list_os_names("  ") == []
