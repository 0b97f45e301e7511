"""Validation of package metadata submitted on publish."""

from __future__ import annotations

import re
from urllib.parse import quote

from gopx.exceptions import ValidationError

PACKAGE_NAME_MAX_LENGTH = 214

_SPECIAL_CHARS_RE = re.compile(r"[@.~\\/!'()*\s]")

# Semantic version; minor and patch may be omitted ("1.2" means "1.2.0").
_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)(?:\.(0|[1-9]\d*))?(?:\.(0|[1-9]\d*))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

_OS_SPLIT_RE = re.compile(r"\s*,\s*")
_ARCH_SPLIT_RE = re.compile(r"\s*:\s*")


def validate_package_name(name: str) -> None:
    """Check a package name against the naming rules.

    Raises:
        ValidationError: If the name is empty or too long, has uppercase
            letters, is not URL-safe, or contains one of
            ``@ . ~ \\ / ! ' ( ) *`` or whitespace.
    """
    if not 0 < len(name) < PACKAGE_NAME_MAX_LENGTH:
        raise ValidationError(
            "package name",
            name,
            f"must be non-empty and shorter than {PACKAGE_NAME_MAX_LENGTH} characters",
        )
    if name.lower() != name:
        raise ValidationError("package name", name, "must contain only lowercase characters")
    if quote(name, safe="$&+:=@") != name:
        raise ValidationError("package name", name, "must not contain non-URL-safe characters")
    if _SPECIAL_CHARS_RE.search(name):
        raise ValidationError(
            "package name",
            name,
            "must not contain any of these special characters: @, ., ~, \\, /, !, ', (, ), *",
        )


def _parse_version(version: str) -> tuple[int, int, int, str]:
    match = _SEMVER_RE.match(version.strip())
    if not match:
        raise ValidationError("package version", version, "should be in semver format")
    major, minor, patch, prerelease, _build = match.groups()
    return int(major), int(minor or 0), int(patch or 0), prerelease or ""


def sanitize_package_version(version: str) -> str:
    """Normalize a semver string for storage: ``MAJOR.MINOR.PATCH[-PRERELEASE]``.

    Build metadata and a leading ``v`` are dropped.

    Raises:
        ValidationError: If *version* is not a semantic version.
    """
    major, minor, patch, prerelease = _parse_version(version)
    sanitized = f"{major}.{minor}.{patch}"
    if prerelease:
        sanitized = f"{sanitized}-{prerelease}"
    return sanitized


def is_same_version(v1: str, v2: str) -> bool:
    """Whether two semver strings name the same version (build metadata ignored)."""
    return _parse_version(v1) == _parse_version(v2)


def list_os_names(os_value: str) -> list[str]:
    """Split an ``os`` field like ``"linux:amd64, darwin"`` into ``["linux:amd64", "darwin"]``."""
    os_value = os_value.strip()
    if not os_value:
        return []

    names: list[str] = []
    for entry in _OS_SPLIT_RE.split(os_value):
        if not entry:
            continue
        parts = _ARCH_SPLIT_RE.split(entry)
        name = parts[0]
        if len(parts) >= 2 and parts[1]:
            name = f"{name}:{parts[1]}"
        names.append(name)
    return names
