"""Exception hierarchy for gopx."""

from __future__ import annotations


class GopxError(Exception):
    """Base exception for all gopx errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all gopx errors with a single
    except clause. ``status_code`` is the HTTP status an API
    layer should answer with.
    """

    status_code: int = 500


# Configuration Errors
class ConfigError(GopxError):
    """Configuration-related errors."""

    pass


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: object, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


class ColumnMappingError(GopxError):
    """A searchable entity is misconfigured.

    Raised while the entity configuration is built at import time,
    never while serving a request.
    """

    pass


# Database Errors
class DatabaseError(GopxError):
    """Database-related errors."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Failed to connect to database."""

    pass


class SchemaVersionError(DatabaseError):
    """Database schema is incompatible."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Incompatible database schema: {detail}")


# Query Errors
class QueryError(GopxError):
    """A search request cannot be turned into a filter."""

    status_code = 400


class SearchParseError(QueryError):
    """Raised when a search query cannot be tokenized."""

    def __init__(self, query: str, message: str) -> None:
        self.query = query
        super().__init__(f"Failed to parse search query '{query}': {message}")


class RelationalValueError(QueryError):
    """A qualifier value could not be classified as comparison or range."""

    def __init__(self, column: str, value: str, reason: str) -> None:
        self.column = column
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value '{value}' for {column}: {reason}")


# Authentication Errors
class AuthError(GopxError):
    """Authentication-related errors."""

    status_code = 401


class AuthParseError(AuthError):
    """Authorization header value is malformed."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid auth data: {reason}")


# Validation Errors
class ValidationError(GopxError):
    """Invalid input value."""

    status_code = 400

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


# Entity Not Found Errors
class NotFoundError(GopxError):
    """Requested entity not found."""

    status_code = 404


class PackageNotFoundError(NotFoundError):
    """Package doesn't exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Package not found: {name}")


class UserNotFoundError(NotFoundError):
    """User doesn't exist."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"User not found: {username}")


class VersionNotFoundError(NotFoundError):
    """Package version doesn't exist."""

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        super().__init__(f"Version {version} of package {name} not found")


# VCS Registry Errors
class VCSError(GopxError):
    """Errors talking to the VCS registry."""

    status_code = 502


class VCSConnectionError(VCSError):
    """The VCS registry could not be reached."""

    pass


class VCSResponseError(VCSError):
    """The VCS registry answered with an unexpected status."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"Response code {status}: {message}")
