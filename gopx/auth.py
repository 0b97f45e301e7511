"""Authorization header parsing.

Two schemes are understood::

    Authorization: Basic <base64 of "username:password">
    Authorization: APIKey <key>

Any other scheme parses to ``UnknownCredentials`` so callers can answer
with "not supported" instead of "malformed".
"""

from __future__ import annotations

import base64
import binascii
import hashlib
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gopx.db.queries import UserRow, query_users
from gopx.exceptions import AuthParseError
from gopx.search.clauses import Clause

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

SCHEME_BASIC = "Basic"
SCHEME_API_KEY = "APIKey"


@dataclass(frozen=True)
class BasicCredentials:
    username: str
    password: str


@dataclass(frozen=True)
class ApiKeyCredentials:
    api_key: str


@dataclass(frozen=True)
class UnknownCredentials:
    """Credentials in a scheme this service does not support."""

    scheme: str


Credentials = BasicCredentials | ApiKeyCredentials | UnknownCredentials


def _parse_basic(value: str) -> BasicCredentials:
    try:
        decoded = base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise AuthParseError(f"invalid basic auth base64 value: {e}") from e

    # A missing colon means an empty password
    username, _, password = decoded.partition(":")
    return BasicCredentials(username=username, password=password)


def parse_authorization(header: str) -> Credentials:
    """Parse an ``Authorization`` header value.

    Raises:
        AuthParseError: If the value has no scheme/credentials pair or
            Basic credentials are not valid base64.
    """
    parts = header.split()
    if len(parts) < 2:
        raise AuthParseError("expected '<scheme> <credentials>'")

    scheme, value = parts[0], parts[1]
    if scheme == SCHEME_BASIC:
        return _parse_basic(value)
    if scheme == SCHEME_API_KEY:
        return ApiKeyCredentials(api_key=value)
    return UnknownCredentials(scheme=scheme)


def create_hash(value: str) -> str:
    """Hash a secret the way passwords and API keys are stored."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def credentials_clause(credentials: Credentials) -> Clause:
    """Filter selecting the user the credentials belong to.

    Raises:
        AuthParseError: For credentials in an unsupported scheme.
    """
    match credentials:
        case BasicCredentials(username=username, password=password):
            return Clause("username = ? and password = ?", (username, create_hash(password)))
        case ApiKeyCredentials(api_key=api_key):
            return Clause("api_key = ?", (create_hash(api_key),))
        case UnknownCredentials(scheme=scheme):
            raise AuthParseError(f"auth type {scheme} is not supported yet")
    raise AuthParseError(f"unrecognized credentials {credentials!r}")


def authenticate(session: Session, header: str) -> UserRow | None:
    """Resolve an ``Authorization`` header to a user.

    Returns:
        The matching user, or None if the credentials match nobody.

    Raises:
        AuthParseError: If the header is malformed or uses an
            unsupported scheme.
    """
    clause = credentials_clause(parse_authorization(header))
    rows = query_users(session, clause.fragment, clause.params, "id ASC", 1)
    return rows[0] if rows else None
