"""Unit tests for Authorization header parsing and user lookup."""

from __future__ import annotations

import base64

import pytest
from sqlalchemy.orm import Session

from gopx.auth import (
    ApiKeyCredentials,
    BasicCredentials,
    UnknownCredentials,
    authenticate,
    create_hash,
    credentials_clause,
    parse_authorization,
)
from gopx.exceptions import AuthParseError


def _basic(value: str) -> str:
    return "Basic " + base64.b64encode(value.encode()).decode()


class TestParseAuthorization:
    def test_basic(self) -> None:
        assert parse_authorization(_basic("alice:wonderland")) == BasicCredentials(
            "alice", "wonderland"
        )

    def test_basic_password_with_colon(self) -> None:
        assert parse_authorization(_basic("alice:a:b")) == BasicCredentials("alice", "a:b")

    def test_basic_without_colon(self) -> None:
        assert parse_authorization(_basic("alice")) == BasicCredentials("alice", "")

    def test_basic_bad_base64(self) -> None:
        with pytest.raises(AuthParseError, match="Invalid auth data"):
            parse_authorization("Basic !!!not-base64!!!")

    def test_api_key(self) -> None:
        assert parse_authorization("APIKey abc123") == ApiKeyCredentials("abc123")

    def test_unknown_scheme(self) -> None:
        assert parse_authorization("Bearer token") == UnknownCredentials("Bearer")

    @pytest.mark.parametrize("header", ["", "Basic", "   "])
    def test_missing_credentials(self, header: str) -> None:
        with pytest.raises(AuthParseError):
            parse_authorization(header)


class TestCredentialsClause:
    def test_basic_hashes_password(self) -> None:
        clause = credentials_clause(BasicCredentials("alice", "pw"))
        assert clause.fragment == "username = ? and password = ?"
        assert clause.params == ("alice", create_hash("pw"))

    def test_api_key_hashed(self) -> None:
        clause = credentials_clause(ApiKeyCredentials("k"))
        assert clause.params == (create_hash("k"),)

    def test_unknown_scheme_rejected(self) -> None:
        with pytest.raises(AuthParseError, match="not supported"):
            credentials_clause(UnknownCredentials("Bearer"))


def test_create_hash_is_stable_hex() -> None:
    digest = create_hash("secret")
    assert digest == create_hash("secret")
    assert len(digest) == 64
    assert digest != create_hash("Secret")


class TestAuthenticate:
    def test_basic_login(self, registry_session: Session) -> None:
        user = authenticate(registry_session, _basic("bob:hunter2"))
        assert user is not None
        assert user.username == "bob"

    def test_wrong_password(self, registry_session: Session) -> None:
        assert authenticate(registry_session, _basic("bob:hunter3")) is None

    def test_api_key(self, registry_session: Session) -> None:
        user = authenticate(registry_session, "APIKey alice-api-key")
        assert user is not None
        assert user.username == "alice"

    def test_unknown_api_key(self, registry_session: Session) -> None:
        assert authenticate(registry_session, "APIKey nope") is None
