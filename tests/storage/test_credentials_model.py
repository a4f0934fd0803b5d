"""Tests for credential validation, serialization and expiry.

Tests cover:
- OAuthCredentials camelCase JSON representation
- BaseTokenStorage validation, key sanitization, expiry
- deserialize -> CorruptDataError
- ClearResult aggregation
"""

from __future__ import annotations

import json

import pytest

from mcp_token_vault.exceptions import AggregateClearError, CorruptDataError, NotFoundError, ValidationError
from mcp_token_vault.storage.base import BaseTokenStorage, ClearOutcome, ClearResult
from mcp_token_vault.storage.models import OAuthCredentials, OAuthToken, now_ms


# ============================================================================
# Tests: OAuthCredentials Model
# ============================================================================


class TestOAuthCredentials:
    """Tests for the credential record model."""

    def test_to_json_uses_camel_case_keys(self, credentials: OAuthCredentials) -> None:
        """Given a record, JSON uses camelCase keys."""
        # Act
        data = json.loads(credentials.to_json())

        # Assert
        assert data["serverName"] == "github"
        assert data["token"]["accessToken"] == "gho_test-access-token"
        assert data["token"]["tokenType"] == "Bearer"
        assert data["mcpServerUrl"] == "https://mcp.example.com/github"

    def test_to_json_omits_unset_optionals(self) -> None:
        """Given no optional fields, they are absent from JSON."""
        # Arrange
        creds = OAuthCredentials(
            server_name="s",
            token=OAuthToken(access_token="a", token_type="Bearer"),
        )

        # Act
        data = json.loads(creds.to_json())

        # Assert
        assert "clientId" not in data
        assert "expiresAt" not in data["token"]

    def test_from_json_accepts_stored_representation(self) -> None:
        """Given a camelCase payload, from_json builds the record."""
        # Arrange
        payload = json.dumps(
            {
                "serverName": "linear",
                "token": {"accessToken": "tok", "tokenType": "Bearer", "expiresAt": 123},
                "updatedAt": 456,
            }
        )

        # Act
        creds = OAuthCredentials.from_json(payload)

        # Assert
        assert creds.server_name == "linear"
        assert creds.token.expires_at == 123
        assert creds.updated_at == 456


# ============================================================================
# Tests: Validation
# ============================================================================


class TestValidateCredentials:
    """Tests for BaseTokenStorage.validate_credentials."""

    def test_valid_record_passes(self, credentials: OAuthCredentials) -> None:
        """Given all required fields, no error is raised."""
        BaseTokenStorage.validate_credentials(credentials)

    @pytest.mark.parametrize(
        "field,kwargs,match",
        [
            ("server_name", {"server_name": ""}, "Server name"),
            ("access_token", {"access_token": ""}, "Access token"),
            ("token_type", {"token_type": ""}, "Token type"),
        ],
    )
    def test_empty_required_field_raises(self, make_creds, field: str, kwargs: dict, match: str) -> None:
        """Given an empty required field, ValidationError names it."""
        # Arrange
        creds = make_creds(**kwargs)

        # Act & Assert
        with pytest.raises(ValidationError, match=match):
            BaseTokenStorage.validate_credentials(creds)


# ============================================================================
# Tests: Key Sanitization
# ============================================================================


class TestSanitizeServerName:
    """Tests for storage key sanitization."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("github", "github"),
            ("my-server_1.0", "my-server_1.0"),
            ("my server", "my_server"),
            ("https://mcp.example.com/x", "https___mcp.example.com_x"),
            ("ünïcode", "_n_code"),
        ],
    )
    def test_replaces_unsafe_characters(self, name: str, expected: str) -> None:
        """Given a server name, unsafe characters become underscores."""
        assert BaseTokenStorage.sanitize_server_name(name) == expected

    def test_is_idempotent(self) -> None:
        """Given an already sanitized key, sanitizing again is a no-op."""
        # Arrange
        once = BaseTokenStorage.sanitize_server_name("a b/c:d")

        # Act
        twice = BaseTokenStorage.sanitize_server_name(once)

        # Assert
        assert twice == once


# ============================================================================
# Tests: Expiry
# ============================================================================


class TestIsTokenExpired:
    """Tests for expiry semantics."""

    def test_no_expiry_never_expires(self, make_creds) -> None:
        """Given no expires_at, the token is never expired."""
        assert BaseTokenStorage.is_token_expired(make_creds(expires_in_ms=None)) is False

    def test_future_expiry_not_expired(self, make_creds) -> None:
        """Given expires_at in the future, the token is not expired."""
        assert BaseTokenStorage.is_token_expired(make_creds(expires_in_ms=60_000)) is False

    def test_past_expiry_expired(self, make_creds) -> None:
        """Given expires_at in the past, the token is expired."""
        assert BaseTokenStorage.is_token_expired(make_creds(expires_in_ms=-1_000)) is True


# ============================================================================
# Tests: Serialization
# ============================================================================


class TestSerialization:
    """Tests for serialize/deserialize."""

    def test_deserialize_returns_record(self, credentials: OAuthCredentials) -> None:
        """Given a serialized record, deserialize returns an equal record."""
        # Act
        restored = BaseTokenStorage.deserialize(BaseTokenStorage.serialize(credentials), "github")

        # Assert
        assert restored == credentials

    def test_stamp_sets_updated_at_without_mutating(self, credentials: OAuthCredentials) -> None:
        """Given a record, stamp returns a copy with updated_at set to now."""
        # Arrange
        before = now_ms()

        # Act
        stamped = BaseTokenStorage.stamp(credentials)

        # Assert
        assert stamped.updated_at >= before
        assert credentials.updated_at == 0

    @pytest.mark.parametrize(
        "payload",
        [
            "{not json",
            "[]",
            '{"serverName": "x"}',
            '{"serverName": "x", "token": {"accessToken": "", "tokenType": "Bearer"}}',
        ],
    )
    def test_deserialize_bad_payload_raises_corrupt_data(self, payload: str) -> None:
        """Given an invalid payload, CorruptDataError carries the server name."""
        # Act & Assert
        with pytest.raises(CorruptDataError) as exc_info:
            BaseTokenStorage.deserialize(payload, "broken-server")

        assert exc_info.value.server_name == "broken-server"
        assert "broken-server" in str(exc_info.value)


# ============================================================================
# Tests: ClearResult
# ============================================================================


class TestClearResult:
    """Tests for clear_all aggregation."""

    def test_no_failures(self) -> None:
        """Given only successes, nothing is raised."""
        # Arrange
        result = ClearResult([ClearOutcome("a"), ClearOutcome("b")])

        # Act & Assert
        assert result.any_failed is False
        result.raise_for_failures()

    def test_message_lists_every_failure(self) -> None:
        """Given multiple failures, the message includes each failure's text."""
        # Arrange
        result = ClearResult(
            [
                ClearOutcome("a", NotFoundError("a")),
                ClearOutcome("b"),
                ClearOutcome("c", RuntimeError("keychain locked")),
            ]
        )

        # Act
        with pytest.raises(AggregateClearError) as exc_info:
            result.raise_for_failures()

        # Assert
        message = str(exc_info.value)
        assert "No credentials found for a" in message
        assert "keychain locked" in message
        assert [o.server_name for o in exc_info.value.result.failures] == ["a", "c"]
        assert len(exc_info.value.errors) == 2
