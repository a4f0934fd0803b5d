"""Custom exceptions for mcp-token-vault.

All credential storage failures derive from TokenStorageError so callers can
catch the whole family at once:

    - ValidationError: Malformed credential record, never persisted
    - CorruptDataError: Stored payload cannot be decoded
    - BackendUnavailableError: Backend probe failed or never succeeded
    - NotFoundError: Delete targeted a missing entry
    - AggregateClearError: One or more deletions failed during clear_all

ConfigurationError is raised for invalid settings / trusted folder files.

Usage:
    from mcp_token_vault.exceptions import CorruptDataError, NotFoundError
"""

from __future__ import annotations

__all__ = [
    "AggregateClearError",
    "BackendUnavailableError",
    "ConfigurationError",
    "CorruptDataError",
    "NotFoundError",
    "TokenStorageError",
    "ValidationError",
]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mcp_token_vault.storage.base import ClearResult


class TokenStorageError(Exception):
    """Base exception for credential storage failures."""


class ValidationError(TokenStorageError):
    """Credential record is missing a required field.

    Raised before anything is written - invalid records are never persisted.
    """


class CorruptDataError(TokenStorageError):
    """Stored payload is not a valid encoding of a credential record.

    Attributes:
        server_name: Identifier of the offending entry (server name, or the
            storage file name when the whole file is unreadable).
    """

    def __init__(self, server_name: str, detail: str | None = None) -> None:
        self.server_name = server_name
        self.detail = detail
        message = f"Failed to parse stored credentials for {server_name}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class BackendUnavailableError(TokenStorageError):
    """Operation attempted against a backend whose probe has not succeeded."""


class NotFoundError(TokenStorageError):
    """Delete attempted against a non-existent entry.

    Attributes:
        server_name: Name that had no stored credentials.
    """

    def __init__(self, server_name: str) -> None:
        self.server_name = server_name
        super().__init__(f"No credentials found for {server_name}")


class AggregateClearError(TokenStorageError):
    """One or more deletions failed during a clear-all sweep.

    The message lists every underlying failure message, not just a count.

    Attributes:
        result: The ClearResult with per-server outcomes.
    """

    def __init__(self, result: "ClearResult") -> None:
        self.result = result
        super().__init__(result.message)

    @property
    def errors(self) -> list[BaseException]:
        """Underlying per-server failures, in sweep order."""
        return [outcome.error for outcome in self.result.failures if outcome.error is not None]


class ConfigurationError(Exception):
    """Settings or trusted folders file is invalid.

    Raised when:
    - File contains invalid JSON
    - File fails Pydantic validation
    """
