"""Storage contract and shared behavior for credential backends.

TokenStorage is the async contract every backend implements.
BaseTokenStorage adds the behavior all backends share:
- validation of required credential fields
- server name -> storage key sanitization
- expiry checks
- JSON serialization with CorruptDataError on bad payloads
- best-effort clear_all with aggregated failures
"""

from __future__ import annotations

__all__ = [
    "BaseTokenStorage",
    "ClearOutcome",
    "ClearResult",
    "TokenStorage",
]

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from pydantic import ValidationError as PydanticValidationError

from mcp_token_vault.exceptions import AggregateClearError, CorruptDataError, ValidationError
from mcp_token_vault.storage.models import OAuthCredentials, now_ms

# Characters allowed in storage keys; everything else becomes "_"
_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


@dataclass(frozen=True)
class ClearOutcome:
    """Result of deleting one server during clear_all."""

    server_name: str
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ClearResult:
    """Per-server outcomes of a clear_all sweep."""

    outcomes: list[ClearOutcome] = field(default_factory=list)

    @property
    def failures(self) -> list[ClearOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def any_failed(self) -> bool:
        return any(not outcome.ok for outcome in self.outcomes)

    @property
    def message(self) -> str:
        """Aggregate message listing every individual failure."""
        if not self.any_failed:
            return "All credentials cleared"
        details = ", ".join(str(outcome.error) for outcome in self.failures)
        return f"Failed to clear some credentials: {details}"

    def raise_for_failures(self) -> None:
        """Raise AggregateClearError if any deletion failed."""
        if self.any_failed:
            raise AggregateClearError(self)


class TokenStorage(ABC):
    """Abstract base class for credential storage backends."""

    @abstractmethod
    async def get_credentials(self, server_name: str) -> OAuthCredentials | None:
        """Load credentials for a server.

        Returns:
            The record, or None if absent or expired.

        Raises:
            CorruptDataError: If the stored payload cannot be decoded.
        """

    @abstractmethod
    async def set_credentials(self, credentials: OAuthCredentials) -> None:
        """Validate, stamp updated_at and store credentials (overwrites).

        Raises:
            ValidationError: If required fields are empty.
        """

    @abstractmethod
    async def delete_credentials(self, server_name: str) -> None:
        """Delete credentials for a server.

        Raises:
            NotFoundError: If no entry exists for the server.
        """

    @abstractmethod
    async def list_servers(self) -> list[str]:
        """List every stored key, regardless of payload validity."""

    @abstractmethod
    async def get_all_credentials(self) -> dict[str, OAuthCredentials]:
        """Return all live, well-formed, unexpired records keyed by storage key."""

    @abstractmethod
    async def clear_all(self) -> None:
        """Delete every stored record.

        Raises:
            AggregateClearError: If one or more deletions failed.
        """


class BaseTokenStorage(TokenStorage):
    """Shared validation, key sanitization, expiry and serialization."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name

    @staticmethod
    def validate_credentials(credentials: OAuthCredentials) -> None:
        """Check required fields.

        Raises:
            ValidationError: If server_name, token.access_token or
                token.token_type is empty.
        """
        if not credentials.server_name:
            raise ValidationError("Server name is required")
        if not credentials.token.access_token:
            raise ValidationError("Access token is required")
        if not credentials.token.token_type:
            raise ValidationError("Token type is required")

    @staticmethod
    def sanitize_server_name(server_name: str) -> str:
        """Map a server name to a storage-safe key. Idempotent."""
        return _UNSAFE_KEY_CHARS.sub("_", server_name)

    @staticmethod
    def is_token_expired(credentials: OAuthCredentials) -> bool:
        """True iff expires_at is set and strictly in the past."""
        expires_at = credentials.token.expires_at
        if expires_at is None:
            return False
        return expires_at < now_ms()

    @staticmethod
    def stamp(credentials: OAuthCredentials) -> OAuthCredentials:
        """Copy of credentials with updated_at set to now."""
        return credentials.model_copy(update={"updated_at": now_ms()})

    @staticmethod
    def serialize(credentials: OAuthCredentials) -> str:
        return credentials.to_json()

    @classmethod
    def deserialize(cls, data: str | bytes, server_name: str) -> OAuthCredentials:
        """Decode a stored payload into a well-formed record.

        Args:
            data: Stored JSON payload.
            server_name: Identifier reported if the payload is bad.

        Raises:
            CorruptDataError: If the payload is not a valid, complete record.
        """
        try:
            credentials = OAuthCredentials.from_json(data)
        except (PydanticValidationError, ValueError) as e:
            raise CorruptDataError(server_name, type(e).__name__) from e

        try:
            cls.validate_credentials(credentials)
        except ValidationError as e:
            raise CorruptDataError(server_name, str(e)) from e
        return credentials

    async def clear_all(self) -> None:
        """Best-effort delete of every listed server, then aggregate failures."""
        result = ClearResult()
        for server_name in await self.list_servers():
            try:
                await self.delete_credentials(server_name)
            except Exception as e:
                result.outcomes.append(ClearOutcome(server_name, e))
            else:
                result.outcomes.append(ClearOutcome(server_name))
        result.raise_for_failures()
