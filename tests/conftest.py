"""Shared fixtures for mcp-token-vault tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from keyring.errors import PasswordDeleteError

from mcp_token_vault.storage.file_storage import FileTokenStorage
from mcp_token_vault.storage.keychain import KeychainTokenStorage
from mcp_token_vault.storage.models import OAuthCredentials, OAuthToken, now_ms

TEST_SERVICE = "mcp-token-vault-test"


class MemoryKeyring:
    """In-memory stand-in for the keyring module.

    Exposes the module-level functions the keychain backend uses and
    behaves like a real backend: deleting a missing entry raises
    PasswordDeleteError.

    Attributes:
        store: (service, username) -> password.
        delete_errors: username -> exception raised on delete.
        set_errors: username -> exception raised on set.
    """

    def __init__(self) -> None:
        self.store: dict[tuple[str, str], str] = {}
        self.delete_errors: dict[str, Exception] = {}
        self.set_errors: dict[str, Exception] = {}
        self.set_calls: list[tuple[str, str]] = []

    def get_keyring(self) -> "MemoryKeyring":
        return self

    def get_password(self, service: str, username: str) -> str | None:
        return self.store.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.set_calls.append((service, username))
        if username in self.set_errors:
            raise self.set_errors[username]
        self.store[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        if username in self.delete_errors:
            raise self.delete_errors[username]
        if (service, username) not in self.store:
            raise PasswordDeleteError("Password not found")
        del self.store[(service, username)]

    def accounts(self, service: str) -> set[str]:
        return {user for (svc, user) in self.store if svc == service}


@pytest.fixture
def memory_keyring() -> MemoryKeyring:
    """Empty in-memory keyring."""
    return MemoryKeyring()


@pytest.fixture
def keychain_storage(memory_keyring: MemoryKeyring) -> KeychainTokenStorage:
    """Keychain backend wired to the in-memory keyring."""
    return KeychainTokenStorage(TEST_SERVICE, keyring_loader=lambda: memory_keyring)


@pytest.fixture
def file_storage(tmp_path: Path) -> FileTokenStorage:
    """Encrypted file backend writing under tmp_path."""
    return FileTokenStorage(TEST_SERVICE, storage_path=tmp_path / "tokens.enc")


def make_credentials(
    server_name: str = "github",
    *,
    access_token: str = "gho_test-access-token",
    token_type: str = "Bearer",
    expires_in_ms: int | None = 3_600_000,
    **kwargs: object,
) -> OAuthCredentials:
    """Build a credential record; expires_in_ms=None means never expires."""
    expires_at = None if expires_in_ms is None else now_ms() + expires_in_ms
    return OAuthCredentials(
        server_name=server_name,
        token=OAuthToken(
            access_token=access_token,
            token_type=token_type,
            refresh_token="test-refresh-token",
            scope="repo read:user",
            expires_at=expires_at,
        ),
        **kwargs,
    )


@pytest.fixture
def credentials() -> OAuthCredentials:
    """Valid credentials expiring in one hour."""
    return make_credentials(
        client_id="client-123",
        token_url="https://auth.example.com/token",
        mcp_server_url="https://mcp.example.com/github",
    )


@pytest.fixture
def make_creds():
    """Factory for credential records (see make_credentials)."""
    return make_credentials
