"""OS keychain credential storage via the keyring library.

Uses the system's secure credential storage:
- macOS: Keychain
- Windows: Credential Locker
- Linux: Secret Service API (GNOME Keyring, KDE Wallet, etc.)

Every server gets one entry under a fixed service name, keyed by its
sanitized server name. keyring cannot enumerate entries, so the account keys
are also tracked in an index entry (KEYRING_INDEX_ACCOUNT) under a separate
"<service>.index" service, outside the per-server account space. keyring
calls block, so they run via asyncio.to_thread.

The keyring module is loaded lazily through load_keyring(), which tries the
import at most once per process.
"""

from __future__ import annotations

__all__ = [
    "KeychainTokenStorage",
    "load_keyring",
]

import asyncio
import json
import secrets
from collections.abc import Callable
from types import ModuleType
from typing import Any

from mcp_token_vault.constants import (
    DEFAULT_KEYRING_SERVICE,
    KEYRING_INDEX_ACCOUNT,
    KEYRING_INDEX_SERVICE_SUFFIX,
    KEYRING_PROBE_PREFIX,
    KEYRING_PROBE_VALUE,
)
from mcp_token_vault.exceptions import (
    BackendUnavailableError,
    CorruptDataError,
    NotFoundError,
    TokenStorageError,
)
from mcp_token_vault.storage.base import BaseTokenStorage
from mcp_token_vault.storage.models import OAuthCredentials
from mcp_token_vault.telemetry.system.system_logger import get_system_logger

_keyring_module: ModuleType | None = None
_keyring_load_attempted = False


def load_keyring() -> ModuleType | None:
    """Import keyring once and memoize the outcome.

    Returns:
        The keyring module, or None if it could not be imported.
    """
    global _keyring_module, _keyring_load_attempted

    if _keyring_load_attempted:
        return _keyring_module

    _keyring_load_attempted = True
    try:
        import keyring

        _keyring_module = keyring
    except ImportError as e:
        get_system_logger().debug(
            {
                "event": "keychain_unavailable",
                "reason": "import_error",
                "error": str(e),
            }
        )
    return _keyring_module


class KeychainTokenStorage(BaseTokenStorage):
    """Credential storage backed by the OS keychain.

    Every operation requires a successful availability probe. The probe result
    is cached for the lifetime of the instance; create a new instance to
    re-detect.

    Usage:
        storage = KeychainTokenStorage()
        if await storage.is_available():
            await storage.set_credentials(credentials)
    """

    def __init__(
        self,
        service_name: str = DEFAULT_KEYRING_SERVICE,
        keyring_loader: Callable[[], ModuleType | Any | None] = load_keyring,
    ) -> None:
        """Initialize keychain storage.

        Args:
            service_name: Keyring service namespace.
            keyring_loader: Returns the keyring module (or None if unusable).
        """
        super().__init__(service_name)
        self.index_service_name = f"{service_name}{KEYRING_INDEX_SERVICE_SUFFIX}"
        self._keyring_loader = keyring_loader
        self._keyring: Any = None
        self._available: bool | None = None
        self._probe_lock = asyncio.Lock()
        self._index_lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------------

    async def is_available(self) -> bool:
        """Probe the keychain once with a write/read/delete cycle.

        Returns:
            True if a disposable secret could be stored, read back unchanged
            and deleted. Never raises.
        """
        if self._available is not None:
            return self._available

        async with self._probe_lock:
            if self._available is not None:
                return self._available

            logger = get_system_logger()
            try:
                kr = self._keyring_loader()
                if kr is None:
                    self._available = False
                else:
                    self._available = await asyncio.to_thread(self._probe, kr)
                    if self._available:
                        self._keyring = kr
            except Exception as e:
                # DBus errors, locked keychains, permission issues
                logger.debug(
                    {
                        "event": "keychain_unavailable",
                        "reason": "probe_error",
                        "error": str(e),
                        "error_type": type(e).__name__,
                    }
                )
                self._available = False

        return self._available

    def _probe(self, kr: Any) -> bool:
        from keyring.backends.fail import Keyring as FailKeyring

        if isinstance(kr.get_keyring(), FailKeyring):
            get_system_logger().debug(
                {
                    "event": "keychain_unavailable",
                    "reason": "fail_backend",
                    "message": "Keyring using FailKeyring backend (no usable backend found)",
                }
            )
            return False

        test_account = f"{KEYRING_PROBE_PREFIX}{secrets.token_hex(8)}"
        kr.set_password(self.service_name, test_account, KEYRING_PROBE_VALUE)
        retrieved = kr.get_password(self.service_name, test_account)
        kr.delete_password(self.service_name, test_account)
        return retrieved == KEYRING_PROBE_VALUE

    async def _require_keyring(self) -> Any:
        if not await self.is_available():
            raise BackendUnavailableError("Keychain is not available")
        return self._keyring

    # -------------------------------------------------------------------------
    # Index of stored account keys
    # -------------------------------------------------------------------------

    def _read_index(self, kr: Any) -> list[str]:
        raw = kr.get_password(self.index_service_name, KEYRING_INDEX_ACCOUNT)
        if raw is None:
            return []
        try:
            accounts = json.loads(raw)
        except ValueError:
            accounts = None
        if not isinstance(accounts, list) or not all(isinstance(a, str) for a in accounts):
            get_system_logger().warning(
                {
                    "event": "keychain_index_corrupt",
                    "service": self.index_service_name,
                    "message": "Keychain credential index is unreadable, treating as empty",
                }
            )
            return []
        return accounts

    def _update_index(self, kr: Any, *, add: str | None = None, remove: str | None = None) -> None:
        from keyring.errors import PasswordDeleteError

        accounts = self._read_index(kr)
        if add is not None and add not in accounts:
            accounts.append(add)
        if remove is not None and remove in accounts:
            accounts.remove(remove)

        if accounts:
            kr.set_password(self.index_service_name, KEYRING_INDEX_ACCOUNT, json.dumps(sorted(accounts)))
        else:
            try:
                kr.delete_password(self.index_service_name, KEYRING_INDEX_ACCOUNT)
            except PasswordDeleteError:
                pass  # Index was already gone

    def _store_entry(self, kr: Any, key: str, data: str) -> None:
        # Index first: a stale index entry heals on delete, an unindexed
        # record would be invisible to listings and clear_all.
        was_indexed = key in self._read_index(kr)
        if not was_indexed:
            self._update_index(kr, add=key)
        try:
            kr.set_password(self.service_name, key, data)
        except Exception:
            if not was_indexed:
                self._update_index(kr, remove=key)
            raise

    def _delete_entry(self, kr: Any, key: str) -> bool:
        """Delete a record and its index entry. Returns False if it was absent."""
        from keyring.errors import PasswordDeleteError

        try:
            kr.delete_password(self.service_name, key)
        except PasswordDeleteError:
            # Drop a stale index entry so listings stay accurate
            self._update_index(kr, remove=key)
            return False
        self._update_index(kr, remove=key)
        return True

    # -------------------------------------------------------------------------
    # TokenStorage
    # -------------------------------------------------------------------------

    async def get_credentials(self, server_name: str) -> OAuthCredentials | None:
        kr = await self._require_keyring()
        key = self.sanitize_server_name(server_name)

        try:
            data = await asyncio.to_thread(kr.get_password, self.service_name, key)
        except Exception as e:
            raise TokenStorageError(f"Failed to access keychain: {e}") from e

        if data is None:
            return None

        credentials = self.deserialize(data, server_name)
        if self.is_token_expired(credentials):
            return None
        return credentials

    async def set_credentials(self, credentials: OAuthCredentials) -> None:
        kr = await self._require_keyring()
        self.validate_credentials(credentials)

        key = self.sanitize_server_name(credentials.server_name)
        data = self.serialize(self.stamp(credentials))

        async with self._index_lock:
            try:
                await asyncio.to_thread(self._store_entry, kr, key, data)
            except Exception as e:
                raise TokenStorageError(f"Failed to save credentials to keychain: {e}") from e

    async def delete_credentials(self, server_name: str) -> None:
        kr = await self._require_keyring()
        key = self.sanitize_server_name(server_name)

        async with self._index_lock:
            try:
                found = await asyncio.to_thread(self._delete_entry, kr, key)
            except Exception as e:
                raise TokenStorageError(f"Failed to delete credentials for {server_name}: {e}") from e

        if not found:
            raise NotFoundError(server_name)

    async def list_servers(self) -> list[str]:
        kr = await self._require_keyring()
        try:
            return await asyncio.to_thread(self._read_index, kr)
        except Exception as e:
            raise TokenStorageError(f"Failed to list servers from keychain: {e}") from e

    async def get_all_credentials(self) -> dict[str, OAuthCredentials]:
        kr = await self._require_keyring()
        logger = get_system_logger()
        result: dict[str, OAuthCredentials] = {}

        for account in await self.list_servers():
            try:
                data = await asyncio.to_thread(kr.get_password, self.service_name, account)
                if data is None:
                    continue
                credentials = self.deserialize(data, account)
            except CorruptDataError as e:
                logger.debug({"event": "credentials_parse_failed", "server": account, "error": str(e)})
                continue
            except Exception as e:
                logger.debug(
                    {
                        "event": "credentials_read_failed",
                        "server": account,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    }
                )
                continue

            if not self.is_token_expired(credentials):
                result[account] = credentials

        return result

    async def clear_all(self) -> None:
        await self._require_keyring()
        await super().clear_all()

    def get_storage_info(self) -> dict[str, str]:
        """Describe this backend for status display."""
        info = {"backend": "keychain", "service": self.service_name}
        if self._keyring is not None:
            info["keyring_backend"] = type(self._keyring.get_keyring()).__name__
        return info
