"""Tiered credential storage: keychain first, encrypted file as fallback.

HybridTokenStorage picks exactly one backend per selection lifetime and
forwards every operation to it.

Selection order (first match wins):
1. MCP_TOKEN_VAULT_FORCE_FILE_STORAGE == "true" -> encrypted file, no probe
2. Keychain backend constructs and its probe succeeds -> keychain
3. Otherwise -> encrypted file

Concurrency: the first operation starts selection as an asyncio.Task stored
in StorageSelectionState.pending. Callers arriving before it finishes await
that same task, so the keychain probe runs once no matter how many
operations race on first use. The slot is only cleared by reset().
"""

from __future__ import annotations

__all__ = [
    "HybridTokenStorage",
    "StorageSelectionState",
    "create_token_storage",
]

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from mcp_token_vault.config import is_file_storage_forced
from mcp_token_vault.constants import DEFAULT_KEYRING_SERVICE
from mcp_token_vault.storage.base import BaseTokenStorage, TokenStorage
from mcp_token_vault.storage.file_storage import FileTokenStorage
from mcp_token_vault.storage.keychain import KeychainTokenStorage
from mcp_token_vault.storage.models import OAuthCredentials, TokenStorageType
from mcp_token_vault.telemetry.system.system_logger import get_system_logger


@dataclass
class StorageSelectionState:
    """Backend selection owned by one HybridTokenStorage.

    Attributes:
        backend: Selected backend, None while unresolved.
        kind: Which backend was selected.
        pending: The single in-flight selection task.
        logged: Whether the selection message was already emitted.
    """

    backend: TokenStorage | None = None
    kind: TokenStorageType | None = None
    pending: "asyncio.Future[tuple[TokenStorage, TokenStorageType]] | None" = None
    logged: bool = False

    @property
    def is_resolved(self) -> bool:
        return self.backend is not None

    def reset(self) -> None:
        """Return to unresolved so the next operation re-runs selection."""
        self.backend = None
        self.kind = None
        self.pending = None


class HybridTokenStorage(BaseTokenStorage):
    """Credential storage that selects keychain or encrypted file once.

    Usage:
        storage = HybridTokenStorage()
        await storage.set_credentials(credentials)
        kind = await storage.get_storage_type()
    """

    def __init__(
        self,
        service_name: str = DEFAULT_KEYRING_SERVICE,
        *,
        state: StorageSelectionState | None = None,
        keychain_factory: Callable[[str], KeychainTokenStorage] = KeychainTokenStorage,
        file_storage: FileTokenStorage | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize hybrid storage.

        Args:
            service_name: Keyring service namespace, shared with the fallback.
            state: Selection state (a fresh one per instance by default).
            keychain_factory: Builds the keychain backend from a service name.
            file_storage: Fallback backend (default: FileTokenStorage).
            environ: Environment mapping for the force-file override
                (defaults to os.environ, read at selection time).
        """
        super().__init__(service_name)
        self._state = state if state is not None else StorageSelectionState()
        self._keychain_factory = keychain_factory
        self._fallback = file_storage or FileTokenStorage(service_name)
        self._environ = environ

    @property
    def state(self) -> StorageSelectionState:
        return self._state

    async def _initialize_storage(self) -> tuple[TokenStorage, TokenStorageType]:
        if is_file_storage_forced(self._environ):
            self._log_selection(
                TokenStorageType.ENCRYPTED_FILE,
                "forced",
                "Using file-based token storage (forced by environment variable)",
            )
            return self._fallback, TokenStorageType.ENCRYPTED_FILE

        try:
            keychain = self._keychain_factory(self.service_name)
            if await keychain.is_available():
                self._log_selection(
                    TokenStorageType.KEYCHAIN,
                    "probe_succeeded",
                    "Keychain is available - using secure OS keychain for token storage",
                )
                return keychain, TokenStorageType.KEYCHAIN
            reason = "probe_failed"
        except Exception as e:
            get_system_logger().debug(
                {
                    "event": "keychain_init_failed",
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            reason = "init_failed"

        self._log_selection(
            TokenStorageType.ENCRYPTED_FILE,
            reason,
            "Keychain not available - falling back to encrypted file storage",
        )
        return self._fallback, TokenStorageType.ENCRYPTED_FILE

    def _log_selection(self, kind: TokenStorageType, reason: str, message: str) -> None:
        if self._state.logged:
            return
        get_system_logger().info(
            {
                "event": "token_storage_selected",
                "backend": kind.value,
                "reason": reason,
                "message": message,
            }
        )
        self._state.logged = True

    async def _resolve(self) -> tuple[TokenStorage, TokenStorageType]:
        if self._state.backend is not None and self._state.kind is not None:
            return self._state.backend, self._state.kind

        if self._state.pending is None:
            self._state.pending = asyncio.ensure_future(self._initialize_storage())
        pending = self._state.pending

        # Shield so one cancelled caller doesn't cancel selection for the others
        backend, kind = await asyncio.shield(pending)

        # A reset() during selection discards this result for future callers
        if self._state.pending is pending and self._state.backend is None:
            self._state.backend = backend
            self._state.kind = kind
        return backend, kind

    async def _get_storage(self) -> TokenStorage:
        backend, _ = await self._resolve()
        return backend

    # -------------------------------------------------------------------------
    # Forwarded operations
    # -------------------------------------------------------------------------

    async def get_credentials(self, server_name: str) -> OAuthCredentials | None:
        storage = await self._get_storage()
        return await storage.get_credentials(server_name)

    async def set_credentials(self, credentials: OAuthCredentials) -> None:
        storage = await self._get_storage()
        await storage.set_credentials(credentials)

    async def delete_credentials(self, server_name: str) -> None:
        storage = await self._get_storage()
        await storage.delete_credentials(server_name)

    async def list_servers(self) -> list[str]:
        storage = await self._get_storage()
        return await storage.list_servers()

    async def get_all_credentials(self) -> dict[str, OAuthCredentials]:
        storage = await self._get_storage()
        return await storage.get_all_credentials()

    async def clear_all(self) -> None:
        storage = await self._get_storage()
        await storage.clear_all()

    async def get_storage_type(self) -> TokenStorageType:
        """Which backend was selected (resolves selection if needed)."""
        _, kind = await self._resolve()
        return kind

    async def get_storage_info(self) -> dict[str, str]:
        """Describe the selected backend for status display."""
        storage, kind = await self._resolve()
        describe = getattr(storage, "get_storage_info", None)
        if describe is None:
            return {"backend": kind.value}
        return describe()

    def reset_storage(self) -> None:
        """Clear selection so the next operation re-detects the backend."""
        self._state.reset()


def create_token_storage(service_name: str = DEFAULT_KEYRING_SERVICE) -> HybridTokenStorage:
    """Create the default tiered storage (keychain, falling back to encrypted file).

    Args:
        service_name: Keyring service namespace.

    Returns:
        HybridTokenStorage with a fresh selection state.
    """
    return HybridTokenStorage(service_name)
