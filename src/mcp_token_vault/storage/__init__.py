"""Tiered OAuth credential storage for MCP servers.

Backends:
- KeychainTokenStorage: OS keychain via keyring (preferred)
- FileTokenStorage: Fernet-encrypted file (fallback)
- HybridTokenStorage: picks one of the above once and forwards to it
"""

from mcp_token_vault.storage.base import (
    BaseTokenStorage,
    ClearOutcome,
    ClearResult,
    TokenStorage,
)
from mcp_token_vault.storage.file_storage import FileTokenStorage
from mcp_token_vault.storage.hybrid import (
    HybridTokenStorage,
    StorageSelectionState,
    create_token_storage,
)
from mcp_token_vault.storage.keychain import KeychainTokenStorage, load_keyring
from mcp_token_vault.storage.models import (
    OAuthCredentials,
    OAuthToken,
    TokenStorageType,
    now_ms,
)

__all__ = [
    "BaseTokenStorage",
    "ClearOutcome",
    "ClearResult",
    "FileTokenStorage",
    "HybridTokenStorage",
    "KeychainTokenStorage",
    "OAuthCredentials",
    "OAuthToken",
    "StorageSelectionState",
    "TokenStorage",
    "TokenStorageType",
    "create_token_storage",
    "load_keyring",
    "now_ms",
]
