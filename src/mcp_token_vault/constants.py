"""Application-wide constants for mcp-token-vault.

Constants that define application behavior.
For user-configurable settings, see config.py.
"""

import os

__all__ = [
    # Application identity
    "APP_NAME",
    # Protected directories
    "PROTECTED_CONFIG_DIR",
    "SETTINGS_FILE",
    "TRUSTED_FOLDERS_FILE",
    # Token storage
    "DEFAULT_KEYRING_SERVICE",
    "KEYRING_INDEX_ACCOUNT",
    "KEYRING_INDEX_SERVICE_SUFFIX",
    "KEYRING_PROBE_PREFIX",
    "KEYRING_PROBE_VALUE",
    "ENCRYPTED_TOKEN_FILE",
    "PBKDF2_ITERATIONS",
    # Environment overrides
    "FORCE_FILE_STORAGE_ENV",
    "IDE_WORKSPACE_TRUST_ENV",
    # Trust
    "RELAUNCH_DELAY_SECONDS",
]

from platformdirs import user_config_dir

# ============================================================================
# Application Identity
# ============================================================================

# Application name used for directory names, service names, etc.
APP_NAME: str = "mcp-token-vault"

# ============================================================================
# Protected Configuration Directory
# ============================================================================

# Platform-specific paths:
# - macOS: ~/Library/Application Support/mcp-token-vault/
# - Linux: ~/.config/mcp-token-vault/
# - Windows: %APPDATA%\mcp-token-vault\
#
# Resolved with os.path.realpath() to prevent symlink bypass.
PROTECTED_CONFIG_DIR: str = os.path.realpath(user_config_dir(APP_NAME))

# Application settings (folder trust toggle, logging)
SETTINGS_FILE: str = "settings.json"

# User-scope folder trust mapping
TRUSTED_FOLDERS_FILE: str = "trustedFolders.json"

# ============================================================================
# Token Storage
# ============================================================================

# Keyring service namespace for MCP OAuth credentials
DEFAULT_KEYRING_SERVICE: str = f"{APP_NAME}-oauth"

# keyring has no enumeration API; account keys are tracked in this entry,
# stored under "<service>.index" so no server name can collide with it
KEYRING_INDEX_ACCOUNT: str = "__index__"
KEYRING_INDEX_SERVICE_SUFFIX: str = ".index"

# Availability probe writes "<prefix><random hex>" and deletes it again
KEYRING_PROBE_PREFIX: str = "__keychain_test__"
KEYRING_PROBE_VALUE: str = "test"

# Encrypted fallback file, stored in PROTECTED_CONFIG_DIR
ENCRYPTED_TOKEN_FILE: str = "mcp-oauth-tokens.enc"

# PBKDF2 iterations for the fallback file key
PBKDF2_ITERATIONS: int = 100_000

# ============================================================================
# Environment Overrides
# ============================================================================

# "true" skips the keychain probe and always uses the encrypted file
FORCE_FILE_STORAGE_ENV: str = "MCP_TOKEN_VAULT_FORCE_FILE_STORAGE"

# "true" / "false" set by the IDE companion; unset means no opinion
IDE_WORKSPACE_TRUST_ENV: str = "MCP_TOKEN_VAULT_IDE_WORKSPACE_TRUST"

# ============================================================================
# Folder Trust
# ============================================================================

# Delay before relaunching after a trust change, lets the UI settle
RELAUNCH_DELAY_SECONDS: float = 0.25
