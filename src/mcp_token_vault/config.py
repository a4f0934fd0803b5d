"""Application settings for mcp-token-vault.

Defines the settings models consumed by the storage layer and the folder
trust resolver, plus readers for the environment overrides.

Settings live in settings.json inside the protected config directory. A
missing file means defaults (folder trust disabled).

Example usage:
    settings = AppSettings.load_from_file(get_settings_path())
    if settings.security.folder_trust.enabled:
        ...
"""

from __future__ import annotations

__all__ = [
    "AppSettings",
    "FolderTrustSettings",
    "LoggingSettings",
    "SecuritySettings",
    "get_ide_workspace_trust_override",
    "get_settings_path",
    "is_file_storage_forced",
    "load_settings",
]

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from mcp_token_vault.constants import (
    FORCE_FILE_STORAGE_ENV,
    IDE_WORKSPACE_TRUST_ENV,
    SETTINGS_FILE,
)
from mcp_token_vault.exceptions import ConfigurationError
from mcp_token_vault.utils.file_helpers import (
    get_config_dir,
    load_validated_json,
    write_secure_bytes,
)


class FolderTrustSettings(BaseModel):
    """Folder trust enforcement toggle.

    Attributes:
        enabled: When False, every folder is treated as trusted and the
            permissions command only prints an informational message.
    """

    model_config = ConfigDict(extra="ignore")

    enabled: bool = False


class SecuritySettings(BaseModel):
    """Security-related settings."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    folder_trust: FolderTrustSettings = Field(
        default_factory=FolderTrustSettings,
        alias="folderTrust",
    )


class LoggingSettings(BaseModel):
    """Logging settings.

    Attributes:
        log_dir: Directory for system.jsonl. None keeps stderr-only logging.
    """

    model_config = ConfigDict(extra="ignore")

    log_dir: str | None = None

    @property
    def system_log_path(self) -> Path | None:
        """Path of the JSONL system log, if a log_dir is configured."""
        if self.log_dir is None:
            return None
        return Path(self.log_dir).expanduser() / "system.jsonl"


class AppSettings(BaseModel):
    """Top-level settings document (settings.json)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    security: SecuritySettings = Field(default_factory=SecuritySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_folder_trust_enabled(self) -> bool:
        """Whether folder trust enforcement is on."""
        return self.security.folder_trust.enabled

    @classmethod
    def load_from_file(cls, path: Path) -> "AppSettings":
        """Load settings from a JSON file.

        Args:
            path: Settings file path. Missing file yields defaults.

        Returns:
            Validated AppSettings.

        Raises:
            ConfigurationError: If the file is not valid JSON or fails validation.
        """
        if not path.exists():
            return cls()
        try:
            return load_validated_json(path, cls, file_type="settings")
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    def save_to_file(self, path: Path) -> None:
        """Write settings as JSON with owner-only permissions."""
        data = self.model_dump_json(by_alias=True, indent=2)
        write_secure_bytes(path, data.encode("utf-8"))


def get_settings_path() -> Path:
    """Get the settings.json path in the protected config directory."""
    return get_config_dir() / SETTINGS_FILE


def load_settings(path: Path | None = None) -> AppSettings:
    """Load settings from path, defaulting to the protected config directory."""
    return AppSettings.load_from_file(path or get_settings_path())


# =============================================================================
# Environment overrides
# =============================================================================


def is_file_storage_forced(environ: Mapping[str, str] | None = None) -> bool:
    """Check the forced-file-storage override.

    Args:
        environ: Environment mapping (defaults to os.environ).

    Returns:
        True only when the variable is exactly "true".
    """
    env = os.environ if environ is None else environ
    return env.get(FORCE_FILE_STORAGE_ENV) == "true"


def get_ide_workspace_trust_override(environ: Mapping[str, str] | None = None) -> bool | None:
    """Read the IDE workspace trust signal.

    Args:
        environ: Environment mapping (defaults to os.environ).

    Returns:
        True for "true", False for "false", None when unset or anything else.
    """
    env = os.environ if environ is None else environ
    value = env.get(IDE_WORKSPACE_TRUST_ENV)
    if value == "true":
        return True
    if value == "false":
        return False
    return None
