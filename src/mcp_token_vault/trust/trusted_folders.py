"""User-scope folder trust mapping (trustedFolders.json).

The file maps absolute folder paths to a TrustLevel:

    {
      "/home/user/work": "TRUST_FOLDER",
      "/home/user/work/repo": "TRUST_PARENT",
      "/home/user/downloads/x": "DO_NOT_TRUST"
    }
"""

from __future__ import annotations

__all__ = [
    "TrustLevel",
    "TrustedFolders",
    "get_trusted_folders_path",
    "load_trusted_folders",
    "normalize_folder_path",
]

import json
import os
from enum import Enum
from pathlib import Path

from pydantic import RootModel

from mcp_token_vault.constants import TRUSTED_FOLDERS_FILE
from mcp_token_vault.exceptions import ConfigurationError
from mcp_token_vault.utils.file_helpers import (
    get_config_dir,
    load_validated_json,
    write_secure_bytes,
)


class TrustLevel(str, Enum):
    """Explicit trust setting for a folder."""

    TRUST_FOLDER = "TRUST_FOLDER"
    TRUST_PARENT = "TRUST_PARENT"
    DO_NOT_TRUST = "DO_NOT_TRUST"


class _TrustedFoldersDocument(RootModel[dict[str, TrustLevel]]):
    pass


def normalize_folder_path(path: str | Path) -> str:
    """Absolute, normalized form used as the mapping key."""
    return os.path.normpath(os.path.abspath(os.path.expanduser(str(path))))


def get_trusted_folders_path() -> Path:
    """Get the trustedFolders.json path in the protected config directory."""
    return get_config_dir() / TRUSTED_FOLDERS_FILE


class TrustedFolders:
    """Loaded trust mapping bound to its file.

    Usage:
        folders = load_trusted_folders()
        folders.set_value("/home/user/work", TrustLevel.TRUST_FOLDER)
    """

    def __init__(self, path: Path, config: dict[str, TrustLevel] | None = None) -> None:
        self.path = path
        self.config: dict[str, TrustLevel] = {
            normalize_folder_path(folder): TrustLevel(level) for folder, level in (config or {}).items()
        }

    def get_level(self, folder: str | Path) -> TrustLevel | None:
        """Explicit level for exactly this folder, if any."""
        return self.config.get(normalize_folder_path(folder))

    def set_value(self, folder: str | Path, level: TrustLevel) -> None:
        """Set the explicit level for a folder and persist the mapping."""
        self.config[normalize_folder_path(folder)] = TrustLevel(level)
        self.save()

    def remove(self, folder: str | Path) -> bool:
        """Drop the explicit entry for a folder. Returns True if one existed."""
        removed = self.config.pop(normalize_folder_path(folder), None) is not None
        if removed:
            self.save()
        return removed

    def save(self) -> None:
        data = {folder: level.value for folder, level in sorted(self.config.items())}
        write_secure_bytes(self.path, json.dumps(data, indent=2).encode("utf-8"))


def load_trusted_folders(path: Path | None = None) -> TrustedFolders:
    """Load the trust mapping.

    Args:
        path: File location (defaults to the protected config directory).
            A missing file yields an empty mapping.

    Raises:
        ConfigurationError: If the file is invalid JSON or has unknown levels.
    """
    path = path or get_trusted_folders_path()
    if not path.exists():
        return TrustedFolders(path)

    try:
        document = load_validated_json(path, _TrustedFoldersDocument, file_type="trusted folders")
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    return TrustedFolders(path, document.root)
