"""Effective folder trust resolution.

Precedence for a folder:
1. Folder trust disabled in settings -> trusted
2. Explicit entry for the exact folder: DO_NOT_TRUST -> untrusted,
   TRUST_FOLDER / TRUST_PARENT -> trusted
3. Nearest ancestor made trusted by a TRUST_FOLDER entry on it, or a
   TRUST_PARENT entry on one of its direct children -> trusted (inherited)
4. IDE workspace trust override (MCP_TOKEN_VAULT_IDE_WORKSPACE_TRUST)
5. None: undecided, the user must be prompted

DO_NOT_TRUST only applies to the exact folder it names.
"""

from __future__ import annotations

__all__ = [
    "TrustState",
    "inspect_trust",
    "is_path_trusted",
    "is_workspace_trusted",
]

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from mcp_token_vault.config import AppSettings, get_ide_workspace_trust_override
from mcp_token_vault.trust.trusted_folders import (
    TrustedFolders,
    TrustLevel,
    normalize_folder_path,
)


def is_path_trusted(path: str | Path, rules: Mapping[str, TrustLevel]) -> bool | None:
    """Resolve trust from explicit rules alone.

    Args:
        path: Folder to check.
        rules: Folder path -> TrustLevel.

    Returns:
        True/False when a rule decides, None when no rule applies.
    """
    target = normalize_folder_path(path)
    normalized = {normalize_folder_path(folder): TrustLevel(level) for folder, level in rules.items()}
    trusted_by_child = {
        os.path.dirname(folder) for folder, level in normalized.items() if level is TrustLevel.TRUST_PARENT
    }

    current = target
    while True:
        level = normalized.get(current)
        if level is TrustLevel.DO_NOT_TRUST:
            if current == target:
                return False
        elif level is not None:
            return True
        if current in trusted_by_child:
            return True

        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def is_workspace_trusted(
    settings: AppSettings,
    path: str | Path,
    folders: TrustedFolders,
    environ: Mapping[str, str] | None = None,
) -> bool | None:
    """Effective trust for a folder (see module docstring for precedence)."""
    if not settings.is_folder_trust_enabled:
        return True

    trusted = is_path_trusted(path, folders.config)
    if trusted is not None:
        return trusted
    return get_ide_workspace_trust_override(environ)


@dataclass(frozen=True)
class TrustState:
    """Snapshot of a folder's trust for display.

    Attributes:
        path: Normalized folder path.
        explicit_level: Entry for exactly this folder, if any.
        effective: Resolved trust (None = undecided).
        is_inherited_trust: Trusted, but not because of this folder's own
            entry - changing the entry alone may have no visible effect.
    """

    path: str
    explicit_level: TrustLevel | None
    effective: bool | None
    is_inherited_trust: bool


def inspect_trust(
    settings: AppSettings,
    path: str | Path,
    folders: TrustedFolders,
    environ: Mapping[str, str] | None = None,
) -> TrustState:
    """Compute explicit level, effective trust and the inherited flag."""
    explicit = folders.get_level(path)
    effective = is_workspace_trusted(settings, path, folders, environ)
    # A DO_NOT_TRUST entry can still be effective when folder trust is disabled
    inherited = bool(effective) and (explicit is None or explicit is TrustLevel.DO_NOT_TRUST)
    return TrustState(
        path=normalize_folder_path(path),
        explicit_level=explicit,
        effective=effective,
        is_inherited_trust=inherited,
    )
