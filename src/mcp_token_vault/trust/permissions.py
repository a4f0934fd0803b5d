"""Folder trust modification for the permissions command.

PermissionsModifyTrust loads the current folder's trust state and applies a
new explicit trust level. A restart is only signalled when the *effective*
trust of the folder changes, not on every write: trust is read once at
process start, so only a flip of the effective value needs a relaunch.
"""

from __future__ import annotations

__all__ = [
    "FOLDER_TRUST_DISABLED_MESSAGE",
    "DialogAction",
    "MessageAction",
    "PermissionsModifyTrust",
    "TrustUpdate",
    "permissions_command",
]

import asyncio
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from mcp_token_vault.config import AppSettings
from mcp_token_vault.constants import RELAUNCH_DELAY_SECONDS
from mcp_token_vault.telemetry.system.system_logger import get_system_logger
from mcp_token_vault.trust.resolver import TrustState, inspect_trust, is_workspace_trusted
from mcp_token_vault.trust.trusted_folders import (
    TrustedFolders,
    TrustLevel,
    load_trusted_folders,
    normalize_folder_path,
)
from mcp_token_vault.utils.process import relaunch_app

FOLDER_TRUST_DISABLED_MESSAGE = "Folder trust is disabled. You can enable it in the settings."


@dataclass(frozen=True)
class MessageAction:
    """Show an informational message instead of a dialog."""

    content: str
    message_type: Literal["info", "error"] = "info"


@dataclass(frozen=True)
class DialogAction:
    """Open the named dialog."""

    dialog: str


def permissions_command(settings: AppSettings) -> MessageAction | DialogAction:
    """Action for the permissions command given current settings."""
    if not settings.is_folder_trust_enabled:
        return MessageAction(content=FOLDER_TRUST_DISABLED_MESSAGE)
    return DialogAction(dialog="permissions")


@dataclass(frozen=True)
class TrustUpdate:
    """Outcome of changing a folder's explicit trust level."""

    path: str
    level: TrustLevel
    was_trusted: bool | None
    is_trusted: bool | None

    @property
    def needs_restart(self) -> bool:
        return self.was_trusted != self.is_trusted


class PermissionsModifyTrust:
    """Inspect and change the trust level of one folder.

    Usage:
        modify = PermissionsModifyTrust(settings, on_exit=close_dialog)
        state = modify.load()
        update = await modify.update_trust_level(TrustLevel.TRUST_FOLDER)
    """

    def __init__(
        self,
        settings: AppSettings,
        *,
        cwd: str | Path | None = None,
        on_exit: Callable[[], None] | None = None,
        folders_loader: Callable[[], TrustedFolders] = load_trusted_folders,
        relaunch: Callable[[], object] = relaunch_app,
        relaunch_delay: float = RELAUNCH_DELAY_SECONDS,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.settings = settings
        self.cwd = normalize_folder_path(cwd or os.getcwd())
        self.needs_restart = False
        self._on_exit = on_exit
        self._folders_loader = folders_loader
        self._relaunch = relaunch
        self._relaunch_delay = relaunch_delay
        self._environ = environ

    @property
    def is_folder_trust_enabled(self) -> bool:
        return self.settings.is_folder_trust_enabled

    def load(self) -> TrustState | None:
        """Current trust state of cwd, or None when folder trust is disabled."""
        if not self.is_folder_trust_enabled:
            return None
        return inspect_trust(self.settings, self.cwd, self._folders_loader(), self._environ)

    async def update_trust_level(self, level: TrustLevel) -> TrustUpdate:
        """Persist a new explicit level for cwd.

        If the effective trust changed, schedules a relaunch after
        relaunch_delay on the running loop (then on_exit). Otherwise on_exit
        is called right away.
        """
        folders = self._folders_loader()
        was_trusted = is_workspace_trusted(self.settings, self.cwd, folders, self._environ)

        await asyncio.to_thread(folders.set_value, self.cwd, level)

        is_trusted = is_workspace_trusted(self.settings, self.cwd, folders, self._environ)
        update = TrustUpdate(
            path=self.cwd,
            level=TrustLevel(level),
            was_trusted=was_trusted,
            is_trusted=is_trusted,
        )

        logger = get_system_logger()
        logger.info(
            {
                "event": "trust_level_updated",
                "path": self.cwd,
                "level": update.level.value,
                "was_trusted": was_trusted,
                "is_trusted": is_trusted,
                "message": f"Trust level for {self.cwd} set to {update.level.value}",
            }
        )

        if update.needs_restart:
            self.needs_restart = True
            logger.info(
                {
                    "event": "relaunch_scheduled",
                    "delay_seconds": self._relaunch_delay,
                    "message": "Effective folder trust changed - restarting",
                }
            )
            asyncio.get_running_loop().call_later(self._relaunch_delay, self._relaunch_and_exit)
        else:
            self._exit()

        return update

    def _relaunch_and_exit(self) -> None:
        self._relaunch()
        self._exit()

    def _exit(self) -> None:
        if self._on_exit is not None:
            self._on_exit()
