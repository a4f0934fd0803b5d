"""Process helpers."""

from __future__ import annotations

__all__ = ["relaunch_app"]

import os
import sys
from typing import NoReturn

from mcp_token_vault.telemetry.system.system_logger import get_system_logger


def relaunch_app() -> NoReturn:
    """Replace the current process with a fresh copy of itself.

    Folder trust is read once at startup, so a trust change that flips the
    effective value only takes effect after a relaunch.
    """
    get_system_logger().info(
        {
            "event": "relaunching",
            "argv": sys.argv,
            "message": "Relaunching to apply folder trust change",
        }
    )
    sys.stdout.flush()
    sys.stderr.flush()
    os.execv(sys.executable, [sys.executable, *sys.argv])
