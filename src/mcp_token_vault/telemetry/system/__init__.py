"""System operational logging.

Provides the system logger for operational events such as token storage
backend selection and folder trust changes.
"""

from mcp_token_vault.telemetry.system.system_logger import (
    ConsoleFormatter,
    configure_system_logger_file,
    get_system_logger,
)

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_system_logger",
]
