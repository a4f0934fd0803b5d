"""Log formatting utilities for JSONL output.

Provides ISO 8601 timestamp formatting for the system.jsonl file.
"""

from __future__ import annotations

__all__ = ["ISO8601Formatter"]

import json
import logging
from datetime import datetime, timezone


class ISO8601Formatter(logging.Formatter):
    """JSONL formatter with ISO 8601 timestamps (UTC) and level names.

    Format: {"time": "YYYY-MM-DDTHH:MM:SS.sssZ", "level": "WARNING", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line.

        Args:
            record: The log record to format.

        Returns:
            str: JSON-formatted log entry with timestamp and level.
        """
        timestamp = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        # Structured logging: dict messages are emitted as-is
        if isinstance(record.msg, dict):
            log_data = dict(record.msg)
        else:
            log_data = {"message": record.getMessage()}

        if record.exc_info and "traceback" not in log_data:
            log_data["traceback"] = self.formatException(record.exc_info)

        log_entry = {"time": timestamp, "level": record.levelname, **log_data}
        return json.dumps(log_entry, default=str)
