"""Trust change notifications for UI consumers.

The IDE integration reports workspace trust changes through a
TrustChangeNotifier; UI hooks subscribe for the lifetime of a view and
unsubscribe when it goes away.
"""

from __future__ import annotations

__all__ = [
    "TrustChangeListener",
    "TrustChangeNotifier",
    "subscribe_trust_changes",
]

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from mcp_token_vault.telemetry.system.system_logger import get_system_logger

TrustChangeListener = Callable[[bool], None]


class TrustChangeNotifier:
    """Subscribe/unsubscribe registry for workspace trust changes."""

    def __init__(self) -> None:
        self._listeners: list[TrustChangeListener] = []

    def add_listener(self, listener: TrustChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: TrustChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def notify(self, is_trusted: bool) -> None:
        """Call every listener with the new trust value.

        A failing listener is logged and does not stop the others.
        """
        for listener in list(self._listeners):
            try:
                listener(is_trusted)
            except Exception as e:
                get_system_logger().warning(
                    {
                        "event": "trust_listener_failed",
                        "error": str(e),
                        "error_type": type(e).__name__,
                        "message": f"Trust change listener failed: {e}",
                    }
                )


@contextmanager
def subscribe_trust_changes(
    notifier: TrustChangeNotifier,
    listener: TrustChangeListener,
) -> Iterator[TrustChangeNotifier]:
    """Keep listener registered for the duration of the with-block."""
    notifier.add_listener(listener)
    try:
        yield notifier
    finally:
        notifier.remove_listener(listener)
