"""Event bus for diagnostics.

The file service and the archive engine report operation boundaries here
without knowing who listens; the JSONL sink and tests subscribe.
"""

from __future__ import annotations

import traceback
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from fsgate.core.logging import get_logger

_logger = get_logger(__name__)

Handler = Callable[[dict[str, Any]], None]
AnyHandler = Callable[[str, dict[str, Any]], None]


class EventBus:
    """Synchronous pub/sub keyed by event name.

    Example:
        bus.subscribe("operation.end", lambda env: print(env["operation"]))
        bus.publish("operation.end", {"operation": "archive.create"})
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._catch_all: list[AnyHandler] = []

    def subscribe(self, event: str, callback: Handler) -> None:
        self._handlers[event].append(callback)

    def unsubscribe(self, event: str, callback: Handler) -> None:
        if callback in self._handlers.get(event, []):
            self._handlers[event].remove(callback)

    def subscribe_all(self, callback: AnyHandler) -> None:
        """callback receives (event name, data) for every published event."""
        self._catch_all.append(callback)

    def unsubscribe_all(self, callback: AnyHandler) -> None:
        if callback in self._catch_all:
            self._catch_all.remove(callback)

    def publish(self, event: str, data: dict[str, Any] | None = None) -> None:
        """Deliver data to subscribers; a failing handler is logged and skipped."""
        payload = data or {}
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(payload)
            except Exception as e:
                self._report(event, handler, e)
        for any_handler in list(self._catch_all):
            try:
                any_handler(event, payload)
            except Exception as e:
                self._report(event, any_handler, e)

    @staticmethod
    def _report(event: str, handler: Any, e: Exception) -> None:
        _logger.error(
            f"Event handler failed (event={event!r}, handler={handler!r}): "
            f"{type(e).__name__}: {e}\n{traceback.format_exc()}"
        )

    def clear(self) -> None:
        self._handlers.clear()
        self._catch_all.clear()


_global_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Process-wide bus."""
    global _global_bus
    if _global_bus is None:
        _global_bus = EventBus()
    return _global_bus
