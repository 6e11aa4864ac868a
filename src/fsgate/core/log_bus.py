"""Core LogBus for publishing log records.

Minimal publish/subscribe mechanism for the core logger. Subscriber
exceptions never crash publishing.
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str


class LogBus:
    def __init__(self) -> None:
        self._subs: list[Callable[[LogRecord], None]] = []

    def subscribe(self, cb: Callable[[LogRecord], None]) -> None:
        self._subs.append(cb)

    def unsubscribe(self, cb: Callable[[LogRecord], None]) -> None:
        try:
            self._subs.remove(cb)
        except ValueError:
            return

    def publish(self, record: LogRecord) -> None:
        for cb in list(self._subs):
            try:
                cb(record)
            except Exception:
                # Never call the core logger here (recursion).
                msg = "LogBus subscriber raised; suppressed.\n" + traceback.format_exc()
                with contextlib.suppress(Exception):
                    sys.stderr.write(msg)

    def clear(self) -> None:
        self._subs.clear()


_LOG_BUS: LogBus | None = None


def get_log_bus() -> LogBus:
    global _LOG_BUS
    if _LOG_BUS is None:
        _LOG_BUS = LogBus()
    return _LOG_BUS
