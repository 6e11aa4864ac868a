"""Diagnostics envelope, operation observer and JSONL sink.

This module provides:
- A canonical envelope schema for diagnostic events.
- observe_operation(), which brackets a unit of work with operation.start /
  operation.end events and a one-line summary log.
- A JSONL sink that can be enabled/disabled via ConfigResolver.
"""

from __future__ import annotations

import json
import time
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from fsgate.core.config import ConfigResolver
from fsgate.core.events import get_event_bus
from fsgate.core.logging import get_logger

_logger = get_logger(__name__)

_SUMMARY_KEYS = ("format", "entries", "files", "dirs", "bytes", "items_count", "archive_path")


def build_envelope(
    *,
    event: str,
    component: str,
    operation: str,
    data: dict[str, Any],
) -> dict[str, Any]:
    """Build the canonical diagnostics envelope.

    Schema:
        {
          "event": "<string>",
          "component": "<string>",
          "operation": "<string>",
          "timestamp": "<iso8601 utc>",
          "data": { ... }
        }

    Timestamp is emitted in UTC with a trailing 'Z'.
    """
    ts = datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    return {
        "event": event,
        "component": component,
        "operation": operation,
        "timestamp": ts,
        "data": data,
    }


def short_traceback(*, max_lines: int = 20) -> str:
    tb_lines = traceback.format_exc().strip().splitlines()
    return "\n".join(tb_lines[-max_lines:])


def safe_publish(event: str, payload: dict[str, Any]) -> None:
    try:
        get_event_bus().publish(event, payload)
    except Exception:
        # Diagnostics emission must never crash processing.
        return


@contextmanager
def observe_operation(
    *,
    component: str,
    operation: str,
    base: dict[str, Any],
) -> Iterator[dict[str, Any]]:
    """Bracket a unit of work with start/end envelopes.

    The yielded dict collects summary fields that are merged into the
    operation.end payload. Exceptions are reported and re-raised unchanged.
    """
    start = time.perf_counter()

    safe_publish(
        "operation.start",
        build_envelope(
            event="operation.start", component=component, operation=operation, data=dict(base)
        ),
    )

    summary: dict[str, Any] = {}
    try:
        yield summary
    except Exception as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        end_data = dict(base)
        end_data.update(summary)
        end_data.update(
            {
                "status": "failed",
                "duration_ms": duration_ms,
                "error_type": type(e).__name__,
                "error_message": str(e),
                "traceback": short_traceback(),
            }
        )
        safe_publish(
            "operation.end",
            build_envelope(
                event="operation.end", component=component, operation=operation, data=end_data
            ),
        )
        _logger.warning(
            f"{operation} status=failed duration_ms={duration_ms} "
            f"path={base.get('path')!r} error_type={type(e).__name__!r}"
        )
        raise
    else:
        duration_ms = int((time.perf_counter() - start) * 1000)
        end_data = dict(base)
        end_data.update(summary)
        end_data.update({"status": "succeeded", "duration_ms": duration_ms})
        safe_publish(
            "operation.end",
            build_envelope(
                event="operation.end", component=component, operation=operation, data=end_data
            ),
        )
        parts = [
            "status=succeeded",
            f"duration_ms={duration_ms}",
            f"path={base.get('path')!r}",
        ]
        for k in _SUMMARY_KEYS:
            if k in end_data and k != "path":
                parts.append(f"{k}={end_data[k]!r}")
        _logger.verbose(f"{operation} " + " ".join(parts))


def _is_envelope(obj: Any) -> bool:
    if not isinstance(obj, dict):
        return False
    if set(obj.keys()) != {"event", "component", "operation", "timestamp", "data"}:
        return False
    return isinstance(obj.get("data"), dict)


_SINK_INSTALLED = False


def install_jsonl_sink(*, resolver: ConfigResolver) -> None:
    """Install the JSONL diagnostics sink subscriber.

    Idempotent: registers exactly once per process. When diagnostics.enabled
    is false the subscriber performs no file IO.
    """
    global _SINK_INSTALLED
    if _SINK_INSTALLED:
        return

    def _on_any_event(event: str, data: dict[str, Any]) -> None:
        if not resolver.resolve_bool("diagnostics.enabled", False):
            return

        path_value, _src = resolver.resolve("diagnostics.path")
        out_path = Path(str(path_value)).expanduser()

        payload = data if _is_envelope(data) else build_envelope(
            event=event, component="unknown", operation="unknown", data=data
        )

        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            line = json.dumps(payload, ensure_ascii=True, separators=(",", ":"), sort_keys=True)
            with out_path.open("a", encoding="utf-8") as f:
                f.write(line)
                f.write("\n")
        except Exception as e:
            _logger.warning(f"Diagnostics sink write failed: {type(e).__name__}: {e}")

    get_event_bus().subscribe_all(_on_any_event)
    _SINK_INSTALLED = True
