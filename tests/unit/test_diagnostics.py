"""Operation events and the JSONL sink."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from fsgate.core.config import ConfigResolver
from fsgate.core.diagnostics import build_envelope, observe_operation
from fsgate.core.errors import NotFoundError
from fsgate.core.log_bus import get_log_bus
from fsgate.core.logging import get_logger, set_verbosity
from fsgate.file_io import FileService
from fsgate.file_io.archives import create_archive


def _collect(event_bus) -> list[dict]:
    seen: list[dict] = []
    event_bus.subscribe("operation.end", seen.append)
    return seen


def test_envelope_shape() -> None:
    env = build_envelope(event="e", component="c", operation="o", data={"k": 1})
    assert set(env) == {"event", "component", "operation", "timestamp", "data"}
    assert env["timestamp"].endswith("Z")


def test_service_operations_publish_end_events(tmp_path: Path, event_bus) -> None:
    seen = _collect(event_bus)
    svc = FileService(tmp_path)
    svc.write_bytes("a.txt", b"abc")
    with pytest.raises(NotFoundError):
        svc.stat("missing.txt")

    ops = [(e["operation"], e["data"]["status"]) for e in seen]
    assert ops == [("file_io.write", "succeeded"), ("file_io.stat", "failed")]
    assert seen[0]["data"]["bytes"] == 3
    assert seen[1]["data"]["error_type"] == "NotFoundError"


def test_archive_create_summary(sample_tree: Path, event_bus) -> None:
    seen = _collect(event_bus)
    asyncio.run(create_archive(sample_tree, "tar.gz"))

    (end,) = seen
    assert end["component"] == "archives"
    assert end["operation"] == "archive.create"
    assert end["data"]["files"] == 2
    assert end["data"]["dirs"] == 2
    assert end["data"]["bytes"] == len(b"alpha\n") + len(b"#!/bin/sh\necho hi\n")


def test_observe_operation_reraises_unchanged(event_bus) -> None:
    seen = _collect(event_bus)
    with pytest.raises(KeyError):
        with observe_operation(component="t", operation="t.op", base={"path": "p"}):
            raise KeyError("x")
    assert seen[0]["data"]["status"] == "failed"


def test_jsonl_sink_writes_when_enabled(tmp_path: Path, event_bus) -> None:
    import fsgate.core.diagnostics as diagnostics

    out = tmp_path / "diag.jsonl"
    resolver = ConfigResolver(
        cli_args={"diagnostics": {"enabled": True, "path": str(out)}},
        user_config_path=tmp_path / "none.yaml",
        system_config_path=tmp_path / "none2.yaml",
    )
    diagnostics._SINK_INSTALLED = False
    diagnostics.install_jsonl_sink(resolver=resolver)

    FileService(tmp_path).mkdir("d")

    lines = [json.loads(line) for line in out.read_text().splitlines()]
    assert [line["event"] for line in lines] == ["operation.start", "operation.end"]
    diagnostics._SINK_INSTALLED = False


def test_logger_publishes_to_log_bus() -> None:
    records = []
    bus = get_log_bus()
    bus.subscribe(records.append)
    try:
        set_verbosity("normal")
        get_logger("fsgate.test").info("hello")
        get_logger("fsgate.test").debug("hidden")
    finally:
        bus.unsubscribe(records.append)
    assert [r.plain for r in records] == ["[info] hello"]
