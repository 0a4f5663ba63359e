"""Tests for NDJSON logging module."""

import io
import json
from datetime import datetime

import pytest

from roomservice_py.executors import CommandResult, CommandStatus

from .ndjson import (
    NDJSONLogger,
    EventType,
    LogEvent,
    LogSummary,
    create_logger,
)


def make_result(ok: bool) -> CommandResult:
    return CommandResult(
        label="api",
        command="make",
        cwd="/tmp",
        status=CommandStatus.DONE if ok else CommandStatus.ERROR,
        started_at=datetime.now(),
        exit_code=0 if ok else 2,
        stdout="out",
        stderr="" if ok else "boom",
        duration_ms=5,
    )


class TestLogEvent:
    """Tests for LogEvent dataclass."""

    def test_to_ndjson_basic(self):
        event = LogEvent(
            timestamp="2024-01-01T00:00:00Z",
            event_type=EventType.INFO,
            run_id="run-123",
            payload={"message": "test"},
        )
        data = json.loads(event.to_ndjson())
        assert data["ts"] == "2024-01-01T00:00:00Z"
        assert data["type"] == "info"
        assert data["run"] == "run-123"
        assert data["payload"] == {"message": "test"}
        assert "phase" not in data
        assert "room" not in data

    def test_to_ndjson_with_phase_and_room(self):
        event = LogEvent(
            timestamp="2024-01-01T00:00:00Z",
            event_type=EventType.HOOK_START,
            run_id="run-123",
            payload={"command": "make"},
            phase="before",
            room="api",
        )
        data = json.loads(event.to_ndjson())
        assert data["type"] == "hook.start"
        assert data["phase"] == "before"
        assert data["room"] == "api"


class TestLogSummary:
    """Tests for LogSummary dataclass."""

    def test_to_dict(self):
        summary = LogSummary(
            run_id="run-123",
            total_events=10,
            event_counts={"hook.complete": 4, "hook.error": 1},
            hooks_run=5,
            hook_errors=1,
            warnings=1,
        )
        d = summary.to_dict()
        assert d["run_id"] == "run-123"
        assert d["total_events"] == 10
        assert d["hooks_run"] == 5
        assert d["hook_errors"] == 1
        assert d["warnings"] == 1
        assert d["errors"] == 0


class TestNDJSONLogger:
    """Tests for NDJSONLogger."""

    def test_stream_output(self):
        stream = io.StringIO()
        logger = NDJSONLogger("run-1", stream=stream)

        logger.phase_start("before", ["api", "web"])
        logger.room_diff("api", True)

        lines = stream.getvalue().splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["type"] == "phase.start"
        assert first["payload"]["rooms"] == ["api", "web"]
        second = json.loads(lines[1])
        assert second["room"] == "api"
        assert second["payload"]["should_build"] is True

    def test_file_output_and_summary(self, tmp_path):
        log_path = tmp_path / "logs" / "run.ndjson"
        logger = create_logger("run-2", str(log_path))
        assert log_path.exists()

        logger.run_start(2, force=False)
        logger.warning("careful")
        logger.close()

        lines = log_path.read_text().splitlines()
        assert [json.loads(l)["type"] for l in lines] == ["run.start", "warning"]

        summary = json.loads((tmp_path / "logs" / "run.ndjson.summary.json").read_text())
        assert summary["total_events"] == 2
        assert summary["warnings"] == 1

    def test_hook_end_success_and_failure(self):
        stream = io.StringIO()
        logger = NDJSONLogger("run-3", stream=stream)

        logger.hook_end("before", "api", make_result(True))
        logger.hook_end("before", "web", make_result(False))

        ok, failed = [json.loads(l) for l in stream.getvalue().splitlines()]
        assert ok["type"] == "hook.complete"
        assert "stderr" not in ok["payload"]
        assert failed["type"] == "hook.error"
        assert failed["payload"]["exit_code"] == 2
        assert failed["payload"]["stderr"] == "boom"

        summary = logger.get_summary()
        assert summary.hooks_run == 2
        assert summary.hook_errors == 1
        assert summary.errors == 0

    def test_error_with_details(self):
        stream = io.StringIO()
        logger = NDJSONLogger("run-4", stream=stream)

        logger.error("fatal", {"hook": "Before All"})

        data = json.loads(stream.getvalue())
        assert data["payload"] == {"message": "fatal", "details": {"hook": "Before All"}}
        assert logger.get_summary().errors == 1

    def test_no_outputs_still_counts(self):
        logger = NDJSONLogger("run-5")
        logger.room_commit("api")
        logger.close()

        assert logger.get_summary().event_counts == {"room.commit": 1}
        assert logger.summary_path is None
