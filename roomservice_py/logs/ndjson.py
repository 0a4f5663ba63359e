"""NDJSON event logging for roomservice runs.

Provides structured NDJSON event logging with:
- Optional log file and/or stream output
- Event type tracking and counts
- A JSON summary written next to the log file
"""

import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, TextIO


class EventType(str, Enum):
    """Standard event types for logging."""
    RUN_START = "run.start"
    RUN_END = "run.end"
    PHASE_START = "phase.start"
    PHASE_END = "phase.end"
    ROOM_DIFF = "room.diff"
    ROOM_COMMIT = "room.commit"
    HOOK_START = "hook.start"
    HOOK_COMPLETE = "hook.complete"
    HOOK_ERROR = "hook.error"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class LogEvent:
    """A single log event."""
    timestamp: str
    event_type: str
    run_id: str
    payload: Dict[str, Any]
    phase: Optional[str] = None
    room: Optional[str] = None

    def to_ndjson(self) -> str:
        """Serialize to NDJSON line."""
        event_type = self.event_type.value if isinstance(self.event_type, EventType) else self.event_type
        data = {
            "ts": self.timestamp,
            "type": event_type,
            "run": self.run_id,
            "payload": self.payload,
        }
        if self.phase:
            data["phase"] = self.phase
        if self.room:
            data["room"] = self.room
        return json.dumps(data, separators=(',', ':'))


@dataclass
class LogSummary:
    """Summary statistics for a run log."""
    run_id: str
    total_events: int = 0
    event_counts: Dict[str, int] = field(default_factory=dict)
    first_timestamp: Optional[str] = None
    last_timestamp: Optional[str] = None
    hooks_run: int = 0
    hook_errors: int = 0
    errors: int = 0
    warnings: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "total_events": self.total_events,
            "event_counts": self.event_counts,
            "first_timestamp": self.first_timestamp,
            "last_timestamp": self.last_timestamp,
            "hooks_run": self.hooks_run,
            "hook_errors": self.hook_errors,
            "errors": self.errors,
            "warnings": self.warnings,
        }


class NDJSONLogger:
    """NDJSON event logger for a roomservice run.

    Writes events to ``log_path`` (if given) and ``stream`` (if given).
    The summary goes to ``<log_path>.summary.json`` on close. Safe to call
    from pool workers.
    """

    def __init__(
        self,
        run_id: str,
        log_path: Optional[str] = None,
        stream: Optional[TextIO] = None,
    ):
        self.run_id = run_id
        self.log_path = Path(log_path) if log_path else None
        self.stream = stream

        self.summary = LogSummary(run_id=run_id)
        self._file: Optional[TextIO] = None
        self._lock = threading.Lock()

        if self.log_path:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._open_file()

    @property
    def summary_path(self) -> Optional[Path]:
        if not self.log_path:
            return None
        return self.log_path.with_name(self.log_path.name + ".summary.json")

    def _open_file(self) -> Optional[TextIO]:
        """Open log file for appending."""
        if self._file is None and self.log_path:
            self._file = open(self.log_path, 'a', encoding='utf-8')
        return self._file

    def log(
        self,
        event_type: str,
        payload: Dict[str, Any],
        phase: Optional[str] = None,
        room: Optional[str] = None,
    ) -> None:
        """Log an event."""
        event = LogEvent(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event_type=event_type,
            run_id=self.run_id,
            payload=payload,
            phase=phase,
            room=room,
        )
        line = event.to_ndjson() + "\n"

        with self._lock:
            self._update_summary(event)

            if self.stream:
                self.stream.write(line)
                self.stream.flush()

            f = self._open_file()
            if f:
                f.write(line)
                f.flush()

    def _update_summary(self, event: LogEvent) -> None:
        """Update summary statistics."""
        key = event.event_type.value if isinstance(event.event_type, EventType) else event.event_type
        self.summary.total_events += 1
        self.summary.event_counts[key] = self.summary.event_counts.get(key, 0) + 1

        if self.summary.first_timestamp is None:
            self.summary.first_timestamp = event.timestamp
        self.summary.last_timestamp = event.timestamp

        if event.event_type in (EventType.HOOK_COMPLETE, EventType.HOOK_ERROR):
            self.summary.hooks_run += 1
        if event.event_type == EventType.HOOK_ERROR:
            self.summary.hook_errors += 1
        elif event.event_type == EventType.ERROR:
            self.summary.errors += 1
        elif event.event_type == EventType.WARNING:
            self.summary.warnings += 1

    def run_start(self, rooms: int, force: bool) -> None:
        self.log(EventType.RUN_START, {"rooms": rooms, "force": force})

    def run_end(self, status: str, errored: list) -> None:
        self.log(EventType.RUN_END, {"status": status, "errored": list(errored)})

    def phase_start(self, phase: str, rooms: list) -> None:
        self.log(EventType.PHASE_START, {"rooms": list(rooms)}, phase=phase)

    def phase_end(self, phase: str, duration_ms: Optional[float], failed: list) -> None:
        self.log(
            EventType.PHASE_END,
            {"duration_ms": duration_ms, "failed": list(failed)},
            phase=phase,
        )

    def room_diff(self, room: str, should_build: bool) -> None:
        self.log(EventType.ROOM_DIFF, {"should_build": should_build}, phase="diff", room=room)

    def room_commit(self, room: str) -> None:
        self.log(EventType.ROOM_COMMIT, {}, phase="commit", room=room)

    def hook_start(self, phase: str, room: str, command: str) -> None:
        self.log(EventType.HOOK_START, {"command": command}, phase=phase, room=room)

    def hook_end(self, phase: str, room: str, result) -> None:
        """Log a finished hook from its CommandResult."""
        payload = {
            "exit_code": result.exit_code,
            "duration_ms": result.duration_ms,
        }
        if result.ok:
            self.log(EventType.HOOK_COMPLETE, payload, phase=phase, room=room)
        else:
            payload["stdout"] = result.stdout
            payload["stderr"] = result.stderr
            if result.error_message:
                payload["error"] = result.error_message
            self.log(EventType.HOOK_ERROR, payload, phase=phase, room=room)

    def error(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Log error."""
        payload = {"message": message}
        if details:
            payload["details"] = details
        self.log(EventType.ERROR, payload)

    def warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Log warning."""
        payload = {"message": message}
        if details:
            payload["details"] = details
        self.log(EventType.WARNING, payload)

    def get_summary(self) -> LogSummary:
        """Get current summary."""
        return self.summary

    def write_summary(self) -> None:
        """Write summary file."""
        if not self.summary_path:
            return
        with open(self.summary_path, 'w', encoding='utf-8') as f:
            json.dump(self.summary.to_dict(), f, indent=2)

    def close(self) -> None:
        """Close logger and write final summary."""
        self.write_summary()
        if self._file:
            self._file.close()
            self._file = None


def create_logger(
    run_id: str,
    log_path: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> NDJSONLogger:
    """Create a logger for a run."""
    return NDJSONLogger(run_id, log_path, stream=stream)
