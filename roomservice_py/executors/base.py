"""Base runner protocol and result types for roomservice-py.

Defines the runner interface used by the scheduler to execute hook
commands, along with the common result and status types.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol


class CommandStatus(str, Enum):
    """Status of a hook command execution."""

    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


@dataclass
class CommandResult:
    """Result of a single shell command execution."""

    # Core fields
    label: str
    command: str
    cwd: str
    status: CommandStatus

    # Timing
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration_ms: Optional[int] = None

    # Process output
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""

    # Error info (spawn failures have no exit code)
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == CommandStatus.DONE

    @property
    def output(self) -> str:
        """Captured stdout followed by stderr."""
        return f"{self.stdout}\n{self.stderr}"


class RunnerProtocol(Protocol):
    """Protocol that command runners must follow.

    Runners execute one hook command to completion, blocking the calling
    worker for the whole lifetime of the process.
    """

    def run(self, cwd: str, command: str, label: str) -> CommandResult:
        """Run a command.

        Args:
            cwd: Working directory for the command
            command: Shell command line
            label: Tag used in log lines (room name or global hook name)

        Returns:
            CommandResult with status DONE or ERROR
        """
        ...
