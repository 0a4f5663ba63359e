"""Runner implementations for executing hook commands."""

from .base import CommandResult, CommandStatus, RunnerProtocol
from .shell import CommandRunner

__all__ = [
    "CommandResult",
    "CommandStatus",
    "RunnerProtocol",
    "CommandRunner",
]
