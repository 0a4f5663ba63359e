"""Shell command runner.

Runs hook commands through the system shell with output captured rather
than streamed. There is no timeout, retry or cancellation: the calling
worker blocks until the process exits.
"""

import logging
import subprocess
from datetime import datetime
from typing import Callable, Optional

from .base import CommandResult, CommandStatus


logger = logging.getLogger(__name__)


class CommandRunner:
    """Executes shell commands and maps exit codes to success or failure.

    Every run logs one line tagged with ``label``: ``[Completed]`` on exit
    code 0, ``[Error]`` otherwise, followed by the captured output.

    Args:
        on_result: Called with every CommandResult as it completes, for
            callers embedding the runner (e.g. progress reporting)
        echo_output: Print captured output of failed commands
    """

    def __init__(
        self,
        on_result: Optional[Callable[[CommandResult], None]] = None,
        echo_output: bool = True,
    ):
        self.on_result = on_result
        self.echo_output = echo_output

    def run(self, cwd: str, command: str, label: str) -> CommandResult:
        """Run ``command`` in ``cwd`` through the shell.

        Args:
            cwd: Working directory
            command: Shell command line
            label: Room name or global hook name used in log lines

        Returns:
            CommandResult describing the outcome
        """
        started = datetime.now()
        result = CommandResult(
            label=label,
            command=command,
            cwd=str(cwd),
            status=CommandStatus.RUNNING,
            started_at=started,
        )

        try:
            proc = subprocess.run(
                command,
                shell=True,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            result.status = CommandStatus.ERROR
            result.error_message = str(e)
        else:
            result.exit_code = proc.returncode
            result.stdout = proc.stdout or ""
            result.stderr = proc.stderr or ""
            if proc.returncode == 0:
                result.status = CommandStatus.DONE
            else:
                result.status = CommandStatus.ERROR
                result.error_message = f"exit code {proc.returncode}"

        result.ended_at = datetime.now()
        result.duration_ms = int((result.ended_at - started).total_seconds() * 1000)

        if result.ok:
            logger.info(f"[Completed] ==> {label}")
        else:
            logger.error(f"[Error] ==> {label}")
            if result.exit_code is None:
                logger.error(f"Unable to spawn command for {label}: {result.error_message}")
            elif self.echo_output:
                print(result.output)

        if self.on_result:
            self.on_result(result)

        return result
