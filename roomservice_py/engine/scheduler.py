"""Phased build scheduler.

Runs the fixed roomservice pipeline over the registered rooms:

    diff -> [gate] -> beforeAll -> beforeSynchronous -> before ->
    runParallel -> runSynchronous -> after -> afterAll -> commit

Sequential phases visit rooms one at a time in registration order.
Parallel phases fan out one task per room onto a bounded thread pool and
wait for every task before the next phase starts. A failing room hook only
marks that room errored; a failing global hook raises FatalHookError.
Fingerprints are written only in the final, sequential commit phase and
only for rooms that never errored.
"""

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from ..errors import FatalHookError, RoomPathError
from ..executors import CommandResult, CommandRunner, RunnerProtocol
from ..logs import NDJSONLogger
from .cache import FingerprintCache
from .phases import (
    AFTER_ALL,
    BEFORE_ALL,
    COMMIT,
    DIFF,
    ROOM_PHASES,
    ExecutionMode,
    Phase,
    PhaseProgress,
    PhaseRegistry,
)
from .room import Room, RoomSpec


logger = logging.getLogger(__name__)

UP_TO_DATE_MESSAGE = "All rooms appear to be up to date!"
CHANGED_HEADER = "The following rooms have changed:"
ERRORS_MESSAGE = "Errors occurred during roomservice"


class RunStatus(str, Enum):
    """Outcome of a single scheduler invocation."""
    UP_TO_DATE = "up_to_date"
    DRY_RUN = "dry_run"
    HASHES_UPDATED = "hashes_updated"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RunReport:
    """What happened during one ``Scheduler.exec`` call."""
    status: RunStatus
    changed: List[str] = field(default_factory=list)
    errored: List[str] = field(default_factory=list)
    committed: List[str] = field(default_factory=list)
    phases: List[PhaseProgress] = field(default_factory=list)
    results: List[CommandResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status != RunStatus.FAILED and not self.errored


def default_max_workers() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


class Scheduler:
    """Owns the rooms and global hooks and runs the phased pipeline.

    Args:
        cache_dir: Directory holding one fingerprint file per room
        force: Treat every room as changed
        max_workers: Size of the worker pool used by parallel phases
        runner: Command runner (defaults to CommandRunner)
        event_log: Optional NDJSON event logger
        project_dir: Base for relative room paths and cwd of global hooks
        scope_dir: Where ``dump_scope`` files are written (default: cwd)
        echo: Callable used for user-facing summary lines
    """

    def __init__(
        self,
        cache_dir: str,
        force: bool = False,
        max_workers: Optional[int] = None,
        runner: Optional[RunnerProtocol] = None,
        event_log: Optional[NDJSONLogger] = None,
        project_dir: Optional[str] = None,
        scope_dir: Optional[str] = None,
        echo: Callable[[str], None] = print,
    ):
        self.cache = FingerprintCache(cache_dir)
        # Fatal at startup if the directory cannot be created
        self.cache.ensure_dir()

        self.force = force
        self.max_workers = max_workers or default_max_workers()
        self.runner = runner or CommandRunner()
        self.event_log = event_log
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.scope_dir = scope_dir
        self.echo = echo

        self.before_all: Optional[str] = None
        self.after_all: Optional[str] = None
        self.rooms: List[Room] = []

        self._registry = PhaseRegistry()
        self._results: List[CommandResult] = []
        self._results_lock = threading.Lock()

    # Registration

    def add_before_all(self, command: str) -> None:
        self.before_all = command

    def add_after_all(self, command: str) -> None:
        self.after_all = command

    def add_room(self, spec: RoomSpec) -> Room:
        """Register a room. Its path must exist.

        Relative paths are resolved against ``project_dir`` and stored
        canonicalized.

        Raises:
            RoomPathError: If the room's path does not exist
        """
        room_path = self.project_dir / spec.path
        if not room_path.exists():
            raise RoomPathError(spec.name, spec.path)

        update = {"path": str(room_path.resolve())}
        if spec.ignore_file:
            update["ignore_file"] = str(self.project_dir / spec.ignore_file)
        room = Room(spec=spec.model_copy(update=update))

        if spec.hooks.finally_:
            logger.debug(f"Room {spec.name} defines a finally hook; it is not scheduled")

        self.rooms.append(room)
        return room

    def get_room(self, name: str) -> Optional[Room]:
        for room in self.rooms:
            if room.name == name:
                return room
        return None

    # Execution

    def exec(
        self,
        force: Optional[bool] = None,
        dry_run: bool = False,
        dump_scope: bool = False,
        update_hashes_only: bool = False,
    ) -> RunReport:
        """Run the pipeline once.

        Args:
            force: Override the scheduler's ``force`` flag for this run
            dry_run: Diff and report the changed rooms, then stop
            dump_scope: Write each room's traversed file list to disk
            update_hashes_only: Diff, then commit every room without hooks

        Returns:
            RunReport for the invocation

        Raises:
            FatalHookError: If beforeAll or afterAll fails
            RoomserviceError: For other fatal conditions (ignore file,
                cache write)
        """
        force = self.force if force is None else force
        self._registry = PhaseRegistry()
        self._results = []

        for room in self.rooms:
            room.errored = False

        if self.event_log:
            self.event_log.run_start(len(self.rooms), force)

        try:
            with ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="roomservice",
            ) as pool:
                report = self._exec(pool, force, dry_run, dump_scope, update_hashes_only)
        except Exception as e:
            if self.event_log:
                self.event_log.error(str(e))
                self.event_log.run_end(RunStatus.FAILED.value, self._errored_names())
            raise

        if self.event_log:
            self.event_log.run_end(report.status.value, report.errored)
        return report

    def _exec(
        self,
        pool: ThreadPoolExecutor,
        force: bool,
        dry_run: bool,
        dump_scope: bool,
        update_hashes_only: bool,
    ) -> RunReport:
        if update_hashes_only:
            logger.info("Updating all rooms")
        else:
            logger.info("Diffing rooms")
        self._diff(pool, force, dump_scope)

        changed = [room.name for room in self.rooms if room.should_build]

        if update_hashes_only:
            committed = self._commit()
            return self._report(RunStatus.HASHES_UPDATED, changed, committed)

        if not changed:
            self.echo(UP_TO_DATE_MESSAGE)
            return self._report(RunStatus.UP_TO_DATE, changed)

        self.echo(CHANGED_HEADER)
        self.echo("\n".join(f"==> {name}" for name in changed))

        if dry_run:
            return self._report(RunStatus.DRY_RUN, changed)

        self._run_global(BEFORE_ALL, self.before_all)

        for phase in ROOM_PHASES:
            self._run_room_phase(pool, phase)

        self._run_global(AFTER_ALL, self.after_all)

        committed = self._commit()
        return self._report(RunStatus.COMPLETED, changed, committed)

    def _report(self, status: RunStatus, changed: List[str], committed: Optional[List[str]] = None) -> RunReport:
        with self._results_lock:
            results = list(self._results)
        return RunReport(
            status=status,
            changed=changed,
            errored=self._errored_names(),
            committed=committed or [],
            phases=self._registry.list_phases(),
            results=results,
        )

    def _errored_names(self) -> List[str]:
        return [room.name for room in self.rooms if room.errored]

    # Phases

    def _start(self, phase: Phase, rooms: List[str]) -> None:
        self._registry.start_phase(phase, rooms)
        if self.event_log:
            self.event_log.phase_start(phase.phase_id, rooms)

    def _complete(self, phase: Phase, failed: Optional[List[str]] = None) -> None:
        self._registry.complete_phase(phase, failed)
        if self.event_log:
            progress = self._registry.get_phase(phase.phase_id)
            self.event_log.phase_end(phase.phase_id, progress.duration_ms, failed or [])

    def _diff(self, pool: ThreadPoolExecutor, force: bool, dump_scope: bool) -> None:
        """P0: fingerprint every room in parallel."""
        self._start(DIFF, [room.name for room in self.rooms])

        def evaluate(room: Room) -> None:
            room.evaluate(self.cache, force=force, dump_scope=dump_scope, scope_dir=self.scope_dir)
            if self.event_log:
                self.event_log.room_diff(room.name, room.should_build)

        self._barrier([pool.submit(evaluate, room) for room in self.rooms])
        self._complete(DIFF)

    def _run_global(self, phase: Phase, command: Optional[str]) -> None:
        """P1 / P7: run a global hook once. Failure aborts the run if the phase is fatal."""
        if not command:
            self._registry.skip_phase(phase, "not configured")
            return

        logger.info(f"Executing {phase.name}")
        self._start(phase, [])
        result = self._execute(phase, phase.name, str(self.project_dir), command)

        if not result.ok:
            self._registry.fail_phase(phase, result.error_message or "failed")
            if phase.fatal:
                raise FatalHookError(phase.name, result)
            logger.warning(f"{phase.name} hook failed, continuing")
            return

        self._complete(phase)

    def _run_room_phase(self, pool: ThreadPoolExecutor, phase: Phase) -> None:
        """P2-P6: run one hook across every active room."""
        if not any(room.hooks.get(phase.hook) for room in self.rooms):
            self._registry.skip_phase(phase, "no room defines this hook")
            return

        logger.info(f"Executing {phase.name}")
        eligible = [room for room in self.rooms if room.is_active and room.hooks.get(phase.hook)]
        self._start(phase, [room.name for room in eligible])

        if phase.mode == ExecutionMode.SEQUENTIAL:
            for room in eligible:
                self._run_room_hook(phase, room)
        else:
            self._barrier([pool.submit(self._run_room_hook, phase, room) for room in eligible])

        self._complete(phase, [room.name for room in eligible if room.errored])

    def _run_room_hook(self, phase: Phase, room: Room) -> Optional[CommandResult]:
        command = room.hooks.get(phase.hook)
        if not command or not room.is_active:
            return None

        logger.info(f"[Starting] ==> {room.name}")
        result = self._execute(phase, room.name, room.path, command, room=room.name)
        if not result.ok:
            room.mark_errored()
        return result

    def _execute(
        self,
        phase: Phase,
        label: str,
        cwd: str,
        command: str,
        room: Optional[str] = None,
    ) -> CommandResult:
        if self.event_log:
            self.event_log.hook_start(phase.phase_id, room or label, command)

        result = self.runner.run(cwd, command, label)

        if self.event_log:
            self.event_log.hook_end(phase.phase_id, room or label, result)
        with self._results_lock:
            self._results.append(result)
        return result

    def _commit(self) -> List[str]:
        """P8: persist fingerprints of rooms that never errored."""
        self._start(COMMIT, [room.name for room in self.rooms])

        committed: List[str] = []
        for room in self.rooms:
            if room.errored:
                continue
            room.commit(self.cache)
            committed.append(room.name)
            if self.event_log:
                self.event_log.room_commit(room.name)

        errored = self._errored_names()
        self._complete(COMMIT, errored)

        if errored:
            logger.warning(ERRORS_MESSAGE)
            if self.event_log:
                self.event_log.warning(ERRORS_MESSAGE, {"rooms": errored})

        return committed

    @staticmethod
    def _barrier(futures: List[Future]) -> None:
        """Wait for every task, then surface the first unexpected exception."""
        wait(futures)
        for future in futures:
            future.result()
