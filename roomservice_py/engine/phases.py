"""
Pipeline phases and progress tracking.

The pipeline is a fixed sequence of phases. Each phase is a full barrier:
every room in it completes (or is skipped because it already errored)
before the next phase starts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class ExecutionMode(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class PhaseStatus:
    """Phase execution status."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class Phase:
    """Static description of one pipeline phase."""
    phase_id: str
    name: str
    mode: ExecutionMode
    hook: Optional[str] = None  # Hooks attribute for room phases
    fatal: bool = False


DIFF = Phase("diff", "Diffing rooms", ExecutionMode.PARALLEL)
BEFORE_ALL = Phase("before_all", "Before All", ExecutionMode.SEQUENTIAL, fatal=True)
BEFORE_SYNCHRONOUS = Phase("before_synchronous", "Before Sync", ExecutionMode.SEQUENTIAL, hook="before_synchronous")
BEFORE = Phase("before", "Before", ExecutionMode.PARALLEL, hook="before")
RUN_PARALLEL = Phase("run_parallel", "Run Parallel", ExecutionMode.PARALLEL, hook="run_parallel")
RUN_SYNCHRONOUS = Phase("run_synchronous", "Run Synchronously", ExecutionMode.SEQUENTIAL, hook="run_synchronous")
AFTER = Phase("after", "After", ExecutionMode.PARALLEL, hook="after")
AFTER_ALL = Phase("after_all", "After All", ExecutionMode.SEQUENTIAL, fatal=True)
COMMIT = Phase("commit", "Committing fingerprints", ExecutionMode.SEQUENTIAL)

# Room-scoped hook phases, in execution order
ROOM_PHASES = (BEFORE_SYNCHRONOUS, BEFORE, RUN_PARALLEL, RUN_SYNCHRONOUS, AFTER)


@dataclass
class PhaseProgress:
    """Progress record for a phase within one run."""
    phase_id: str
    name: str
    status: str = PhaseStatus.PENDING
    rooms: List[str] = field(default_factory=list)
    failed_rooms: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def duration_ms(self) -> Optional[float]:
        if not self.started_at or not self.completed_at:
            return None
        return (self.completed_at - self.started_at).total_seconds() * 1000


class PhaseRegistry:
    """
    Tracks phase progression for a single run.

    Phases are recorded in the order they are started so the run report
    shows exactly which barriers were crossed.
    """

    def __init__(self):
        self._phases: Dict[str, PhaseProgress] = {}

    def start_phase(self, phase: Phase, rooms: Optional[List[str]] = None) -> PhaseProgress:
        progress = PhaseProgress(
            phase_id=phase.phase_id,
            name=phase.name,
            status=PhaseStatus.RUNNING,
            rooms=list(rooms or []),
            started_at=datetime.now(),
        )
        self._phases[phase.phase_id] = progress
        return progress

    def complete_phase(self, phase: Phase, failed_rooms: Optional[List[str]] = None) -> None:
        progress = self._phases[phase.phase_id]
        progress.status = PhaseStatus.COMPLETED
        progress.failed_rooms = list(failed_rooms or [])
        progress.completed_at = datetime.now()

    def fail_phase(self, phase: Phase, error: str) -> None:
        progress = self._phases[phase.phase_id]
        progress.status = PhaseStatus.FAILED
        progress.error = error
        progress.completed_at = datetime.now()

    def skip_phase(self, phase: Phase, reason: Optional[str] = None) -> None:
        self._phases[phase.phase_id] = PhaseProgress(
            phase_id=phase.phase_id,
            name=phase.name,
            status=PhaseStatus.SKIPPED,
            error=reason,
        )

    def get_phase(self, phase_id: str) -> Optional[PhaseProgress]:
        return self._phases.get(phase_id)

    def list_phases(self) -> List[PhaseProgress]:
        return list(self._phases.values())


__all__ = [
    "ExecutionMode",
    "Phase",
    "PhaseStatus",
    "PhaseProgress",
    "PhaseRegistry",
    "ROOM_PHASES",
    "DIFF",
    "BEFORE_ALL",
    "BEFORE_SYNCHRONOUS",
    "BEFORE",
    "RUN_PARALLEL",
    "RUN_SYNCHRONOUS",
    "AFTER",
    "AFTER_ALL",
    "COMMIT",
]
