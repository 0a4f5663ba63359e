"""Roomservice engine: fingerprinting, cache, rooms and the phased scheduler."""

from .walker import IgnoreWalker, IgnoreMatcher, IgnoreRule, compile_glob
from .fingerprint import compute_fingerprint, hash_file
from .cache import FingerprintCache
from .room import Hooks, Room, RoomSpec, DEFAULT_INCLUDE
from .phases import (
    ExecutionMode,
    Phase,
    PhaseProgress,
    PhaseRegistry,
    PhaseStatus,
    ROOM_PHASES,
)
from .scheduler import Scheduler, RunReport, RunStatus

__all__ = [
    # Walker
    "IgnoreWalker",
    "IgnoreMatcher",
    "IgnoreRule",
    "compile_glob",
    # Fingerprinting
    "compute_fingerprint",
    "hash_file",
    "FingerprintCache",
    # Rooms
    "Hooks",
    "Room",
    "RoomSpec",
    "DEFAULT_INCLUDE",
    # Phases
    "ExecutionMode",
    "Phase",
    "PhaseProgress",
    "PhaseRegistry",
    "PhaseStatus",
    "ROOM_PHASES",
    # Scheduler
    "Scheduler",
    "RunReport",
    "RunStatus",
]
