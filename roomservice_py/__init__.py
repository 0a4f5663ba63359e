"""
Roomservice Python Implementation

Incremental build orchestration for multi-room projects: fingerprints each
room's sources, then runs a fixed pipeline of shell hooks for the rooms
that changed since their last successful build.
"""

__version__ = '1.0.0'

# Errors
from .errors import (
    RoomserviceError,
    ConfigError,
    ConfigNotFoundError,
    RoomPathError,
    CacheDirError,
    CacheWriteError,
    IgnoreFileError,
    EventLogError,
    FatalHookError,
)

# Engine
from .engine import (
    Scheduler,
    RunReport,
    RunStatus,
    Room,
    RoomSpec,
    Hooks,
    FingerprintCache,
    compute_fingerprint,
    IgnoreWalker,
    PhaseProgress,
    PhaseStatus,
)

# Runners
from .executors import (
    CommandRunner,
    CommandResult,
    CommandStatus,
)

# Config
from .config import (
    ProjectConfig,
    RoomConfig,
    find_config,
    load_config,
    select_rooms,
    build_scheduler,
)

# Logging
from .logs import (
    NDJSONLogger,
    EventType,
    create_logger,
)

__all__ = [
    # Errors
    'RoomserviceError',
    'ConfigError',
    'ConfigNotFoundError',
    'RoomPathError',
    'CacheDirError',
    'CacheWriteError',
    'IgnoreFileError',
    'EventLogError',
    'FatalHookError',
    # Engine
    'Scheduler',
    'RunReport',
    'RunStatus',
    'Room',
    'RoomSpec',
    'Hooks',
    'FingerprintCache',
    'compute_fingerprint',
    'IgnoreWalker',
    'PhaseProgress',
    'PhaseStatus',
    # Runners
    'CommandRunner',
    'CommandResult',
    'CommandStatus',
    # Config
    'ProjectConfig',
    'RoomConfig',
    'find_config',
    'load_config',
    'select_rooms',
    'build_scheduler',
    # Logging
    'NDJSONLogger',
    'EventType',
    'create_logger',
]
