"""Custom error types for roomservice-py."""

from typing import Optional


class RoomserviceError(Exception):
    """Base error for all roomservice errors."""
    pass


class ConfigError(RoomserviceError):
    """Raised when the project config is invalid or inconsistent."""
    pass


class ConfigNotFoundError(ConfigError):
    """Raised when no roomservice config can be located."""

    def __init__(self, start: str):
        self.start = start
        super().__init__(f"No config found (searched from \"{start}\")")


class RoomPathError(RoomserviceError):
    """Raised when a room is registered with a path that does not exist."""

    def __init__(self, name: str, path: str):
        self.name = name
        self.path = path
        super().__init__(f"Path does not exist for room \"{name}\" at \"{path}\"")


class CacheDirError(RoomserviceError):
    """Raised when the cache directory cannot be created."""

    def __init__(self, cache_dir: str, reason: Optional[str] = None):
        self.cache_dir = cache_dir
        msg = f"Unable to create cache directory \"{cache_dir}\""
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class CacheWriteError(RoomserviceError):
    """Raised when a room's fingerprint cannot be written to the cache."""

    def __init__(self, name: str, reason: Optional[str] = None):
        self.name = name
        msg = f"Unable to write roomservice cache for room \"{name}\""
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class IgnoreFileError(RoomserviceError):
    """Raised when a room's ignore file cannot be read."""

    def __init__(self, name: str, path: str, reason: Optional[str] = None):
        self.name = name
        self.path = path
        msg = f"Unable to read ignore file \"{path}\" for room \"{name}\""
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class EventLogError(RoomserviceError):
    """Raised when the NDJSON event log cannot be created."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        msg = f"Unable to open event log \"{path}\""
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class FatalHookError(RoomserviceError):
    """Raised when a global hook (beforeAll / afterAll) exits non-zero.

    The failing CommandResult is kept on ``result`` so embedding callers can
    inspect the captured output.
    """

    def __init__(self, label: str, result=None):
        self.label = label
        self.result = result
        super().__init__(f"Error in {label} hook, aborting roomservice run")
