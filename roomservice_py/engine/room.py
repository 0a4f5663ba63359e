"""Room models and build-decision logic.

A room is an independently buildable directory subtree. ``RoomSpec`` is
the immutable registration input; ``Room`` wraps it with the mutable
per-run state owned by the scheduler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..errors import RoomserviceError
from .cache import FingerprintCache
from .fingerprint import compute_fingerprint


logger = logging.getLogger(__name__)

DEFAULT_INCLUDE = "**/*"


class Hooks(BaseModel):
    """Shell commands keyed by phase. Every hook is optional.

    ``finally_`` is accepted for config compatibility but no phase runs it.
    """

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "forbid",
    }

    before: Optional[str] = None
    before_synchronous: Optional[str] = Field(default=None, alias="beforeSynchronous")
    run_synchronous: Optional[str] = Field(default=None, alias="runSynchronous")
    run_parallel: Optional[str] = Field(default=None, alias="runParallel")
    after: Optional[str] = None
    finally_: Optional[str] = Field(default=None, alias="finally")

    def get(self, hook_name: str) -> Optional[str]:
        """Hook command by attribute name, None when not configured."""
        return getattr(self, hook_name)


class RoomSpec(BaseModel):
    """Registration input for a room."""

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    name: str = Field(..., description="Room name, used as the cache key")
    path: str = Field(..., description="Directory holding the room's sources")
    include: str = Field(default=DEFAULT_INCLUDE, description="Glob of files that count towards the fingerprint")
    ignore_file: Optional[str] = Field(default=None, description="File of extra ignore globs, one per line")
    hooks: Hooks = Field(default_factory=Hooks)

    @field_validator("name")
    @classmethod
    def _valid_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"Room name {v!r} cannot be used as a cache file name")
        return v


@dataclass
class Room:
    """Runtime state of a registered room.

    Mutated only by the worker currently processing the room.
    """
    spec: RoomSpec
    should_build: bool = True
    latest_fingerprint: Optional[str] = None
    errored: bool = False

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def path(self) -> str:
        return self.spec.path

    @property
    def hooks(self) -> Hooks:
        return self.spec.hooks

    @property
    def is_active(self) -> bool:
        """True while hooks should still run for this room."""
        return self.should_build and not self.errored

    def evaluate(
        self,
        cache: FingerprintCache,
        force: bool = False,
        dump_scope: bool = False,
        scope_dir: Optional[str] = None,
    ) -> bool:
        """Fingerprint the room and decide whether it needs building.

        The fresh fingerprint is always stored for a later commit.

        Returns:
            The new ``should_build`` value
        """
        previous = cache.read_previous(self.name)
        current = compute_fingerprint(self.spec, dump_scope=dump_scope, scope_dir=scope_dir)
        self.latest_fingerprint = current

        if force:
            self.should_build = True
        elif previous is None:
            self.should_build = True
        else:
            self.should_build = previous != current

        logger.debug(f"Room {self.name}: should_build={self.should_build}")
        return self.should_build

    def mark_errored(self) -> None:
        """Flag the room as failed for the rest of this run."""
        self.errored = True

    def commit(self, cache: FingerprintCache) -> None:
        """Accept the latest fingerprint as the room's cached value."""
        if self.errored:
            raise RoomserviceError(f"Refusing to commit errored room \"{self.name}\"")
        if self.latest_fingerprint is None:
            raise RoomserviceError(f"Room \"{self.name}\" has not been evaluated")
        cache.commit(self.name, self.latest_fingerprint)
