"""Project configuration.

Reads ``roomservice.config.yml``, validates it with pydantic, applies the
``--only`` / ``--ignore`` room filters and builds a ready Scheduler.

Example::

    beforeAll: ./scripts/login.sh
    rooms:
      api:
        path: ./api
        runParallel: npm run build
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError

from .engine import Hooks, RoomSpec, Scheduler, DEFAULT_INCLUDE
from .errors import ConfigError, ConfigNotFoundError


logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "roomservice.config.yml"
CACHE_DIR_NAME = ".roomservice"


class RoomConfig(BaseModel):
    """One entry under ``rooms:``."""

    model_config = {
        "populate_by_name": True,
        "extra": "forbid",
    }

    path: str
    include: str = DEFAULT_INCLUDE
    ignore_file: Optional[str] = Field(default=None, alias="ignoreFile")
    before_synchronous: Optional[str] = Field(default=None, alias="beforeSynchronous")
    before: Optional[str] = None
    run_synchronous: Optional[str] = Field(default=None, alias="runSynchronous")
    run_parallel: Optional[str] = Field(default=None, alias="runParallel")
    after: Optional[str] = None
    finally_: Optional[str] = Field(default=None, alias="finally")

    def to_spec(self, name: str) -> RoomSpec:
        hooks = Hooks(
            before=self.before,
            before_synchronous=self.before_synchronous,
            run_synchronous=self.run_synchronous,
            run_parallel=self.run_parallel,
            after=self.after,
            finally_=self.finally_,
        )
        return RoomSpec(
            name=name,
            path=self.path,
            include=self.include,
            ignore_file=self.ignore_file,
            hooks=hooks,
        )


class ProjectConfig(BaseModel):
    """Top level of ``roomservice.config.yml``."""

    model_config = {
        "populate_by_name": True,
        "extra": "forbid",
    }

    before_all: Optional[str] = Field(default=None, alias="beforeAll")
    rooms: Dict[str, RoomConfig] = Field(default_factory=dict)
    after_all: Optional[str] = Field(default=None, alias="afterAll")

    def room_names(self) -> List[str]:
        """Room names in registration order (sorted by name)."""
        return sorted(self.rooms)


def find_config(start: str) -> Path:
    """Locate the config file.

    A path ending in ``.yml``/``.yaml`` is used as given. Otherwise look for
    ``roomservice.config.yml`` in ``start`` and then in each parent.

    Raises:
        ConfigNotFoundError: If nothing is found
    """
    candidate = Path(start)
    if candidate.suffix in (".yml", ".yaml"):
        if not candidate.is_file():
            raise ConfigNotFoundError(start)
        return candidate

    directory = candidate.resolve()
    for parent in (directory, *directory.parents):
        config_path = parent / CONFIG_FILE_NAME
        if config_path.is_file():
            return config_path

    raise ConfigNotFoundError(start)


def load_config(path: str) -> ProjectConfig:
    """Parse and validate a config file.

    Raises:
        ConfigError: On unreadable files, invalid YAML or schema errors
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Unable to read config \"{path}\": {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in \"{path}\": {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config \"{path}\" must be a mapping")

    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config \"{path}\": {e}") from e


def split_names(value: Optional[str]) -> List[str]:
    """Split a comma separated CLI value into room names."""
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


def select_rooms(
    config: ProjectConfig,
    only: Sequence[str] = (),
    ignore: Sequence[str] = (),
) -> List[Tuple[str, RoomConfig]]:
    """Apply the only/ignore filters.

    Raises:
        ConfigError: If a filter names a room missing from the config
    """
    for flag, names in (("only", only), ("ignore", ignore)):
        for name in names:
            if name not in config.rooms:
                raise ConfigError(
                    f"\"{name}\" was provided to --{flag} and does not exist in config"
                )

    selected = []
    for name in config.room_names():
        if only and name not in only:
            continue
        if name in ignore:
            continue
        selected.append((name, config.rooms[name]))
    return selected


def build_scheduler(
    project: str = ".",
    force: bool = False,
    only: Sequence[str] = (),
    ignore: Sequence[str] = (),
    cache_dir: Optional[str] = None,
    **scheduler_kwargs,
) -> Scheduler:
    """Build a Scheduler from the project's config file.

    Room paths, ignore files and global hooks are resolved relative to the
    directory holding the config. The cache lives in ``.roomservice`` next
    to the config unless ``cache_dir`` is given.
    """
    config_path = find_config(project).resolve()
    project_root = config_path.parent
    config = load_config(str(config_path))
    logger.debug(f"Loaded {len(config.rooms)} rooms from {config_path}")

    scheduler = Scheduler(
        cache_dir=cache_dir or str(project_root / CACHE_DIR_NAME),
        force=force,
        project_dir=str(project_root),
        **scheduler_kwargs,
    )

    if config.before_all:
        scheduler.add_before_all(config.before_all)
    if config.after_all:
        scheduler.add_after_all(config.after_all)

    for name, room_config in select_rooms(config, only, ignore):
        try:
            spec = room_config.to_spec(name)
        except ValidationError as e:
            raise ConfigError(f"Invalid room \"{name}\": {e}") from e
        scheduler.add_room(spec)

    return scheduler
