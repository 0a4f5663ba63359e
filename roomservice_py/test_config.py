"""Tests for project config loading and room selection."""

import textwrap

import pytest

from roomservice_py.config import (
    CONFIG_FILE_NAME,
    ProjectConfig,
    RoomConfig,
    build_scheduler,
    find_config,
    load_config,
    select_rooms,
    split_names,
)
from roomservice_py.errors import ConfigError, ConfigNotFoundError, RoomPathError


CONFIG = textwrap.dedent("""\
    beforeAll: echo start
    afterAll: echo end
    rooms:
      web:
        path: ./web
        ignoreFile: .roomignore
        runParallel: make build
      api:
        path: ./api
        include: "src/**"
        beforeSynchronous: make deps
        finally: echo never
""")


@pytest.fixture
def project(tmp_path):
    (tmp_path / "api" / "src").mkdir(parents=True)
    (tmp_path / "api" / "src" / "app.py").write_text("app\n")
    (tmp_path / "web").mkdir()
    (tmp_path / "web" / "index.html").write_text("<html/>\n")
    (tmp_path / ".roomignore").write_text("*.map\n")
    (tmp_path / CONFIG_FILE_NAME).write_text(CONFIG)
    return tmp_path


class TestLoadConfig:
    """Tests for load_config."""

    def test_parses_rooms_and_globals(self, project):
        config = load_config(str(project / CONFIG_FILE_NAME))

        assert config.before_all == "echo start"
        assert config.after_all == "echo end"
        assert config.room_names() == ["api", "web"]
        assert config.rooms["web"].run_parallel == "make build"
        assert config.rooms["web"].ignore_file == ".roomignore"
        assert config.rooms["api"].include == "src/**"
        assert config.rooms["api"].finally_ == "echo never"

    def test_defaults(self):
        room = RoomConfig(path="./x")
        assert room.include == "**/*"
        assert room.before is None

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("rooms:\n  api:\n    path: ./api\n    runParalel: typo\n")

        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_missing_path_rejected(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("rooms:\n  api:\n    before: make\n")

        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("rooms: [unclosed\n")

        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_empty_file_is_empty_config(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("")

        assert load_config(str(path)) == ProjectConfig()

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "missing.yml"))

    def test_to_spec_carries_hooks(self, project):
        config = load_config(str(project / CONFIG_FILE_NAME))
        spec = config.rooms["api"].to_spec("api")

        assert spec.name == "api"
        assert spec.hooks.before_synchronous == "make deps"
        assert spec.hooks.finally_ == "echo never"


class TestFindConfig:
    """Tests for find_config."""

    def test_in_directory(self, project):
        assert find_config(str(project)) == project.resolve() / CONFIG_FILE_NAME

    def test_walks_up_parents(self, project):
        nested = project / "api" / "src"
        assert find_config(str(nested)) == project.resolve() / CONFIG_FILE_NAME

    def test_explicit_yml_path(self, project):
        path = project / CONFIG_FILE_NAME
        assert find_config(str(path)) == path

    def test_explicit_yml_missing(self, tmp_path):
        with pytest.raises(ConfigNotFoundError):
            find_config(str(tmp_path / "other.yml"))

    def test_not_found(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        # Guard against a stray config in a parent of the temp dir
        if any((p / CONFIG_FILE_NAME).exists() for p in empty.resolve().parents):
            pytest.skip("config present above temp dir")

        with pytest.raises(ConfigNotFoundError):
            find_config(str(empty))


class TestSelectRooms:
    """Tests for the only/ignore filters."""

    @pytest.fixture
    def config(self, project):
        return load_config(str(project / CONFIG_FILE_NAME))

    def test_no_filters_keeps_all_sorted(self, config):
        assert [name for name, _ in select_rooms(config)] == ["api", "web"]

    def test_only(self, config):
        assert [name for name, _ in select_rooms(config, only=["web"])] == ["web"]

    def test_ignore(self, config):
        assert [name for name, _ in select_rooms(config, ignore=["web"])] == ["api"]

    def test_unknown_only_name(self, config):
        with pytest.raises(ConfigError, match="provided to --only"):
            select_rooms(config, only=["mobile"])

    def test_unknown_ignore_name(self, config):
        with pytest.raises(ConfigError, match="provided to --ignore"):
            select_rooms(config, ignore=["mobile"])

    def test_split_names(self):
        assert split_names("api, web,,") == ["api", "web"]
        assert split_names(None) == []


class TestBuildScheduler:
    """Tests for build_scheduler."""

    def test_registers_rooms_and_globals(self, project):
        scheduler = build_scheduler(str(project))

        assert [r.name for r in scheduler.rooms] == ["api", "web"]
        assert scheduler.before_all == "echo start"
        assert scheduler.after_all == "echo end"
        assert scheduler.cache.cache_dir == project.resolve() / ".roomservice"
        assert scheduler.get_room("web").spec.ignore_file == str(project.resolve() / ".roomignore")

    def test_filters_applied(self, project):
        scheduler = build_scheduler(str(project), only=["api"])
        assert [r.name for r in scheduler.rooms] == ["api"]

    def test_custom_cache_dir(self, project, tmp_path):
        cache_dir = tmp_path / "elsewhere"
        scheduler = build_scheduler(str(project), cache_dir=str(cache_dir))
        assert cache_dir.is_dir()
        assert scheduler.cache.cache_dir == cache_dir

    def test_missing_room_path(self, project):
        (project / CONFIG_FILE_NAME).write_text("rooms:\n  ghost:\n    path: ./ghost\n")

        with pytest.raises(RoomPathError):
            build_scheduler(str(project))

    def test_invalid_room_name(self, project):
        (project / CONFIG_FILE_NAME).write_text("rooms:\n  '..':\n    path: ./api\n")

        with pytest.raises(ConfigError):
            build_scheduler(str(project))

    def test_include_glob_applies(self, project):
        scheduler = build_scheduler(str(project), echo=lambda line: None)
        scheduler.exec(update_hashes_only=True)

        (project / "api" / "README").write_text("docs only\n")
        report = scheduler.exec(dry_run=True)

        assert report.changed == []
