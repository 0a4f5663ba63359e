"""Tests for room fingerprinting and the fingerprint cache."""

import hashlib
from pathlib import Path

import pytest

from roomservice_py.engine.cache import FingerprintCache
from roomservice_py.engine.fingerprint import compute_fingerprint, hash_file
from roomservice_py.engine.room import RoomSpec
from roomservice_py.errors import CacheDirError, IgnoreFileError


@pytest.fixture
def room_dir(tmp_path):
    root = tmp_path / "api"
    (root / "src").mkdir(parents=True)
    (root / "src" / "main.py").write_text("print('hi')\n")
    (root / "README").write_text("readme\n")
    return root


def spec_for(root: Path, **kwargs) -> RoomSpec:
    return RoomSpec(name="api", path=str(root), **kwargs)


class TestComputeFingerprint:
    """Tests for compute_fingerprint."""

    def test_one_blake2s_line_per_file(self, room_dir):
        fingerprint = compute_fingerprint(spec_for(room_dir))

        expected = "".join(
            hashlib.blake2s(p.read_bytes()).hexdigest() + "\n"
            for p in (room_dir / "README", room_dir / "src" / "main.py")
        )
        assert fingerprint == expected

    def test_hash_file_matches_hashlib(self, room_dir):
        path = room_dir / "README"
        assert hash_file(path) == hashlib.blake2s(b"readme\n").hexdigest()

    def test_stable_across_calls(self, room_dir):
        spec = spec_for(room_dir)
        assert compute_fingerprint(spec) == compute_fingerprint(spec)

    def test_content_change_changes_fingerprint(self, room_dir):
        spec = spec_for(room_dir)
        before = compute_fingerprint(spec)

        (room_dir / "src" / "main.py").write_text("print('bye')\n")

        assert compute_fingerprint(spec) != before

    def test_new_file_changes_fingerprint(self, room_dir):
        spec = spec_for(room_dir)
        before = compute_fingerprint(spec)

        (room_dir / "src" / "extra.py").write_text("")

        assert compute_fingerprint(spec) != before

    def test_empty_room(self, tmp_path):
        assert compute_fingerprint(spec_for(tmp_path)) == ""

    def test_ignore_file_excludes_matches(self, room_dir, tmp_path):
        ignore_file = tmp_path / ".roomignore"
        ignore_file.write_text("*.log\n\nbuild\n")
        spec = spec_for(room_dir, ignore_file=str(ignore_file))
        before = compute_fingerprint(spec)

        (room_dir / "debug.log").write_text("noise")
        (room_dir / "build").mkdir()
        (room_dir / "build" / "out.bin").write_bytes(b"\x00\x01")

        assert compute_fingerprint(spec) == before

    def test_empty_ignore_file_adds_nothing(self, room_dir, tmp_path):
        ignore_file = tmp_path / ".roomignore"
        ignore_file.write_text("")

        with_file = compute_fingerprint(spec_for(room_dir, ignore_file=str(ignore_file)))
        assert with_file == compute_fingerprint(spec_for(room_dir))

    def test_missing_ignore_file_raises(self, room_dir, tmp_path):
        spec = spec_for(room_dir, ignore_file=str(tmp_path / "missing"))

        with pytest.raises(IgnoreFileError):
            compute_fingerprint(spec)

    def test_undecodable_ignore_file_raises(self, room_dir, tmp_path):
        ignore_file = tmp_path / ".roomignore"
        ignore_file.write_bytes(b"\xff\xfe*.log\n")
        spec = spec_for(room_dir, ignore_file=str(ignore_file))

        with pytest.raises(IgnoreFileError):
            compute_fingerprint(spec)

    def test_gitignore_in_tree_respected(self, room_dir):
        (room_dir / ".gitignore").write_text("*.tmp\n")
        spec = spec_for(room_dir)
        before = compute_fingerprint(spec)

        (room_dir / "scratch.tmp").write_text("scratch")

        assert compute_fingerprint(spec) == before

    def test_include_glob_filters_files(self, room_dir):
        spec = spec_for(room_dir, include="src/**/*.py")
        only_src = hashlib.blake2s((room_dir / "src" / "main.py").read_bytes()).hexdigest() + "\n"

        assert compute_fingerprint(spec) == only_src

    def test_dump_scope_writes_file_list(self, room_dir, tmp_path):
        scope_dir = tmp_path / "scope"
        scope_dir.mkdir()

        compute_fingerprint(spec_for(room_dir), dump_scope=True, scope_dir=str(scope_dir))

        lines = (scope_dir / "api").read_text().splitlines()
        assert lines == [str(room_dir / "README"), str(room_dir / "src" / "main.py")]


class TestFingerprintCache:
    """Tests for FingerprintCache."""

    def test_missing_entry_is_none(self, tmp_path):
        cache = FingerprintCache(str(tmp_path / "cache"))
        assert cache.read_previous("api") is None

    def test_commit_creates_dir_and_round_trips(self, tmp_path):
        cache = FingerprintCache(str(tmp_path / "cache"))
        cache.commit("api", "abc\ndef\n")

        assert (tmp_path / "cache" / "api").read_text() == "abc\ndef\n"
        assert cache.read_previous("api") == "abc\ndef\n"

    def test_ensure_dir_existing_is_fine(self, tmp_path):
        cache = FingerprintCache(str(tmp_path))
        cache.ensure_dir()
        cache.ensure_dir()

    def test_ensure_dir_blocked_by_file(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        cache = FingerprintCache(str(blocker / "cache"))

        with pytest.raises(CacheDirError):
            cache.ensure_dir()

    def test_unreadable_entry_is_none(self, tmp_path):
        cache = FingerprintCache(str(tmp_path))
        (tmp_path / "api").mkdir()

        assert cache.read_previous("api") is None
