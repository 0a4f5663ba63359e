"""Room fingerprinting.

A fingerprint is the concatenation of one BLAKE2s hex digest per file
(each followed by a newline) for every regular file the ignore-aware
walker visits under a room's path. Two fingerprints are equal iff the
same ordered file set has byte-identical contents.
"""

import hashlib
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from ..errors import IgnoreFileError
from .walker import IgnoreWalker, compile_glob


logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def hash_file(path: Path) -> str:
    """BLAKE2s hex digest of a file's full byte content."""
    digest = hashlib.blake2s()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def read_ignore_file(name: str, ignore_file: str) -> List[str]:
    """Read extra ignore globs, one per line. Empty lines are dropped."""
    try:
        content = Path(ignore_file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IgnoreFileError(name, ignore_file, str(e)) from e
    return [line for line in content.split("\n") if line.strip()]


def scan_room(spec) -> Tuple[str, List[str]]:
    """Walk a room and build its fingerprint.

    Args:
        spec: RoomSpec (anything with name, path, include and ignore_file)

    Returns:
        (fingerprint, traversed file paths)
    """
    extra: List[str] = []
    if spec.ignore_file:
        extra = read_ignore_file(spec.name, spec.ignore_file)

    include = compile_glob(spec.include) if spec.include else None
    root = Path(spec.path)

    parts: List[str] = []
    scope: List[str] = []
    for path in IgnoreWalker(str(root), extra_ignores=extra):
        if include is not None:
            rel = path.relative_to(root).as_posix()
            if not include.match(rel):
                continue
        scope.append(str(path))
        parts.append(hash_file(path) + "\n")

    logger.debug(f"Fingerprinted {len(scope)} files for room {spec.name}")
    return "".join(parts), scope


def compute_fingerprint(spec, dump_scope: bool = False, scope_dir: Optional[str] = None) -> str:
    """Compute the fingerprint of a room.

    Args:
        spec: RoomSpec to fingerprint
        dump_scope: Also write the traversed paths, one per line, to a file
            named after the room (debugging aid)
        scope_dir: Directory for the scope file (default: current directory)

    Returns:
        Fingerprint string
    """
    fingerprint, scope = scan_room(spec)

    if dump_scope:
        target = Path(scope_dir or ".") / spec.name
        target.write_text("".join(p + "\n" for p in scope), encoding="utf-8")
        logger.debug(f"Dumped file scope for room {spec.name} to {target}")

    return fingerprint
