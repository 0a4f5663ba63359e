"""Ignore-aware directory walker.

Walks a directory tree the way a version-control aware tool would:
- Honors ``.gitignore`` and ``.ignore`` files in every traversed directory
  and in the ancestors of the root, up to the enclosing repository
- Accepts extra root-level ignore globs (e.g. from a room's ignore file)
- Skips hidden entries and never follows symlinks
- Visits directory entries sorted by name so walks are reproducible
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence


IGNORE_FILE_NAMES = (".gitignore", ".ignore")


def glob_to_regex(pattern: str) -> str:
    """Translate a gitignore-style glob into a regular expression body.

    ``*`` and ``?`` never cross a ``/``; ``**`` does. ``[...]`` classes are
    kept, with a leading ``!`` meaning negation as in fnmatch.
    """
    i, n = 0, len(pattern)
    out: List[str] = []
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern[i:i + 2] == "**":
                at_start = i == 0 or pattern[i - 1] == "/"
                if pattern[i + 2:i + 3] == "/" and at_start:
                    out.append("(?:.*/)?")
                    i += 3
                    continue
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            j = pattern.find("]", i + 1)
            if j == -1:
                out.append(re.escape(c))
            else:
                body = pattern[i + 1:j]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append("[" + body.replace("\\", "\\\\") + "]")
                i = j + 1
                continue
        elif c == "\\" and i + 1 < n:
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        else:
            out.append(re.escape(c))
        i += 1
    return "".join(out)


def compile_glob(pattern: str) -> "re.Pattern[str]":
    """Compile a glob that must match a whole relative path."""
    if pattern.startswith("./"):
        pattern = pattern[2:]
    return re.compile(glob_to_regex(pattern) + r"\Z")


@dataclass
class IgnoreRule:
    """One parsed line of an ignore file."""
    pattern: str
    base: str  # directory the rule was declared in, relative to the walk root
    negated: bool
    dir_only: bool
    regex: "re.Pattern[str]"
    # path of the walk root below the rule's directory, for parent ignore files
    prefix: str = ""

    @classmethod
    def parse(cls, line: str, base: str = "", prefix: str = "") -> Optional["IgnoreRule"]:
        """Parse an ignore line. Returns None for blanks and comments."""
        raw = line.rstrip("\r")
        if not raw.strip() or raw.startswith("#"):
            return None
        if not raw.endswith("\\ "):
            raw = raw.rstrip()

        negated = raw.startswith("!")
        if negated:
            raw = raw[1:]
        elif raw.startswith("\\!") or raw.startswith("\\#"):
            raw = raw[1:]

        dir_only = raw.endswith("/")
        body = raw.rstrip("/")
        if not body:
            return None

        # A slash anywhere but the end anchors the pattern to ``base``
        anchored = "/" in body
        body = body.lstrip("/")
        lead = "" if anchored or body.startswith("**/") else "(?:.*/)?"
        regex = re.compile(lead + glob_to_regex(body) + r"\Z")

        return cls(
            pattern=line,
            base=base,
            negated=negated,
            dir_only=dir_only,
            regex=regex,
            prefix=prefix,
        )

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        if self.prefix:
            rel_path = f"{self.prefix}/{rel_path}"
        if self.base:
            if not rel_path.startswith(self.base + "/"):
                return False
            rel_path = rel_path[len(self.base) + 1:]
        return self.regex.match(rel_path) is not None


class IgnoreMatcher:
    """Ordered collection of ignore rules. The last matching rule wins."""

    def __init__(self, rules: Optional[Sequence[IgnoreRule]] = None):
        self.rules: List[IgnoreRule] = list(rules or [])

    def add_lines(self, lines: Sequence[str], base: str = "", prefix: str = "") -> None:
        for line in lines:
            rule = IgnoreRule.parse(line, base, prefix)
            if rule is not None:
                self.rules.append(rule)

    def child(self) -> "IgnoreMatcher":
        """Copy used for a subdirectory, so sibling rules don't leak."""
        return IgnoreMatcher(self.rules)

    def is_ignored(self, rel_path: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self.rules:
            if rule.matches(rel_path, is_dir):
                ignored = not rule.negated
        return ignored


class IgnoreWalker:
    """Yields the regular files under ``root`` that survive ignore rules.

    With ``parents`` set, ignore files in the ancestors of ``root`` apply
    too, up to and including the first ancestor holding a ``.git`` entry.
    """

    def __init__(
        self,
        root: str,
        extra_ignores: Optional[Sequence[str]] = None,
        hidden: bool = True,
        ignore_file_names: Sequence[str] = IGNORE_FILE_NAMES,
        parents: bool = True,
    ):
        self.root = Path(root)
        self.extra_ignores = list(extra_ignores or [])
        self.hidden = hidden
        self.ignore_file_names = tuple(ignore_file_names)
        self.parents = parents

    def walk(self) -> Iterator[Path]:
        """Walk the tree depth-first, entries sorted by name."""
        matcher = IgnoreMatcher()
        if self.parents:
            self._add_parent_ignores(matcher)
        matcher.add_lines(self.extra_ignores)
        yield from self._walk_dir(self.root, "", matcher)

    def __iter__(self) -> Iterator[Path]:
        return self.walk()

    def _read_ignore_files(self, directory: Path, matcher: IgnoreMatcher, base: str = "", prefix: str = "") -> None:
        for name in self.ignore_file_names:
            ignore_path = directory / name
            if ignore_path.is_file():
                lines = ignore_path.read_text(encoding="utf-8", errors="replace").split("\n")
                matcher.add_lines(lines, base, prefix)

    def _add_parent_ignores(self, matcher: IgnoreMatcher) -> None:
        root = self.root.resolve()
        ancestors: List[Path] = []
        for parent in root.parents:
            ancestors.append(parent)
            if (parent / ".git").exists():
                break

        # Outermost first so closer ignore files take precedence
        for parent in reversed(ancestors):
            self._read_ignore_files(parent, matcher, prefix=root.relative_to(parent).as_posix())

    def _walk_dir(self, directory: Path, rel_dir: str, matcher: IgnoreMatcher) -> Iterator[Path]:
        matcher = matcher.child()
        self._read_ignore_files(directory, matcher, rel_dir)

        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)

        for entry in entries:
            if self.hidden and entry.name.startswith("."):
                continue
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name

            if entry.is_dir(follow_symlinks=False):
                if matcher.is_ignored(rel_path, True):
                    continue
                yield from self._walk_dir(Path(entry.path), rel_path, matcher)
            elif entry.is_file(follow_symlinks=False):
                if matcher.is_ignored(rel_path, False):
                    continue
                yield Path(entry.path)
