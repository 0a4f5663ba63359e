"""Fingerprint cache.

One UTF-8 text file per room under a shared cache directory; the file's
entire content is the last accepted fingerprint. There is no locking, a
single orchestrator process is expected to own a cache directory.
"""

import logging
from pathlib import Path
from typing import Optional

from ..errors import CacheDirError, CacheWriteError


logger = logging.getLogger(__name__)


class FingerprintCache:
    """Reads and writes last-accepted fingerprints keyed by room name."""

    def __init__(self, cache_dir: str):
        self.cache_dir = Path(cache_dir)

    def ensure_dir(self) -> None:
        """Create the cache directory. An existing directory is fine."""
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheDirError(str(self.cache_dir), str(e)) from e

    def path_for(self, name: str) -> Path:
        return self.cache_dir / name

    def read_previous(self, name: str) -> Optional[str]:
        """Last accepted fingerprint, or None if missing or unreadable."""
        try:
            return self.path_for(name).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

    def commit(self, name: str, fingerprint: str) -> None:
        """Store ``fingerprint`` as the accepted value for room ``name``."""
        self.ensure_dir()
        try:
            # newline="" keeps the blob byte-identical on every platform
            with open(self.path_for(name), "w", encoding="utf-8", newline="") as f:
                f.write(fingerprint)
        except OSError as e:
            raise CacheWriteError(name, str(e)) from e
        logger.debug(f"Committed fingerprint for room {name}")
