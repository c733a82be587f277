"""
On-disk cache shared by every hookrunner invocation.

Layout under the cache root::

    repos/<key>/          fetched hook repositories, one per (url, rev)
    envs/<lang>-<fp>/     installed environments, one per fingerprint
    locks/<key>.lock      per-key file locks
    patches/              transient stash patches
    index/                diskcache index of everything above

Writers hold the entry's lock while building it. Repositories are built in
a temporary sibling directory and renamed into place; environments are built
in place and only count as installed once their marker file exists. Either
way, concurrent invocations installing the same key never observe or corrupt
a half-built entry.
"""

import hashlib
import os
import shutil
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from diskcache import Cache
from filelock import FileLock

from .logging_config import get_logger

logger = get_logger(__name__)


def digest(*parts: str) -> str:
    """Stable sha256 over ``parts`` (NUL-joined)."""
    return hashlib.sha256("\0".join(parts).encode("utf-8")).hexdigest()


class Store:
    """
    Directory-backed cache service for repositories, environments and patches.

    Features:
    - Content-addressed entry directories
    - Per-key locking through ``filelock``
    - Atomic rename-into-place for new entries
    - A ``diskcache`` index for listing and bookkeeping
    """

    def __init__(self, root: Path):
        """
        Initialize the store, creating its directories if needed.

        Args:
            root: Cache root directory
        """
        self.root = Path(root)
        self.repos_dir = self.root / "repos"
        self.envs_dir = self.root / "envs"
        self.locks_dir = self.root / "locks"
        self.patches_dir = self.root / "patches"
        for directory in (self.repos_dir, self.envs_dir, self.locks_dir, self.patches_dir):
            directory.mkdir(parents=True, exist_ok=True)
        self._index: Optional[Cache] = None
        logger.debug(f"Store initialized at {self.root}")

    @property
    def index(self) -> Cache:
        if self._index is None:
            self._index = Cache(str(self.root / "index"))
        return self._index

    def close(self) -> None:
        if self._index is not None:
            self._index.close()
            self._index = None

    # -- keys and locations -------------------------------------------------

    def repo_dir(self, url: str, rev: str) -> Path:
        return self.repos_dir / digest(url, rev)[:24]

    def env_dir(self, language: str, fingerprint: str) -> Path:
        return self.envs_dir / f"{language}-{fingerprint[:24]}"

    def lock(self, name: str) -> FileLock:
        """Inter-process lock for one cache entry."""
        return FileLock(str(self.locks_dir / f"{name}.lock"))

    def patch_path(self) -> Path:
        return self.patches_dir / f"{int(time.time())}-{os.getpid()}.patch"

    # -- atomic entry creation ----------------------------------------------

    @contextmanager
    def staging(self, final: Path) -> Iterator[Path]:
        """
        Yield a temporary directory that becomes ``final`` on success.

        The temporary directory lives next to ``final`` so the closing
        rename stays on one filesystem. Any exception (including an
        interruption) removes it, leaving no partial entry behind.
        """
        tmp = Path(tempfile.mkdtemp(prefix=f".tmp-{final.name}-", dir=final.parent))
        try:
            yield tmp
        except BaseException:
            shutil.rmtree(tmp, ignore_errors=True)
            raise
        if final.exists():
            # Another process won the race between our check and our lock.
            shutil.rmtree(tmp, ignore_errors=True)
            return
        os.rename(tmp, final)

    @contextmanager
    def building(self, final: Path) -> Iterator[Path]:
        """
        Yield ``final`` for in-place construction; remove it on any failure.

        For entries that cannot be moved after creation (virtualenvs embed
        their absolute path). Must be used under the entry's lock; leftovers
        from a killed process are cleared first. Completion is signalled by
        the caller writing a marker file as the last step.
        """
        if final.exists():
            shutil.rmtree(final)
        final.mkdir(parents=True)
        try:
            yield final
        except BaseException:
            shutil.rmtree(final, ignore_errors=True)
            raise

    # -- bookkeeping --------------------------------------------------------

    def record(self, kind: str, key: str, path: Path, **meta: Any) -> None:
        """Note an entry in the index. Bookkeeping failures are non-fatal."""
        entry = {"kind": kind, "key": key, "path": str(path), "last_used": time.time(), **meta}
        try:
            self.index.set(f"{kind}:{key}", entry)
        except Exception as e:
            logger.warning(f"Cache index update failed: {e}")

    def entries(self, kind: Optional[str] = None) -> list[dict]:
        """All indexed entries whose directory still exists."""
        found = []
        for index_key in list(self.index.iterkeys()):
            entry = self.index.get(index_key)
            if not entry or (kind is not None and entry.get("kind") != kind):
                continue
            if Path(entry["path"]).exists():
                found.append(entry)
        return sorted(found, key=lambda e: (e["kind"], e["key"]))

    def stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dictionary with entry counts and on-disk size
        """
        size = 0
        for dirpath, _, filenames in os.walk(self.root):
            for name in filenames:
                try:
                    size += os.lstat(os.path.join(dirpath, name)).st_size
                except OSError:
                    continue
        return {
            "directory": str(self.root),
            "repos": len(self.entries("repo")),
            "environments": len(self.entries("env")),
            "volume": size,
        }

    def clean(self) -> None:
        """Delete the whole cache directory."""
        self.close()
        shutil.rmtree(self.root, ignore_errors=True)
        logger.info("Cache cleared")
