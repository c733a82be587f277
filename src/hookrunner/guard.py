"""Working-tree guard: hooks only ever see staged content.

``WorkTreeGuard`` is a context manager bracketing a whole run. Entering it
saves unstaged changes to a patch and resets the tree to the index; leaving
it reapplies the patch. While active it owns SIGINT/SIGTERM: a signal is
turned into ``RunInterrupted`` inside the main thread so the exit path runs,
and an ``atexit`` hook covers interpreter shutdown. Restore executes exactly
once whichever of these fires first.
"""

from __future__ import annotations

import atexit
import signal
import threading
from pathlib import Path
from typing import Callable, Optional

from .exceptions import GitStateError, RestoreError, RunInterrupted
from .git import Git
from .logging_config import get_logger
from .store import Store

logger = get_logger(__name__)

_GUARDED_SIGNALS = tuple(
    sig for sig in (getattr(signal, "SIGINT", None), getattr(signal, "SIGTERM", None)) if sig
)


def check_merge_state(git: Git) -> None:
    """Refuse to run while the index holds unresolved merge conflicts."""
    if git.unmerged_paths():
        raise GitStateError("You have unmerged paths. Resolve them before running hookrunner.")


def check_config_staged(git: Git, config_path: str) -> None:
    if git.has_unstaged_changes(config_path):
        raise GitStateError(
            f"Your pre-commit configuration is unstaged.\n`git add {config_path}` to fix this."
        )


class WorkTreeGuard:
    """Snapshot unstaged changes on enter, restore them on every exit path."""

    def __init__(self, git: Git, store: Store, notify: Optional[Callable[[str], None]] = None):
        self.git = git
        self.store = store
        self.notify = notify or (lambda message: None)
        self.patch: Optional[Path] = None

        self._restore_lock = threading.Lock()
        self._restored = False
        self._restoring = False
        self._exiting = False
        self._pending_signal: Optional[int] = None
        self._old_handlers: dict[int, object] = {}

    # -- snapshot / restore -------------------------------------------------

    def snapshot(self) -> Optional[Path]:
        """Save unstaged changes and reset the tree to the index.

        Returns the patch path, or None when nothing was unstaged.
        """
        tree = self.git.write_tree()
        diff = self.git.unstaged_diff(tree)
        if not diff:
            logger.debug("No unstaged changes to save")
            return None

        patch = self.store.patch_path()
        patch.write_bytes(diff)
        # Record the patch before touching the tree so an interruption from
        # here on still restores it.
        self.patch = patch
        self.notify(f"Non-staged changes detected, saving to `{patch}`")
        self.git.checkout_index()
        return patch

    def restore(self) -> None:
        """Reapply the saved patch. Safe to call multiple times.

        Raises:
            RestoreError: if the patch cannot be applied even after rolling
                back hook modifications; the patch file is kept on disk.
        """
        with self._restore_lock:
            if self._restored:
                return
            self._restored = True
            if self.patch is None:
                return

            self._restoring = True
            try:
                self._apply_patch(self.patch)
            finally:
                self._restoring = False

    def _apply_patch(self, patch: Path) -> None:
        ok, err = self.git.apply(patch)
        if not ok:
            logger.warning("Stashed changes conflicted with hook auto-fixes; rolling back fixes")
            self.git.checkout_index()
            ok, err = self.git.apply(patch)
        if not ok:
            raise RestoreError(patch, err.strip())

        self.notify(f"\nRestored working tree changes from `{patch}`")
        try:
            patch.unlink()
        except OSError as e:
            logger.warning("Could not remove patch %s: %s", patch, e)

    # -- signal ownership ---------------------------------------------------

    def _handle_signal(self, signum: int, frame) -> None:
        if self._restoring or self._exiting:
            # Never abandon a half-applied restore; re-raise once it is done.
            self._pending_signal = signum
            return
        raise RunInterrupted(signum)

    def _install_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for sig in _GUARDED_SIGNALS:
            self._old_handlers[sig] = signal.signal(sig, self._handle_signal)

    def _uninstall_handlers(self) -> None:
        for sig, handler in self._old_handlers.items():
            signal.signal(sig, handler)
        self._old_handlers.clear()

    def _restore_at_exit(self) -> None:
        try:
            self.restore()
        except RestoreError as e:
            logger.error(str(e))

    # -- context manager ----------------------------------------------------

    def __enter__(self) -> WorkTreeGuard:
        self._install_handlers()
        atexit.register(self._restore_at_exit)
        try:
            self.snapshot()
        except BaseException:
            self._exit()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._exit()
        if exc_type is None and self._pending_signal is not None:
            raise RunInterrupted(self._pending_signal)

    def _exit(self) -> None:
        self._exiting = True
        try:
            self.restore()
        finally:
            self._uninstall_handlers()
            atexit.unregister(self._restore_at_exit)
