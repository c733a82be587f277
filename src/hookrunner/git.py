"""Thin subprocess wrapper over the ``git`` command line."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from .exceptions import GitCommandError, GitStateError
from .logging_config import get_logger

logger = get_logger(__name__)

# Variables git sets for hook processes. Leaking them into a git call that
# targets another repository (e.g. a clone in the cache) would make that
# call operate on the user's repository instead.
_KEEP_GIT_VARS = {
    "GIT_EXEC_PATH",
    "GIT_SSH",
    "GIT_SSH_COMMAND",
    "GIT_SSL_CAINFO",
    "GIT_SSL_NO_VERIFY",
    "GIT_CONFIG_COUNT",
    "GIT_HTTP_PROXY_AUTHMETHOD",
    "GIT_ALLOW_PROTOCOL",
    "GIT_ASKPASS",
}

# Staged paths worth checking: everything except deletions.
_DIFF_FILTER = "ACMRTUXB"


def no_git_env(env: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Copy of ``env`` (default: os.environ) without repository-pinning GIT_* vars."""
    source = os.environ if env is None else env
    return {
        k: v
        for k, v in source.items()
        if not k.startswith("GIT_")
        or k in _KEEP_GIT_VARS
        or k.startswith(("GIT_CONFIG_KEY_", "GIT_CONFIG_VALUE_"))
    }


def run_git(
    args: Sequence[str],
    cwd: Optional[Path] = None,
    check: bool = True,
    env: Optional[dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    """Run ``git <args>`` and return the completed process (bytes output).

    Raises:
        GitStateError: if git is not installed
        GitCommandError: if ``check`` and git exits non-zero
    """
    cmd = ["git", *args]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, cwd=cwd, capture_output=True, env=env)
    except FileNotFoundError:
        raise GitStateError("git is not installed or not on PATH")
    if check and result.returncode != 0:
        raise GitCommandError(list(args), result.returncode, result.stderr.decode(errors="replace"))
    return result


def _zsplit(output: bytes) -> list[str]:
    return [p for p in output.decode("utf-8", errors="surrogateescape").split("\0") if p]


def find_root(cwd: Optional[Path] = None) -> Path:
    """Return the top level of the work tree containing ``cwd``."""
    try:
        result = run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    except GitCommandError:
        raise GitStateError("Not a git repository (or any of the parent directories)")
    return Path(result.stdout.decode().strip())


class Git:
    """Git queries and mutations scoped to one work tree."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        return run_git(args, cwd=self.root, check=check)

    @property
    def git_dir(self) -> Path:
        out = self._run("rev-parse", "--absolute-git-dir").stdout.decode().strip()
        return Path(out)

    def hooks_dir(self) -> Path:
        out = self._run("rev-parse", "--git-path", "hooks").stdout.decode().strip()
        path = Path(out)
        return path if path.is_absolute() else self.root / path

    # -- file enumeration ---------------------------------------------------

    def staged_files(self) -> list[str]:
        out = self._run(
            "diff", "--staged", "--name-only", "--no-ext-diff", "-z", f"--diff-filter={_DIFF_FILTER}"
        ).stdout
        return _zsplit(out)

    def all_files(self) -> list[str]:
        return _zsplit(self._run("ls-files", "-z").stdout)

    def changed_files(self, from_ref: str, to_ref: str) -> list[str]:
        out = self._run(
            "diff",
            "--name-only",
            "--no-ext-diff",
            "-z",
            f"--diff-filter={_DIFF_FILTER}",
            f"{from_ref}...{to_ref}",
        ).stdout
        return _zsplit(out)

    def is_in_merge(self) -> bool:
        git_dir = self.git_dir
        return (git_dir / "MERGE_HEAD").exists() and (git_dir / "MERGE_MSG").exists()

    def merge_files(self) -> list[str]:
        """Files touched by the merge in progress."""
        out = self._run(
            "diff", "--name-only", "--no-ext-diff", "-z", "-m", "HEAD", "MERGE_HEAD", check=False
        ).stdout
        return _zsplit(out)

    def unmerged_paths(self) -> list[str]:
        out = self._run("ls-files", "--unmerged", "-z").stdout
        paths: list[str] = []
        for record in _zsplit(out):
            _, _, path = record.partition("\t")
            if path and path not in paths:
                paths.append(path)
        return paths

    # -- staging state ------------------------------------------------------

    def has_unstaged_changes(self, path: str) -> bool:
        result = self._run("diff", "--quiet", "--no-ext-diff", "--", path, check=False)
        return result.returncode == 1

    def write_tree(self) -> str:
        return self._run("write-tree").stdout.decode().strip()

    def unstaged_diff(self, tree: str) -> bytes:
        """Binary patch of the work tree against ``tree``; empty if clean."""
        result = self._run(
            "diff-index",
            "--ignore-submodules",
            "--binary",
            "--exit-code",
            "--no-color",
            "--no-ext-diff",
            tree,
            "--",
            check=False,
        )
        if result.returncode == 0:
            return b""
        if result.returncode != 1:
            raise GitCommandError(
                ["diff-index", tree], result.returncode, result.stderr.decode(errors="replace")
            )
        return result.stdout

    def checkout_index(self) -> None:
        """Reset tracked files in the work tree to their staged content."""
        self._run("-c", "core.autocrlf=false", "-c", "submodule.recurse=0", "checkout", "--", ".")

    def apply(self, patch: Path) -> tuple[bool, str]:
        result = self._run(
            "-c", "core.autocrlf=false", "apply", "--whitespace=nowarn", str(patch), check=False
        )
        return result.returncode == 0, result.stderr.decode(errors="replace")

    def worktree_diff(self) -> bytes:
        """Current unstaged diff, used to detect hooks that modify files."""
        return self._run(
            "diff", "--no-ext-diff", "--no-textconv", "--ignore-submodules", check=False
        ).stdout

    def show_diff(self) -> str:
        return self._run(
            "--no-pager", "diff", "--no-ext-diff", "--no-color", "--ignore-submodules", check=False
        ).stdout.decode(errors="replace")
