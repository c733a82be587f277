"""Run-time exceptions: git state, fetching, installing, interruption."""

from pathlib import Path
from typing import List, Optional

from .base import HookRunnerError


class GitStateError(HookRunnerError):
    """Raised when the repository is not in a state hooks can run against."""

    pass


class GitCommandError(HookRunnerError):
    """Raised when a git invocation fails unexpectedly."""

    def __init__(self, args: List[str], returncode: int, stderr: str):
        super().__init__(
            f"git {' '.join(args)} failed with exit code {returncode}",
            details={"stderr": stderr.strip()} if stderr.strip() else None,
        )
        self.args_ = args
        self.returncode = returncode
        self.stderr = stderr


class FetchError(HookRunnerError):
    """Raised when a remote hook repository cannot be retrieved."""

    def __init__(self, url: str, rev: str, reason: str):
        super().__init__(f"Failed to fetch {url}@{rev}", details={"reason": reason})
        self.url = url
        self.rev = rev
        self.reason = reason


class InstallError(HookRunnerError):
    """Raised when a hook environment cannot be installed."""

    def __init__(self, language: str, location: str, reason: str):
        super().__init__(
            f"Failed to install {language} environment for {location}: "
            "environment installation failed",
            details={"reason": reason},
        )
        self.language = language
        self.location = location
        self.reason = reason


class HookSelectionError(HookRunnerError):
    """Raised when a requested hook id matches nothing configured."""

    def __init__(self, hook_id: str, stage: Optional[str] = None):
        message = f"No hook found for id `{hook_id}`"
        if stage is not None:
            message += f" and stage `{stage}`"
        super().__init__(message)
        self.hook_id = hook_id
        self.stage = stage


class RestoreError(HookRunnerError):
    """Raised when stashed changes could not be reapplied."""

    def __init__(self, patch: Path, reason: str):
        super().__init__(
            f"Failed to restore working tree changes; the patch is kept at `{patch}`",
            details={"reason": reason},
        )
        self.patch = patch
        self.reason = reason


class RunInterrupted(HookRunnerError):
    """Raised inside the main thread when a termination signal arrives."""

    def __init__(self, signum: int):
        super().__init__(f"Interrupted by signal {signum}")
        self.signum = signum

    @property
    def exit_code(self) -> int:
        return 128 + self.signum
