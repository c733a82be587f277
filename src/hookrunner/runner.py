"""Process runner: execute one hook over its files.

A hook invocation is ``entry + args + files``. When the file list would push
the command line past the platform limit the files are split into batches
run one after another; the merged result carries the first non-zero exit
code and the outputs concatenated in batch order.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import time
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from .languages import Environment, get_backend
from .logging_config import get_logger
from .project import Hook, Stage

logger = get_logger(__name__)

# Hard ceiling on a single command line, whatever the platform reports.
MAX_COMMAND_LENGTH = 128 * 1024
# Room left for the loader, auxv and anything we failed to count.
_HEADROOM = 2048
# Used when the platform has no SC_ARG_MAX (Windows' CreateProcess limit).
_FALLBACK_ARG_MAX = 32768


class HookStatus(str, Enum):
    PASSED = "Passed"
    FAILED = "Failed"
    SKIPPED = "Skipped"


@dataclass(frozen=True)
class HookResult:
    """Outcome of one hook in one run."""

    hook: Hook
    status: HookStatus
    exit_code: int = 0
    output: bytes = b""
    duration: float = 0.0
    files_modified: bool = False
    skip_reason: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status is HookStatus.FAILED

    def with_modifications(self) -> HookResult:
        """Mark the hook as having changed the work tree, which fails it."""
        return replace(self, status=HookStatus.FAILED, files_modified=True)

    @classmethod
    def skipped(cls, hook: Hook, reason: Optional[str] = None) -> HookResult:
        return cls(hook, HookStatus.SKIPPED, skip_reason=reason)


def environ_size(environ: dict[str, str]) -> int:
    return sum(len(k.encode()) + len(v.encode()) + 2 for k, v in environ.items())


def platform_arg_max(environ: dict[str, str]) -> int:
    """Usable command-line length given the environment that will be passed."""
    try:
        limit = os.sysconf("SC_ARG_MAX")
    except (AttributeError, ValueError, OSError):
        limit = _FALLBACK_ARG_MAX
    if limit <= 0:
        limit = _FALLBACK_ARG_MAX
    usable = limit - environ_size(environ) - _HEADROOM
    return max(min(usable, MAX_COMMAND_LENGTH), 4096)


def partition(cmd: Sequence[str], files: Sequence[str], max_length: int) -> list[list[str]]:
    """Split ``files`` so that ``cmd + batch`` stays within ``max_length``.

    Order is preserved. A file too long to share a batch still gets a batch
    of its own. There is always at least one (possibly empty) batch, since a
    hook that takes no filenames still runs once.
    """
    base = sum(len(arg.encode()) + 1 for arg in cmd)
    batches: list[list[str]] = []
    current: list[str] = []
    size = base
    for filename in files:
        arg_len = len(filename.encode()) + 1
        if current and size + arg_len > max_length:
            batches.append(current)
            current = []
            size = base
        current.append(filename)
        size += arg_len
    batches.append(current)
    return batches


class ProcessRunner:
    """Spawn hook processes for one run.

    Args:
        stage: Hook stage being run, exported to hooks.
        max_arg_length: Command-line limit override; None derives it from
            the platform.
        cwd: Directory hooks run in (the repository root).
    """

    def __init__(
        self,
        stage: Stage = Stage.PRE_COMMIT,
        max_arg_length: Optional[int] = None,
        cwd: Optional[Path] = None,
    ):
        self.stage = stage
        self.max_arg_length = max_arg_length
        self.cwd = cwd

    def base_environ(self) -> dict[str, str]:
        environ = dict(os.environ)
        environ["PRE_COMMIT"] = "1"
        environ["HOOKRUNNER"] = "1"
        environ["PRE_COMMIT_HOOK_STAGE"] = self.stage.value
        return environ

    def spawn(self, cmd: Sequence[str], environ: dict[str, str]) -> tuple[int, bytes]:
        """Run ``cmd`` to completion, returning (exit code, combined output).

        The child is terminated and reaped if the wait is interrupted.
        """
        if not cmd:
            return 1, b"No command to run"
        executable = shutil.which(cmd[0], path=environ.get("PATH"))
        if executable is None:
            return 1, f"Executable `{cmd[0]}` not found".encode()

        logger.debug("Spawning %s", " ".join(cmd))
        try:
            proc = subprocess.Popen(
                [executable, *cmd[1:]],
                cwd=self.cwd,
                env=environ,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            return 1, f"Failed to run `{cmd[0]}`: {e}".encode()

        try:
            output, _ = proc.communicate()
        except BaseException:
            _terminate(proc)
            raise
        return proc.returncode, output

    def run(self, hook: Hook, environment: Environment, files: Sequence[str]) -> HookResult:
        """Run ``hook`` over ``files`` (ignored when pass_filenames is off)."""
        backend = get_backend(hook.spec.language)
        environ = self.base_environ()
        if not hook.spec.pass_filenames:
            files = ()

        try:
            cmd = backend.command(hook, environment)
        except ValueError as e:
            return HookResult(
                hook,
                HookStatus.FAILED,
                exit_code=1,
                output=f"Invalid entry `{hook.spec.entry}`: {e}".encode(),
            )

        limit = self.max_arg_length or platform_arg_max(environ)
        batches = partition(cmd, files, limit)
        if len(batches) > 1:
            logger.debug("Running %s in %d batches", hook.id, len(batches))

        started = time.monotonic()
        exit_code = 0
        outputs: list[bytes] = []
        for batch in batches:
            code, output = backend.invoke(hook, environment, batch, environ, self.spawn)
            if exit_code == 0:
                exit_code = code
            outputs.append(output)
        duration = time.monotonic() - started

        return HookResult(
            hook,
            HookStatus.PASSED if exit_code == 0 else HookStatus.FAILED,
            exit_code=exit_code,
            output=b"".join(outputs),
            duration=duration,
        )


def _terminate(proc: subprocess.Popen) -> None:
    if proc.poll() is not None:
        return
    proc.terminate()
    try:
        proc.wait(timeout=5)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()
