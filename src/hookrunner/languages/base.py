"""Installer backend interface shared by every supported language."""

from __future__ import annotations

import shlex
import subprocess
from abc import ABC
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..exceptions import InstallError
from ..logging_config import get_logger
from ..project import Hook, Language

logger = get_logger(__name__)

# Runs one command with the given environment, returning (exit code, output).
Spawn = Callable[[Sequence[str], dict], "tuple[int, bytes]"]


@dataclass(frozen=True)
class Environment:
    """A ready-to-use execution environment.

    ``path`` is None for passthrough environments, which run the entry
    directly with the caller's own toolchain.
    """

    language: Language
    fingerprint: str
    path: Optional[Path] = None
    installed: bool = True

    @property
    def is_passthrough(self) -> bool:
        return self.path is None


def split_entry(entry: str) -> list[str]:
    """Shell-split ``entry``; ValueError if it is malformed or empty."""
    argv = shlex.split(entry)
    if not argv:
        raise ValueError("entry is empty")
    return argv


class LanguageBackend(ABC):
    """Capability interface: install an environment, invoke a hook in it.

    Subclasses set ``needs_install`` when they own an on-disk environment,
    and ``installs_repo`` when the hook repository itself is installed into
    that environment (making the repository part of the fingerprint).
    """

    language: Language
    needs_install: bool = False
    installs_repo: bool = False

    def install(
        self,
        env_dir: Path,
        repo_path: Optional[Path],
        dependencies: Sequence[str],
        version: str,
    ) -> None:
        """Populate ``env_dir``. Raise InstallError on failure."""
        raise InstallError(
            self.language.value, str(env_dir), "this language has no installable environment"
        )

    def command(self, hook: Hook, environment: Environment) -> list[str]:
        """The argv prefix (entry plus args) files are appended to."""
        return [*split_entry(hook.spec.entry), *hook.spec.args]

    def environ(self, environment: Environment, base: dict[str, str]) -> dict[str, str]:
        """Process environment for a hook running in ``environment``."""
        return dict(base)

    def invoke(
        self,
        hook: Hook,
        environment: Environment,
        files: Sequence[str],
        environ: dict[str, str],
        spawn: Spawn,
    ) -> tuple[int, bytes]:
        """Run the hook over one batch of files."""
        cmd = [*self.command(hook, environment), *files]
        return spawn(cmd, self.environ(environment, environ))


def run_install_step(cmd: Sequence[str], language: str, location: str, cwd: Optional[Path] = None) -> None:
    """Run one installer command, converting failure into InstallError."""
    logger.debug("Install step: %s", " ".join(str(c) for c in cmd))
    try:
        result = subprocess.run(
            [str(c) for c in cmd],
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except OSError as e:
        raise InstallError(language, location, f"{cmd[0]}: {e}")
    if result.returncode != 0:
        output = result.stdout.decode(errors="replace").strip()
        raise InstallError(
            language,
            location,
            f"`{' '.join(str(c) for c in cmd)}` exited with {result.returncode}\n{output}",
        )
