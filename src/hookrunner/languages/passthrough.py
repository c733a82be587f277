"""Languages that run without an installed environment."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Sequence

from ..project import Hook, Language
from .base import Environment, LanguageBackend, Spawn


class SystemBackend(LanguageBackend):
    """Run the entry as-is with whatever is on the user's PATH."""

    language = Language.SYSTEM


class ScriptBackend(LanguageBackend):
    """Run an executable shipped inside the hook repository."""

    language = Language.SCRIPT

    def command(self, hook: Hook, environment: Environment) -> list[str]:
        cmd = super().command(hook, environment)
        repo_root = hook.repo.path or Path.cwd()
        cmd[0] = str(repo_root / cmd[0])
        return cmd


class FailBackend(LanguageBackend):
    """Always fail, printing the entry as the message followed by the files."""

    language = Language.FAIL

    def command(self, hook: Hook, environment: Environment) -> list[str]:
        return [hook.spec.entry]

    def invoke(
        self,
        hook: Hook,
        environment: Environment,
        files: Sequence[str],
        environ: dict[str, str],
        spawn: Spawn,
    ) -> tuple[int, bytes]:
        lines = [hook.spec.entry, ""] if files else [hook.spec.entry]
        lines.extend(files)
        return 1, "\n".join(lines).encode()


class PygrepBackend(LanguageBackend):
    """Search files for a Python regex; the entry is the pattern."""

    language = Language.PYGREP

    def command(self, hook: Hook, environment: Environment) -> list[str]:
        return [sys.executable, "-m", "hookrunner.languages.pygrep", *hook.spec.args, hook.spec.entry]
