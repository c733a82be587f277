"""``language: python``: a virtualenv per fingerprint, populated with pip."""

from __future__ import annotations

import os
import shutil
import sys
from pathlib import Path
from typing import Optional, Sequence

from ..exceptions import InstallError
from ..project import Language
from .base import Environment, LanguageBackend, run_install_step


def bin_dir(env_dir: Path) -> Path:
    return env_dir / ("Scripts" if os.name == "nt" else "bin")


def find_interpreter(version: str) -> Optional[str]:
    """Map a ``language_version`` to an interpreter path."""
    if version in ("default", "system"):
        return sys.executable
    if os.path.isabs(version):
        return version if os.access(version, os.X_OK) else None
    for candidate in (version, f"python{version}"):
        found = shutil.which(candidate)
        if found:
            return found
    return None


def _is_installable(repo_path: Optional[Path]) -> bool:
    if repo_path is None:
        return False
    return (repo_path / "setup.py").exists() or (repo_path / "pyproject.toml").exists()


class PythonBackend(LanguageBackend):
    language = Language.PYTHON
    needs_install = True
    installs_repo = True

    def install(
        self,
        env_dir: Path,
        repo_path: Optional[Path],
        dependencies: Sequence[str],
        version: str,
    ) -> None:
        location = str(repo_path or "local")
        interpreter = find_interpreter(version)
        if interpreter is None:
            raise InstallError("python", location, f"no interpreter found for version `{version}`")

        run_install_step([interpreter, "-m", "venv", str(env_dir)], "python", location)

        packages = [str(repo_path)] if _is_installable(repo_path) else []
        packages.extend(dependencies)
        if packages:
            python = bin_dir(env_dir) / "python"
            run_install_step(
                [python, "-m", "pip", "install", "--quiet", "--disable-pip-version-check", *packages],
                "python",
                location,
                cwd=repo_path,
            )

    def environ(self, environment: Environment, base: dict[str, str]) -> dict[str, str]:
        env = dict(base)
        if environment.path is None:
            return env
        env.pop("PYTHONHOME", None)
        env["VIRTUAL_ENV"] = str(environment.path)
        env["PATH"] = os.pathsep.join([str(bin_dir(environment.path)), env.get("PATH", "")])
        return env
