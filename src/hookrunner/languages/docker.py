"""``language: docker`` and ``language: docker_image``.

``docker`` builds the hook repository's Dockerfile into an image tagged
with the environment fingerprint; ``docker_image`` runs an existing image
named in the entry. Both mount the work tree at ``/src``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Sequence

from ..exceptions import InstallError
from ..project import Hook, Language
from .base import Environment, LanguageBackend, run_install_step, split_entry


def image_tag(env_dir: Path) -> str:
    """Image name for an environment; unique per fingerprint."""
    return f"hookrunner-{env_dir.name}"


def docker_run_args(workdir: Optional[Path] = None) -> list[str]:
    cwd = str(workdir or Path.cwd())
    args = ["docker", "run", "--rm", "-v", f"{cwd}:/src:rw,Z", "--workdir", "/src"]
    if hasattr(os, "getuid"):
        args.extend(["-u", f"{os.getuid()}:{os.getgid()}"])
    return args


class DockerBackend(LanguageBackend):
    language = Language.DOCKER
    needs_install = True
    installs_repo = True

    def install(
        self,
        env_dir: Path,
        repo_path: Optional[Path],
        dependencies: Sequence[str],
        version: str,
    ) -> None:
        repo_path = repo_path or Path.cwd()
        location = str(repo_path)
        if dependencies:
            raise InstallError("docker", location, "docker hooks do not support additional_dependencies")
        if not (repo_path / "Dockerfile").exists():
            raise InstallError("docker", location, "repository has no Dockerfile")
        run_install_step(
            ["docker", "build", "--tag", image_tag(env_dir), "--label", "hookrunner", "."],
            "docker",
            location,
            cwd=repo_path,
        )

    def command(self, hook: Hook, environment: Environment) -> list[str]:
        entry = split_entry(hook.spec.entry)
        return [
            *docker_run_args(),
            "--entrypoint",
            entry[0],
            image_tag(environment.path),
            *entry[1:],
            *hook.spec.args,
        ]


class DockerImageBackend(LanguageBackend):
    language = Language.DOCKER_IMAGE

    def command(self, hook: Hook, environment: Environment) -> list[str]:
        return [*docker_run_args(), *split_entry(hook.spec.entry), *hook.spec.args]
