"""Installer backends, one per supported ``language`` value."""

from ..project import Language
from .base import Environment, LanguageBackend
from .docker import DockerBackend, DockerImageBackend
from .passthrough import FailBackend, PygrepBackend, ScriptBackend, SystemBackend
from .python import PythonBackend

BACKENDS: dict[Language, LanguageBackend] = {
    Language.SYSTEM: SystemBackend(),
    Language.SCRIPT: ScriptBackend(),
    Language.FAIL: FailBackend(),
    Language.PYGREP: PygrepBackend(),
    Language.PYTHON: PythonBackend(),
    Language.DOCKER: DockerBackend(),
    Language.DOCKER_IMAGE: DockerImageBackend(),
}


def get_backend(language: Language) -> LanguageBackend:
    return BACKENDS[language]


__all__ = ["BACKENDS", "Environment", "LanguageBackend", "get_backend"]
