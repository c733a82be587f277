"""Project configuration: typed records plus the YAML loader."""

from .loader import build_hook, load_config, load_manifest, resolve_remote_hooks
from .models import (
    ALL_STAGES,
    Hook,
    HookSpec,
    Language,
    ProjectConfig,
    RepoKind,
    RepoSpec,
    Stage,
)

__all__ = [
    "ALL_STAGES",
    "Hook",
    "HookSpec",
    "Language",
    "ProjectConfig",
    "RepoKind",
    "RepoSpec",
    "Stage",
    "build_hook",
    "load_config",
    "load_manifest",
    "resolve_remote_hooks",
]
