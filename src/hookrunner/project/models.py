"""Typed records for a hook project: repositories, hooks, stages, languages."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class Stage(str, Enum):
    """Git hook stages a hook can be bound to."""

    COMMIT_MSG = "commit-msg"
    POST_CHECKOUT = "post-checkout"
    POST_COMMIT = "post-commit"
    POST_MERGE = "post-merge"
    POST_REWRITE = "post-rewrite"
    PRE_COMMIT = "pre-commit"
    PRE_MERGE_COMMIT = "pre-merge-commit"
    PRE_PUSH = "pre-push"
    PRE_REBASE = "pre-rebase"
    PREPARE_COMMIT_MSG = "prepare-commit-msg"
    MANUAL = "manual"

    @classmethod
    def parse(cls, value: str) -> Stage:
        """Parse a stage name, accepting the legacy short aliases."""
        value = _LEGACY_STAGES.get(value, value)
        return cls(value)


_LEGACY_STAGES = {
    "commit": "pre-commit",
    "merge-commit": "pre-merge-commit",
    "push": "pre-push",
}

ALL_STAGES: tuple[Stage, ...] = tuple(Stage)


class Language(str, Enum):
    """Languages with an installer backend."""

    SYSTEM = "system"
    SCRIPT = "script"
    FAIL = "fail"
    PYGREP = "pygrep"
    PYTHON = "python"
    DOCKER = "docker"
    DOCKER_IMAGE = "docker_image"


class RepoKind(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"
    META = "meta"


@dataclass(frozen=True)
class HookSpec:
    """One hook declaration, fully resolved against its manifest.

    ``files`` and ``exclude`` stay ``None`` when the hook does not declare
    them, so file selection can fall back to the project-wide patterns.
    """

    id: str
    name: str
    entry: str
    language: Language
    args: tuple[str, ...] = ()
    files: Optional[str] = None
    exclude: Optional[str] = None
    types: tuple[str, ...] = ("file",)
    types_or: tuple[str, ...] = ()
    exclude_types: tuple[str, ...] = ()
    always_run: bool = False
    fail_fast: bool = False
    verbose: bool = False
    pass_filenames: bool = True
    require_serial: bool = False
    log_file: Optional[str] = None
    additional_dependencies: tuple[str, ...] = ()
    stages: tuple[Stage, ...] = ALL_STAGES
    language_version: str = "default"
    alias: str = ""
    description: str = ""
    minimum_pre_commit_version: str = "0"

    def runs_at(self, stage: Stage) -> bool:
        return stage in self.stages

    def matches_id(self, hook_id: str) -> bool:
        return hook_id == self.id or (bool(self.alias) and hook_id == self.alias)


@dataclass(frozen=True)
class RepoSpec:
    """A hook repository as declared in the project configuration.

    Remote repositories start with their user overrides only; ``hooks`` is
    populated by ``with_manifest`` once the repository has been fetched.
    """

    source: str
    rev: Optional[str] = None
    hooks: tuple[HookSpec, ...] = ()
    overrides: tuple[dict[str, Any], ...] = field(default=(), compare=False)
    path: Optional[Path] = None

    @property
    def kind(self) -> RepoKind:
        if self.source == "local":
            return RepoKind.LOCAL
        if self.source == "meta":
            return RepoKind.META
        return RepoKind.REMOTE

    @property
    def is_remote(self) -> bool:
        return self.kind is RepoKind.REMOTE

    @property
    def key(self) -> str:
        """Identity used for fetching and environment fingerprints."""
        if self.is_remote:
            return f"{self.source}@{self.rev}"
        return self.source

    def __str__(self) -> str:
        return self.key

    def with_manifest(self, hooks: tuple[HookSpec, ...], path: Path) -> RepoSpec:
        return replace(self, hooks=hooks, path=path)


@dataclass(frozen=True)
class Hook:
    """A hook bound to the repository that declares it."""

    repo: RepoSpec
    spec: HookSpec

    @property
    def id(self) -> str:
        return self.spec.id

    @property
    def name(self) -> str:
        return self.spec.name


@dataclass(frozen=True)
class ProjectConfig:
    """The parsed ``.pre-commit-config.yaml``."""

    repos: tuple[RepoSpec, ...]
    files: str = ""
    exclude: str = "^$"
    fail_fast: bool = False
    default_stages: tuple[Stage, ...] = ALL_STAGES
    default_language_version: dict[str, str] = field(default_factory=dict, compare=False)
    path: Optional[Path] = None

    def hooks(self) -> list[Hook]:
        """All hooks in declared order. Remote repos must be resolved first."""
        return [Hook(repo, spec) for repo in self.repos for spec in repo.hooks]

    def with_repos(self, repos: tuple[RepoSpec, ...]) -> ProjectConfig:
        return replace(self, repos=repos)
