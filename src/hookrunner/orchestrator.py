"""Hook orchestration.

``run_project`` is the whole of ``hookrunner run`` after argument parsing:
refuse to run mid-merge, load and fetch the project, install environments,
then execute hooks under the work-tree guard. ``Orchestrator`` owns the
per-hook state machine::

    Pending -> Skipped
    Pending -> Running -> Passed | Failed
"""

from __future__ import annotations

import contextlib
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from .config import HookRunnerSettings
from .environment import EnvironmentManager
from .exceptions import HookSelectionError
from .fetcher import RepoFetcher
from .git import Git
from .guard import WorkTreeGuard, check_config_staged, check_merge_state
from .logging_config import get_logger
from .project import Hook, ProjectConfig, Stage, load_config
from .reporter import NO_FILES, Reporter
from .runner import HookResult, ProcessRunner
from .selection import FileSelector, GlobalFilters, dedupe, normalize_path
from .store import Store

logger = get_logger(__name__)

_MESSAGE_STAGES = (Stage.COMMIT_MSG, Stage.PREPARE_COMMIT_MSG)


def parse_skip(value: Optional[str] = None) -> frozenset[str]:
    """Hook ids from a ``SKIP`` value (default: the environment)."""
    if value is None:
        value = os.environ.get("SKIP", "")
    return frozenset(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class RunOptions:
    """Everything a single ``run`` needs to know besides the project itself."""

    stage: Stage = Stage.PRE_COMMIT
    stage_given: bool = False
    hook_id: Optional[str] = None
    all_files: bool = False
    files: tuple[str, ...] = ()
    from_ref: Optional[str] = None
    to_ref: Optional[str] = None
    commit_msg_filename: Optional[str] = None
    show_diff_on_failure: bool = False
    verbose: bool = False
    skip: frozenset[str] = frozenset()

    @property
    def stashes(self) -> bool:
        """Whether unstaged changes are hidden from hooks during the run."""
        return not (self.all_files or self.files)


def relative_to_root(path: str, root: Path, cwd: Optional[Path] = None) -> str:
    """Express a user-supplied path relative to the repository root."""
    absolute = os.path.abspath(os.path.join(cwd or Path.cwd(), path))
    return normalize_path(os.path.relpath(absolute, root))


def collect_files(git: Git, options: RunOptions, cwd: Optional[Path] = None) -> list[str]:
    """The file universe for this run, in discovery order."""
    if options.from_ref and options.to_ref:
        return git.changed_files(options.from_ref, options.to_ref)
    if options.stage in _MESSAGE_STAGES and options.commit_msg_filename:
        return [options.commit_msg_filename]
    if options.files:
        return [relative_to_root(f, git.root, cwd) for f in options.files]
    if options.all_files:
        return git.all_files()
    if git.is_in_merge():
        return list(dedupe([*git.staged_files(), *git.merge_files()]))
    return git.staged_files()


def select_hooks(config: ProjectConfig, options: RunOptions) -> list[Hook]:
    """Hooks for the active stage, narrowed to ``options.hook_id`` if given.

    Raises:
        HookSelectionError: if a hook id was given and nothing matches it
    """
    hooks = [hook for hook in config.hooks() if hook.spec.runs_at(options.stage)]
    if options.hook_id is None:
        return hooks
    hooks = [hook for hook in hooks if hook.spec.matches_id(options.hook_id)]
    if not hooks:
        stage = options.stage.value if options.stage_given else None
        raise HookSelectionError(options.hook_id, stage)
    return hooks


def is_skipped(hook: Hook, skip: frozenset[str]) -> bool:
    return hook.id in skip or (bool(hook.spec.alias) and hook.spec.alias in skip)


class Orchestrator:
    """Run selected hooks one at a time, in declared order."""

    def __init__(
        self,
        config: ProjectConfig,
        git: Git,
        environments: EnvironmentManager,
        runner: ProcessRunner,
        reporter: Reporter,
        options: RunOptions,
    ):
        self.config = config
        self.git = git
        self.environments = environments
        self.runner = runner
        self.reporter = reporter
        self.options = options

    def run_hook(self, hook: Hook, selector: FileSelector) -> HookResult:
        if is_skipped(hook, self.options.skip):
            return HookResult.skipped(hook)

        files = selector.compute(hook.spec)
        if not files and not hook.spec.always_run:
            return HookResult.skipped(hook, NO_FILES)

        environment = self.environments.resolve(hook)
        before = self.git.worktree_diff()
        result = self.runner.run(hook, environment, files)
        if self.git.worktree_diff() != before:
            result = result.with_modifications()
        return result

    def execute(self, hooks: Sequence[Hook], files: Sequence[str]) -> int:
        """Run ``hooks`` over ``files``; return the process exit code."""
        selector = FileSelector(files, GlobalFilters.from_config(self.config))
        results: list[HookResult] = []

        for hook in hooks:
            result = self.run_hook(hook, selector)
            self.reporter.report(result)
            results.append(result)
            if result.failed and (hook.spec.fail_fast or self.config.fail_fast):
                logger.debug("Stopping after %s: fail-fast", hook.id)
                break

        failed = any(r.failed for r in results)
        if failed and self.options.show_diff_on_failure and any(r.files_modified for r in results):
            self.reporter.show_diff(self.git.show_diff())
        return 1 if failed else 0


def run_project(
    git: Git,
    settings: HookRunnerSettings,
    options: RunOptions,
    console: Console,
    err_console: Console,
    config_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> int:
    """Run the project's hooks in ``git.root``; return the exit code.

    Structural problems (merge conflicts, bad configuration, unknown hook,
    fetch or install failure) raise before any hook runs and before the work
    tree is touched.
    """
    config_path = config_path or Path(settings.config_file)
    if not config_path.is_absolute():
        config_path = git.root / config_path

    check_merge_state(git)
    config = load_config(config_path, display_path=_display(config_path, git.root))
    if options.stashes:
        check_config_staged(git, _display(config_path, git.root).as_posix())

    store = Store(settings.cache_path)
    try:
        config = RepoFetcher(store, notify=_printer(console)).resolve(config)
        hooks = select_hooks(config, options)

        environments = EnvironmentManager(
            store, notify=_printer(console), workers=settings.install_workers
        )
        environments.prepare(h for h in hooks if not is_skipped(h, options.skip))

        orchestrator = Orchestrator(
            config,
            git,
            environments,
            ProcessRunner(options.stage, settings.max_arg_length, cwd=git.root),
            Reporter(console, hooks, verbose=options.verbose),
            options,
        )
        guard: contextlib.AbstractContextManager = (
            WorkTreeGuard(git, store, notify=_printer(err_console))
            if options.stashes
            else contextlib.nullcontext()
        )
        with guard:
            files = collect_files(git, options, cwd)
            return orchestrator.execute(hooks, files)
    finally:
        store.close()


def _printer(console: Console):
    def notify(message: str) -> None:
        console.print(message, markup=False, highlight=False, soft_wrap=True)

    return notify


def _display(path: Path, root: Path) -> Path:
    try:
        return path.relative_to(root)
    except ValueError:
        return path
