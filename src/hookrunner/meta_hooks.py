"""Hooks that check the hook configuration itself (``repo: meta``).

Run as ``python -m hookrunner.meta_hooks <id> --config <file> [FILES]...``
from the repository root.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Optional

import typer

from .config import DEFAULT_CONFIG_FILE, load_settings
from .fetcher import RepoFetcher
from .git import Git, find_root
from .project import Hook, Language, ProjectConfig, load_config
from .selection import FileSelector, GlobalFilters
from .store import Store

app = typer.Typer(add_completion=False, help="hookrunner meta hooks")

ConfigOption = typer.Option(Path(DEFAULT_CONFIG_FILE), "--config", help="Project configuration file")


def _resolved_config(config_file: Path) -> ProjectConfig:
    config = load_config(config_file)
    store = Store(load_settings().cache_path)
    try:
        return RepoFetcher(store).resolve(config)
    finally:
        store.close()


def _all_files() -> list[str]:
    return Git(find_root()).all_files()


def exclude_matches_any(paths: Iterable[str], include: str, exclude: str) -> bool:
    """Whether some path matches both ``include`` and ``exclude``."""
    if exclude == "^$":
        return True
    include_re = re.compile(include)
    exclude_re = re.compile(exclude)
    return any(include_re.search(p) and exclude_re.search(p) for p in paths)


def hooks_not_applying(config: ProjectConfig, files: Iterable[str]) -> list[Hook]:
    selector = FileSelector(files, GlobalFilters.from_config(config))
    return [
        hook
        for hook in config.hooks()
        if not hook.spec.always_run
        and hook.spec.language is not Language.FAIL
        and not selector.compute(hook.spec)
    ]


def useless_excludes(config: ProjectConfig, files: Iterable[str]) -> list[str]:
    """Messages for every configured exclude pattern that excludes nothing."""
    selector = FileSelector(files, GlobalFilters.from_config(config))
    messages = []
    if not exclude_matches_any(selector.universe, "", config.exclude):
        messages.append(f"The global exclude pattern {config.exclude!r} does not match any files")

    for repo in config.repos:
        if repo.is_remote:
            # Only patterns written in the project config are the user's to fix.
            declared = [override.get("exclude") for override in repo.overrides]
        else:
            declared = [spec.exclude for spec in repo.hooks]
        for spec, exclude in zip(repo.hooks, declared):
            if exclude is None:
                continue
            typed = tuple(p for p in selector.filtered() if selector.matches_types(p, spec))
            include = spec.files if spec.files is not None else ""
            if not exclude_matches_any(typed, include, exclude):
                messages.append(
                    f"The exclude pattern {exclude!r} for {spec.id} does not match any files"
                )
    return messages


@app.command("check-hooks-apply")
def check_hooks_apply(
    config: Path = ConfigOption,
    filenames: Optional[List[str]] = typer.Argument(None),
):
    """Fail for configured hooks that match no file in the repository."""
    retv = 0
    for hook in hooks_not_applying(_resolved_config(config), _all_files()):
        typer.echo(f"{hook.id} does not apply to this repository")
        retv = 1
    raise typer.Exit(retv)


@app.command("check-useless-excludes")
def check_useless_excludes(
    config: Path = ConfigOption,
    filenames: Optional[List[str]] = typer.Argument(None),
):
    """Fail for exclude patterns that match no file in the repository."""
    messages = useless_excludes(_resolved_config(config), _all_files())
    for message in messages:
        typer.echo(message)
    raise typer.Exit(1 if messages else 0)


@app.command("identity")
def identity(
    config: Path = ConfigOption,
    filenames: Optional[List[str]] = typer.Argument(None),
):
    """Print the filenames received."""
    for filename in filenames or ():
        typer.echo(filename)


if __name__ == "__main__":
    app()
