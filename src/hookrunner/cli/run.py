"""The ``run`` command."""

import os
from pathlib import Path
from typing import List, Optional

import typer

from . import app
from ._common import fail, make_console, resolve_settings
from ..exceptions import HookRunnerError, RunInterrupted
from ..git import Git, find_root
from ..orchestrator import RunOptions, parse_skip, run_project
from ..project import Stage


@app.command()
def run(
    hook_id: Optional[str] = typer.Argument(
        None,
        help="Only run the hook with this id or alias",
    ),
    all_files: bool = typer.Option(
        False, "--all-files", "-a",
        help="Run on all tracked files instead of the staged ones",
    ),
    files: Optional[List[str]] = typer.Option(
        None, "--files",
        help="Run on these files (repeatable)",
    ),
    hook_stage: Optional[str] = typer.Option(
        None, "--hook-stage",
        help="Git hook stage to run [default: pre-commit]",
    ),
    from_ref: Optional[str] = typer.Option(
        None, "--from-ref", "--source", "-s",
        help="With --to-ref, run on files changed between the two refs",
    ),
    to_ref: Optional[str] = typer.Option(
        None, "--to-ref", "--origin", "-o",
        help="With --from-ref, run on files changed between the two refs",
    ),
    commit_msg_filename: Optional[str] = typer.Option(
        None, "--commit-msg-filename",
        help="Commit message file, for commit-msg and prepare-commit-msg hooks",
    ),
    show_diff_on_failure: bool = typer.Option(
        False, "--show-diff-on-failure",
        help="Print the changes made by hooks when the run fails",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show details and output of passing hooks too",
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Project configuration file [default: .pre-commit-config.yaml]",
    ),
    color: Optional[str] = typer.Option(
        None, "--color",
        help="Colour output: auto, always or never",
    ),
):
    """
    Run hooks against the repository.

    [bold cyan]Examples:[/bold cyan]

      hookrunner run

      hookrunner run --all-files

      hookrunner run trailing-whitespace --files src/app.py

      SKIP=flake8,mypy hookrunner run
    """
    settings = resolve_settings(color=color)
    out = make_console(settings.color)
    err = make_console(settings.color, stderr=True)

    try:
        stage = Stage.parse(hook_stage or Stage.PRE_COMMIT.value)
    except ValueError:
        fail(f"Invalid hook stage `{hook_stage}`", err)
    if bool(from_ref) != bool(to_ref):
        fail("--from-ref and --to-ref must be given together", err)

    options = RunOptions(
        stage=stage,
        stage_given=hook_stage is not None,
        hook_id=hook_id,
        all_files=all_files,
        files=tuple(files or ()),
        from_ref=from_ref,
        to_ref=to_ref,
        commit_msg_filename=commit_msg_filename,
        show_diff_on_failure=show_diff_on_failure,
        verbose=verbose,
        skip=parse_skip(),
    )

    cwd = Path.cwd()
    config_path = (cwd / config) if config is not None else None
    try:
        root = find_root(cwd)
        # Hooks see paths relative to the repository root.
        os.chdir(root)
        code = run_project(Git(root), settings, options, out, err, config_path=config_path, cwd=cwd)
    except RunInterrupted as e:
        raise typer.Exit(e.exit_code)
    except KeyboardInterrupt:
        raise typer.Exit(130)
    except HookRunnerError as e:
        fail(str(e), err)
    finally:
        os.chdir(cwd)
    raise typer.Exit(code)
