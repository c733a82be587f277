"""Install and remove the git hook scripts that call ``hookrunner run``."""

import os
import shlex
import stat
import sys
from pathlib import Path
from typing import List, Optional

import typer

from . import app
from ._common import console, fail
from ..exceptions import HookRunnerError
from ..git import Git, find_root
from ..project import Stage

MARKER = "# File generated by hookrunner"

_SCRIPT = """\
#!/bin/sh
{marker}
HOOK_TYPE={hook_type}
PYTHON={python}

if [ "$HOOK_TYPE" = pre-push ]; then
    z40=0000000000000000000000000000000000000000
    status=0
    while read -r local_ref local_sha remote_ref remote_sha; do
        [ "$local_sha" = "$z40" ] && continue
        if [ "$remote_sha" = "$z40" ]; then
            "$PYTHON" -m hookrunner run --hook-stage pre-push --all-files < /dev/null || status=1
        else
            "$PYTHON" -m hookrunner run --hook-stage pre-push \\
                --from-ref "$remote_sha" --to-ref "$local_sha" < /dev/null || status=1
        fi
    done
    exit $status
fi

case "$HOOK_TYPE" in
    commit-msg|prepare-commit-msg)
        exec "$PYTHON" -m hookrunner run --hook-stage "$HOOK_TYPE" --commit-msg-filename "$1" ;;
    *)
        exec "$PYTHON" -m hookrunner run --hook-stage "$HOOK_TYPE" ;;
esac
"""


def hook_script(hook_type: Stage) -> str:
    return _SCRIPT.format(
        marker=MARKER, hook_type=hook_type.value, python=shlex.quote(sys.executable)
    )


def _hook_types(values: Optional[List[str]]) -> list[Stage]:
    types = []
    for value in values or [Stage.PRE_COMMIT.value]:
        try:
            stage = Stage.parse(value)
        except ValueError:
            fail(f"Invalid hook type `{value}`")
        if stage is Stage.MANUAL:
            fail("`manual` is not a git hook type")
        types.append(stage)
    return types


def _hooks_dir() -> Path:
    try:
        return Git(find_root()).hooks_dir()
    except HookRunnerError as e:
        fail(str(e))


def is_ours(path: Path) -> bool:
    try:
        return MARKER in path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


@app.command()
def install(
    hook_type: Optional[List[str]] = typer.Option(
        None, "--hook-type", "-t",
        help="Git hook to install (repeatable) [default: pre-commit]",
    ),
    overwrite: bool = typer.Option(
        False, "--overwrite", "-f",
        help="Replace existing hook scripts not written by hookrunner",
    ),
):
    """Install the git hook scripts."""
    hooks_dir = _hooks_dir()
    hooks_dir.mkdir(parents=True, exist_ok=True)

    for stage in _hook_types(hook_type):
        path = hooks_dir / stage.value
        if path.exists() and not is_ours(path) and not overwrite:
            fail(f"{path} already exists and was not written by hookrunner; use --overwrite")
        path.write_text(hook_script(stage), encoding="utf-8")
        mode = path.stat().st_mode
        os.chmod(path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        console.print(f"hookrunner installed at {path}", markup=False, soft_wrap=True)


@app.command()
def uninstall(
    hook_type: Optional[List[str]] = typer.Option(
        None, "--hook-type", "-t",
        help="Git hook to remove (repeatable) [default: pre-commit]",
    ),
):
    """Remove the git hook scripts."""
    hooks_dir = _hooks_dir()
    for stage in _hook_types(hook_type):
        path = hooks_dir / stage.value
        if not path.exists():
            continue
        if not is_ours(path):
            console.print(f"Skipping {path}: not written by hookrunner", markup=False, soft_wrap=True)
            continue
        path.unlink()
        console.print(f"{path} uninstalled", markup=False, soft_wrap=True)
