"""Status lines and failure diagnostics.

One line per reached hook::

    trailing-whitespace......................................................Failed
    - hook id: trailing-whitespace
    - exit code: 1
    - files were modified by this hook
      Fixing main.py
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from rich.cells import cell_len
from rich.console import Console
from rich.text import Text

from .logging_config import get_logger
from .project import Hook
from .runner import HookResult, HookStatus

logger = get_logger(__name__)

NO_FILES = "(no files to check)"

_STATUS_STYLES = {
    HookStatus.PASSED: "green",
    HookStatus.FAILED: "red",
    HookStatus.SKIPPED: "yellow",
}

_MIN_COLUMNS = 80


def status_columns(hooks: Iterable[Hook]) -> int:
    """Line width for a run: room for the longest name plus the longest suffix."""
    longest = max((cell_len(hook.name) for hook in hooks), default=0)
    suffix = len(NO_FILES) + len(HookStatus.SKIPPED.value)
    return max(_MIN_COLUMNS, longest + 3 + suffix)


class Reporter:
    """Render hook results to a console.

    Args:
        console: Destination for status lines (stdout).
        hooks: Every hook that may be reported, for the line width.
        verbose: Show details for passing hooks too.
    """

    def __init__(self, console: Console, hooks: Iterable[Hook], verbose: bool = False):
        self.console = console
        self.columns = status_columns(hooks)
        self.verbose = verbose

    def status_line(self, name: str, status: HookStatus, postfix: str = "") -> Text:
        dots = self.columns - cell_len(name) - len(postfix) - len(status.value) - 1
        line = Text(name)
        line.append("." * max(dots, 3))
        line.append(postfix)
        line.append(status.value, style=_STATUS_STYLES[status])
        return line

    def _print(self, text: Text | str = "") -> None:
        self.console.print(text, soft_wrap=True, highlight=False, markup=False)

    def report(self, result: HookResult) -> None:
        hook = result.hook
        postfix = NO_FILES if result.skip_reason == NO_FILES else ""
        self._print(self.status_line(hook.name, result.status, postfix))

        if result.status is HookStatus.SKIPPED:
            return
        verbose = self.verbose or hook.spec.verbose
        if not (result.failed or verbose):
            return

        self._print(f"- hook id: {hook.id}")
        if verbose:
            self._print(f"- duration: {result.duration:.2f}s")
        if result.exit_code != 0:
            self._print(f"- exit code: {result.exit_code}")
        if result.files_modified:
            self._print("- files were modified by this hook")

        output = result.output.decode("utf-8", errors="replace").rstrip()
        if not output:
            return
        if hook.spec.log_file:
            write_log(Path(hook.spec.log_file), output)
            return
        for line in output.splitlines():
            self._print(f"  {line}".rstrip())

    def show_diff(self, diff: str) -> None:
        """Print the work tree diff left behind by failing fixers."""
        if not diff:
            return
        self._print("All changes made by hooks:")
        self._print(Text(diff.rstrip("\n")))


def write_log(path: Path, output: str) -> None:
    """Write captured hook output to the hook's ``log_file``."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(output, encoding="utf-8")
    except OSError as e:
        logger.error("Could not write hook log %s: %s", path, e)
