"""Shared CLI helpers."""

from typing import NoReturn, Optional

import typer
from rich.console import Console

from ..config import HookRunnerSettings, load_settings
from ..exceptions import HookRunnerError
from ..logging_config import setup_logging

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def make_console(color: str = "auto", stderr: bool = False) -> Console:
    """Console honouring ``--color``. ``auto`` colours only real terminals."""
    if color == "always":
        return Console(stderr=stderr, highlight=False, force_terminal=True)
    if color == "never":
        return Console(stderr=stderr, highlight=False, color_system=None)
    return Console(stderr=stderr, highlight=False)


def resolve_settings(color: Optional[str] = None) -> HookRunnerSettings:
    """Build settings from CLI options and set up logging accordingly."""
    try:
        settings = load_settings(color=color)
    except HookRunnerError as e:
        fail(str(e))
    setup_logging(
        verbose=settings.verbosity == "verbose",
        quiet=settings.verbosity == "quiet",
        log_file=settings.log_file,
    )
    return settings


def fail(message: str, target: Optional[Console] = None) -> NoReturn:
    """Print one diagnostic on stderr and exit 1."""
    (target or err_console).print(message, markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(1)
