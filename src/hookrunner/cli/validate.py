"""Configuration and manifest validation commands."""

from pathlib import Path
from typing import Callable, List, Optional

import typer

from . import app
from ._common import err_console
from ..exceptions import ConfigError
from ..logging_config import get_logger
from ..project import load_config, load_manifest

logger = get_logger(__name__)


def _validate(paths: List[Path], loader: Callable[[Path], object]) -> int:
    retv = 0
    for path in paths:
        try:
            loader(path)
        except ConfigError as e:
            err_console.print(f"error: {e}", markup=False, highlight=False, soft_wrap=True)
            retv = 1
        else:
            logger.debug("%s is valid", path)
    return retv


@app.command("validate-config")
def validate_config(
    files: Optional[List[Path]] = typer.Argument(None, help="Config files to validate"),
):
    """Validate .pre-commit-config.yaml files."""
    raise typer.Exit(_validate(files or [], load_config))


@app.command("validate-manifest")
def validate_manifest(
    files: Optional[List[Path]] = typer.Argument(None, help="Manifest files to validate"),
):
    """Validate .pre-commit-hooks.yaml files."""
    raise typer.Exit(_validate(files or [], load_manifest))
