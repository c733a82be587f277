"""
Logging for hookrunner.

Diagnostics go to stderr through rich so they never interleave with the
hook status lines printed on stdout. Only the ``hookrunner`` logger is
configured; hooks are separate processes and never share it.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "hookrunner"

# Marks handlers installed here so a second setup replaces rather than stacks.
_OWNED = "_hookrunner_handler"


def _level(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    return logging.DEBUG if verbose else logging.WARNING


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Attach a stderr RichHandler (and optionally a file handler) to the
    ``hookrunner`` logger.

    Args:
        verbose: DEBUG level, with timestamps and source locations
        quiet: ERROR level only; wins over ``verbose``
        log_file: Also append plain-text records to this file

    Returns:
        The ``hookrunner`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in [h for h in logger.handlers if getattr(h, _OWNED, False)]:
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=Console(stderr=True),
        markup=False,
        show_time=verbose,
        show_path=verbose,
        rich_tracebacks=verbose,
    )
    handlers: list[logging.Handler] = [rich_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    for handler in handlers:
        setattr(handler, _OWNED, True)
        logger.addHandler(handler)
    logger.setLevel(_level(verbose, quiet))
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``hookrunner`` namespace, e.g. ``hookrunner.runner``."""
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
