"""Exception hierarchy for hookrunner."""

from .base import HookRunnerError
from .config import ConfigError, SettingsError
from .runtime import (
    FetchError,
    GitCommandError,
    GitStateError,
    HookSelectionError,
    InstallError,
    RestoreError,
    RunInterrupted,
)

__all__ = [
    "HookRunnerError",
    "ConfigError",
    "SettingsError",
    "GitStateError",
    "GitCommandError",
    "FetchError",
    "InstallError",
    "HookSelectionError",
    "RestoreError",
    "RunInterrupted",
]
