"""Configuration exceptions: malformed project configs and manifests."""

from pathlib import Path
from typing import Optional

from .base import HookRunnerError


class ConfigError(HookRunnerError):
    """Raised when a configuration file is missing, unparsable or invalid.

    Carries the offending file plus, when known, the dotted field path and
    the 1-based line/column of the node that failed validation.
    """

    def __init__(
        self,
        reason: str,
        path: Optional[Path] = None,
        field: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        super().__init__(reason)
        self.reason = reason
        self.path = path
        self.field = field
        self.line = line
        self.column = column

    @property
    def cause(self) -> str:
        """Return the ``<field>: <reason> at line L column C`` summary."""
        text = f"{self.field}: {self.reason}" if self.field else self.reason
        if self.line is not None:
            text += f" at line {self.line} column {self.column}"
        return text

    def __str__(self) -> str:
        if self.path is None:
            return self.cause
        return f"Failed to parse `{self.path}`\n  caused by: {self.cause}"


class SettingsError(HookRunnerError):
    """Raised when hookrunner's own settings (TOML or env vars) are invalid."""

    pass
