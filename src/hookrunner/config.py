"""Settings loading for hookrunner itself.

This is hookrunner's own configuration (where to cache environments, how to
colour output, how many installs to run at once), not the hook project
configuration, which lives in ``hookrunner.project``. Sources are merged in
priority order:
    1. Defaults (defined in HookRunnerSettings)
    2. Global config (~/.hookrunner.toml)
    3. Project config (./hookrunner.toml)
    4. Explicit config file
    5. Environment variables (HOOKRUNNER_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> settings = load_settings(color="never")
    >>> settings.color
    'never'
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import SettingsError

ColorMode = Literal["auto", "always", "never"]
Verbosity = Literal["quiet", "normal", "verbose"]

DEFAULT_CONFIG_FILE = ".pre-commit-config.yaml"
MANIFEST_FILE = ".pre-commit-hooks.yaml"


@dataclass(frozen=True)
class HookRunnerSettings:
    """Settings for a hookrunner invocation.

    Attributes:
        cache_dir: Root of the shared repo/environment cache. None selects
            ``$XDG_CACHE_HOME/hookrunner`` (or ``~/.cache/hookrunner``).
        config_file: Project configuration file, relative to the repo root.
        color: Colour mode for status lines.
        verbosity: Logging verbosity level.
        install_workers: Environments installed concurrently before a run.
        max_arg_length: Override for the command-line length limit used to
            batch file arguments. None derives it from the platform.
        log_file: Optional file receiving hookrunner's own debug log.
    """

    cache_dir: Optional[str] = None
    config_file: str = DEFAULT_CONFIG_FILE
    color: ColorMode = "auto"
    verbosity: Verbosity = "normal"
    install_workers: int = 4
    max_arg_length: Optional[int] = None
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        if self.color not in ("auto", "always", "never"):
            raise ValueError(f"color must be auto, always or never, got '{self.color}'")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError(f"verbosity must be quiet, normal or verbose, got '{self.verbosity}'")
        if self.install_workers < 1:
            raise ValueError("install_workers must be at least 1")
        if self.max_arg_length is not None and self.max_arg_length < 256:
            raise ValueError("max_arg_length must be at least 256")
        if not self.config_file:
            raise ValueError("config_file must not be empty")

    @property
    def cache_path(self) -> Path:
        """Resolve the cache root.

        ``HOOKRUNNER_HOME`` wins over everything so test suites and CI jobs
        can isolate the cache without writing a settings file.
        """
        env_home = os.environ.get("HOOKRUNNER_HOME")
        if env_home:
            return Path(env_home).expanduser()
        if self.cache_dir:
            return Path(self.cache_dir).expanduser()
        xdg = os.environ.get("XDG_CACHE_HOME")
        base = Path(xdg).expanduser() if xdg else Path.home() / ".cache"
        return base / "hookrunner"


def load_settings(config_file: Optional[Path] = None, **overrides) -> HookRunnerSettings:
    """Load settings with auto-discovery and merging.

    Args:
        config_file: Optional explicit settings file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so callers can pass unset options through.

    Returns:
        Validated HookRunnerSettings instance

    Raises:
        SettingsError: If a settings file or variable is invalid
    """
    merged: dict = {}

    global_config = Path.home() / ".hookrunner.toml"
    if global_config.exists():
        merged.update(_load_toml_section(global_config))

    project_config = Path.cwd() / "hookrunner.toml"
    if project_config.exists():
        merged.update(_load_toml_section(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise SettingsError(f"Settings file not found: {config_file}")
        merged.update(_load_toml_section(config_file))

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return HookRunnerSettings(**merged)
    except (TypeError, ValueError) as e:
        raise SettingsError(f"Invalid settings: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load settings from HOOKRUNNER_* environment variables.

    Supported environment variables:
        HOOKRUNNER_CACHE_DIR: str
        HOOKRUNNER_CONFIG_FILE: str
        HOOKRUNNER_COLOR: auto/always/never
        HOOKRUNNER_VERBOSITY: quiet/normal/verbose
        HOOKRUNNER_INSTALL_WORKERS: int
        HOOKRUNNER_MAX_ARG_LENGTH: int
        HOOKRUNNER_LOG_FILE: str
    """
    type_hints = get_type_hints(HookRunnerSettings)

    result: dict[str, Any] = {}

    for field_name in HookRunnerSettings.__dataclass_fields__:
        env_key = f"HOOKRUNNER_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise SettingsError(f"Invalid {env_key}: {e}")
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type."""
    origin = getattr(type_hint, "__origin__", None)

    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_section(path: Path) -> dict:
    """Load the ``[hookrunner]`` table of a TOML file (or its top level)."""
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise SettingsError(f"Invalid settings file '{path}': {e}")

    section = data.get("hookrunner", data)
    if not isinstance(section, dict):
        raise SettingsError(f"Invalid settings file '{path}': [hookrunner] must be a table")
    return section


default_settings = HookRunnerSettings()
