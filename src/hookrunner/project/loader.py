"""Loading and validation of project configs and hook manifests.

Both files are YAML. Parsing keeps the source position of every mapping
and sequence so that a validation failure can name the exact line and
column, e.g.::

    Failed to parse `config.yaml`
      caused by: repos: Invalid remote repo: missing field `rev` at line 2 column 3
"""

from __future__ import annotations

import re
import shlex
import sys
from pathlib import Path
from typing import Any, Optional

import yaml

from ..exceptions import ConfigError
from ..logging_config import get_logger
from ..selection.tags import ALL_TAGS
from .models import ALL_STAGES, HookSpec, Language, ProjectConfig, RepoSpec, Stage

logger = get_logger(__name__)

_TOP_LEVEL_KEYS = {
    "repos",
    "files",
    "exclude",
    "fail_fast",
    "default_stages",
    "default_language_version",
    "default_install_hook_types",
    "minimum_pre_commit_version",
    "ci",
}

_STR_FIELDS = {
    "id",
    "name",
    "entry",
    "files",
    "exclude",
    "log_file",
    "language_version",
    "alias",
    "description",
    "minimum_pre_commit_version",
}
_BOOL_FIELDS = {"always_run", "fail_fast", "verbose", "pass_filenames", "require_serial"}
_LIST_FIELDS = {"args", "types", "types_or", "exclude_types", "additional_dependencies", "stages"}
_HOOK_FIELDS = _STR_FIELDS | _BOOL_FIELDS | _LIST_FIELDS | {"language"}

_REQUIRED_DEFINITION_FIELDS = ("id", "name", "entry", "language")


# ---------------------------------------------------------------------------
# YAML with source positions
# ---------------------------------------------------------------------------


class _MarkedDict(dict):
    line: int = 0
    column: int = 0


class _MarkedList(list):
    line: int = 0
    column: int = 0


class _MarkedLoader(yaml.SafeLoader):
    """SafeLoader that remembers where each mapping and sequence started."""


def _entry_column(mark: yaml.Mark) -> int:
    """1-based column of a node, or of the ``-`` introducing it as a list entry."""
    buffer = mark.buffer
    if buffer is None:
        return mark.column + 1
    i = mark.pointer - 1
    while i >= 0 and buffer[i] == " ":
        i -= 1
    if i >= 0 and buffer[i] == "-":
        return mark.column - (mark.pointer - i) + 1
    return mark.column + 1


def _construct_mapping(loader: _MarkedLoader, node: yaml.MappingNode) -> _MarkedDict:
    mapping = _MarkedDict(loader.construct_mapping(node, deep=True))
    mapping.line = node.start_mark.line + 1
    mapping.column = _entry_column(node.start_mark)
    return mapping


def _construct_sequence(loader: _MarkedLoader, node: yaml.SequenceNode) -> _MarkedList:
    sequence = _MarkedList(loader.construct_sequence(node, deep=True))
    sequence.line = node.start_mark.line + 1
    sequence.column = node.start_mark.column + 1
    return sequence


_MarkedLoader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_mapping)
_MarkedLoader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_SEQUENCE_TAG, _construct_sequence)


def _read_yaml(path: Path, shown: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError("file not found", path=shown)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read file: {e}", path=shown)

    try:
        return yaml.load(text, Loader=_MarkedLoader)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark
        raise ConfigError(
            f"invalid YAML: {e.problem}",
            path=shown,
            line=mark.line + 1 if mark else None,
            column=mark.column + 1 if mark else None,
        )
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML: {e}", path=shown)


def _fail(path: Path, field: str, reason: str, node: Any = None) -> ConfigError:
    line = getattr(node, "line", None)
    column = getattr(node, "column", None)
    return ConfigError(reason, path=path, field=field, line=line, column=column)


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------


def _check_regex(path: Path, field: str, value: str, node: Any) -> None:
    try:
        re.compile(value)
    except re.error as e:
        raise _fail(path, field, f"invalid regular expression `{value}`: {e}", node)


def _check_entry(path: Path, field: str, entry: str, language: Any, node: Any) -> None:
    # pygrep entries are patterns and fail entries are messages; neither is split.
    if language in (Language.PYGREP.value, Language.FAIL.value):
        return
    try:
        argv = shlex.split(entry)
    except ValueError as e:
        raise _fail(path, field, f"cannot parse entry `{entry}`: {e}", node)
    if not argv:
        raise _fail(path, field, "entry must name a command", node)


def _check_hook_fields(path: Path, field: str, raw: dict, node: Any) -> None:
    for key, value in raw.items():
        if key not in _HOOK_FIELDS:
            logger.warning("Unexpected key `%s` in hook `%s` of %s", key, raw.get("id"), path)
            continue
        if key in _STR_FIELDS and not isinstance(value, str):
            raise _fail(path, f"{field}.{key}", "expected a string", node)
        if key in _BOOL_FIELDS and not isinstance(value, bool):
            raise _fail(path, f"{field}.{key}", "expected a boolean", node)
        if key in _LIST_FIELDS:
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise _fail(path, f"{field}.{key}", "expected a list of strings", node)

    for key in ("files", "exclude"):
        if key in raw:
            _check_regex(path, f"{field}.{key}", raw[key], node)

    if "language" in raw:
        try:
            Language(raw["language"])
        except ValueError:
            supported = ", ".join(lang.value for lang in Language)
            raise _fail(
                path,
                f"{field}.language",
                f"unknown language `{raw['language']}` (supported: {supported})",
                node,
            )

    if isinstance(raw.get("entry"), str):
        _check_entry(path, f"{field}.entry", raw["entry"], raw.get("language"), node)

    for key in ("types", "types_or", "exclude_types"):
        for tag in raw.get(key, ()):
            if tag not in ALL_TAGS:
                raise _fail(path, f"{field}.{key}", f"unknown type tag `{tag}`", node)

    for stage in raw.get("stages", ()):
        try:
            Stage.parse(stage)
        except ValueError:
            raise _fail(path, f"{field}.stages", f"unknown stage `{stage}`", node)


def _parse_stages(values: Optional[list]) -> Optional[tuple[Stage, ...]]:
    if values is None:
        return None
    return tuple(Stage.parse(v) for v in values)


def build_hook(
    definition: dict,
    overrides: Optional[dict] = None,
    default_stages: tuple[Stage, ...] = ALL_STAGES,
    default_language_version: Optional[dict[str, str]] = None,
) -> HookSpec:
    """Merge a hook definition with user overrides into a HookSpec."""
    raw = dict(definition)
    raw.update(overrides or {})

    language = Language(raw["language"])
    language_version = raw.get("language_version")
    if language_version is None:
        language_version = (default_language_version or {}).get(language.value, "default")

    return HookSpec(
        id=raw["id"],
        name=raw.get("name", raw["id"]),
        entry=raw["entry"],
        language=language,
        args=tuple(raw.get("args", ())),
        files=raw.get("files"),
        exclude=raw.get("exclude"),
        types=tuple(raw.get("types", ("file",))),
        types_or=tuple(raw.get("types_or", ())),
        exclude_types=tuple(raw.get("exclude_types", ())),
        always_run=raw.get("always_run", False),
        fail_fast=raw.get("fail_fast", False),
        verbose=raw.get("verbose", False),
        pass_filenames=raw.get("pass_filenames", True),
        require_serial=raw.get("require_serial", False),
        log_file=raw.get("log_file"),
        additional_dependencies=tuple(raw.get("additional_dependencies", ())),
        stages=_parse_stages(raw.get("stages")) or default_stages,
        language_version=language_version,
        alias=raw.get("alias", ""),
        description=raw.get("description", ""),
        minimum_pre_commit_version=raw.get("minimum_pre_commit_version", "0"),
    )


# ---------------------------------------------------------------------------
# Meta hooks
# ---------------------------------------------------------------------------


def _meta_definitions(config_path: Path) -> dict[str, dict]:
    config_regex = "^{}$".format(re.escape(config_path.as_posix()))

    def entry(hook_id: str) -> str:
        return shlex.join(
            [sys.executable, "-m", "hookrunner.meta_hooks", hook_id, "--config", str(config_path)]
        )

    return {
        "check-hooks-apply": {
            "id": "check-hooks-apply",
            "name": "Check hooks apply to the repository",
            "entry": entry("check-hooks-apply"),
            "language": "system",
            "files": config_regex,
            "pass_filenames": False,
        },
        "check-useless-excludes": {
            "id": "check-useless-excludes",
            "name": "Check for useless excludes",
            "entry": entry("check-useless-excludes"),
            "language": "system",
            "files": config_regex,
            "pass_filenames": False,
        },
        "identity": {
            "id": "identity",
            "name": "identity",
            "entry": entry("identity"),
            "language": "system",
            "verbose": True,
        },
    }


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


def _load_repo(path: Path, index: int, raw: Any, config_kwargs: dict) -> RepoSpec:
    field = "repos"
    if not isinstance(raw, dict):
        raise _fail(path, field, f"repo #{index + 1} must be a mapping", raw)
    source = raw.get("repo")
    if not isinstance(source, str) or not source:
        raise _fail(path, field, "missing field `repo`", raw)
    if source not in ("local", "meta") and "rev" not in raw:
        raise _fail(path, field, "Invalid remote repo: missing field `rev`", raw)

    hooks_raw = raw.get("hooks")
    if hooks_raw is None:
        raise _fail(path, field, f"Invalid repo `{source}`: missing field `hooks`", raw)
    if not isinstance(hooks_raw, list):
        raise _fail(path, f"{field}.hooks", "expected a list of hooks", hooks_raw)

    default_stages = config_kwargs["default_stages"]
    default_language_version = config_kwargs["default_language_version"]

    for i, hook_raw in enumerate(hooks_raw):
        hook_field = f"{field}.hooks[{i}]"
        if not isinstance(hook_raw, dict):
            raise _fail(path, hook_field, "expected a mapping", hooks_raw)
        if "id" not in hook_raw:
            raise _fail(path, hook_field, "missing field `id`", hook_raw)
        _check_hook_fields(path, hook_field, hook_raw, hook_raw)

    if source == "local":
        hooks = []
        for i, hook_raw in enumerate(hooks_raw):
            for required in _REQUIRED_DEFINITION_FIELDS:
                if required not in hook_raw:
                    raise _fail(
                        path, field, f"Invalid local hook: missing field `{required}`", hook_raw
                    )
            hooks.append(build_hook(hook_raw, None, default_stages, default_language_version))
        return RepoSpec(source=source, hooks=tuple(hooks))

    if source == "meta":
        definitions = _meta_definitions(config_kwargs["meta_config_path"])
        hooks = []
        for hook_raw in hooks_raw:
            definition = definitions.get(hook_raw["id"])
            if definition is None:
                known = ", ".join(sorted(definitions))
                raise _fail(
                    path,
                    field,
                    f"Invalid meta hook `{hook_raw['id']}` (known: {known})",
                    hook_raw,
                )
            overrides = {k: v for k, v in hook_raw.items() if k not in ("entry", "language")}
            hooks.append(build_hook(definition, overrides, default_stages, default_language_version))
        return RepoSpec(source=source, hooks=tuple(hooks))

    rev = raw.get("rev")
    if rev is None:
        raise _fail(path, field, "Invalid remote repo: missing field `rev`", raw)
    if not isinstance(rev, str):
        raise _fail(path, f"{field}.rev", "expected a string", raw)
    return RepoSpec(
        source=source,
        rev=rev,
        overrides=tuple(dict(h) for h in hooks_raw),
    )


def load_config(path: Path, display_path: Optional[Path] = None) -> ProjectConfig:
    """Load and validate a project configuration file.

    Remote repositories are returned unresolved (overrides only); call
    ``resolve_remote_hooks`` once they have been fetched.

    Args:
        path: Config file to read
        display_path: Path used in error messages and meta hook patterns,
            normally the path relative to the repository root

    Raises:
        ConfigError: On any parse or validation failure
    """
    shown = display_path or path
    data = _read_yaml(path, shown)
    if data is None:
        raise _fail(shown, "repos", "missing field `repos`")
    if not isinstance(data, dict):
        raise _fail(shown, "config", "expected a mapping at the top level", data)

    for key in data:
        if key not in _TOP_LEVEL_KEYS:
            logger.warning("Unexpected key `%s` in %s", key, shown)

    repos_raw = data.get("repos")
    if repos_raw is None:
        raise _fail(shown, "repos", "missing field `repos`", data)
    if not isinstance(repos_raw, list):
        raise _fail(shown, "repos", "expected a list of repos", data)

    files = data.get("files", "")
    exclude = data.get("exclude", "^$")
    for key, value in (("files", files), ("exclude", exclude)):
        if not isinstance(value, str):
            raise _fail(shown, key, "expected a string", data)
        _check_regex(shown, key, value, data)

    fail_fast = data.get("fail_fast", False)
    if not isinstance(fail_fast, bool):
        raise _fail(shown, "fail_fast", "expected a boolean", data)

    default_stages_raw = data.get("default_stages")
    default_stages = ALL_STAGES
    if default_stages_raw is not None:
        try:
            default_stages = tuple(Stage.parse(s) for s in default_stages_raw)
        except (TypeError, ValueError):
            raise _fail(shown, "default_stages", "expected a list of stage names", data)

    default_language_version = data.get("default_language_version", {})
    if not isinstance(default_language_version, dict):
        raise _fail(shown, "default_language_version", "expected a mapping", data)

    config_kwargs = {
        "default_stages": default_stages,
        "default_language_version": dict(default_language_version),
        "meta_config_path": shown,
    }
    repos = tuple(_load_repo(shown, i, r, config_kwargs) for i, r in enumerate(repos_raw))

    return ProjectConfig(
        repos=repos,
        files=files,
        exclude=exclude,
        fail_fast=fail_fast,
        default_stages=default_stages,
        default_language_version=dict(default_language_version),
        path=path,
    )


# ---------------------------------------------------------------------------
# Manifests
# ---------------------------------------------------------------------------


def load_manifest(path: Path, display_path: Optional[Path] = None) -> dict[str, dict]:
    """Load a hook manifest into ``{hook id: definition}``, in file order."""
    shown = display_path or path
    data = _read_yaml(path, shown)
    if not isinstance(data, list):
        raise _fail(shown, "hooks", "expected a list of hook definitions", data)

    definitions: dict[str, dict] = {}
    for i, raw in enumerate(data):
        field = f"hooks[{i}]"
        if not isinstance(raw, dict):
            raise _fail(shown, field, "expected a mapping", data)
        for required in _REQUIRED_DEFINITION_FIELDS:
            if required not in raw:
                raise _fail(shown, field, f"missing field `{required}`", raw)
        _check_hook_fields(shown, field, raw, raw)
        definitions[raw["id"]] = dict(raw)
    return definitions


def resolve_remote_hooks(
    config: ProjectConfig, repo: RepoSpec, manifest: dict[str, dict], repo_path: Path
) -> RepoSpec:
    """Combine a fetched repository's manifest with the user's overrides."""
    hooks = []
    for override in repo.overrides:
        hook_id = override["id"]
        definition = manifest.get(hook_id)
        if definition is None:
            raise ConfigError(
                f"`{hook_id}` is not present in repository {repo.source}. "
                "Typo? Perhaps it is introduced in a newer version?",
                path=config.path,
            )
        hooks.append(
            build_hook(
                definition,
                override,
                config.default_stages,
                config.default_language_version,
            )
        )
    return repo.with_manifest(tuple(hooks), repo_path)
