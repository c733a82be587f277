"""Per-hook file selection.

``FileSelector.compute`` is a pure function of (file universe, global
filters, hook filters) for a given snapshot of the work tree: tags are
memoised per selector, so recomputing over the same snapshot always yields
the same FileSet.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional, Pattern, Sequence

from ..logging_config import get_logger
from ..project.models import HookSpec, ProjectConfig
from .tags import tags_from_path

logger = get_logger(__name__)

FileSet = tuple[str, ...]


@lru_cache(maxsize=256)
def _compile(pattern: str) -> Pattern[str]:
    return re.compile(pattern)


def normalize_path(path: str) -> str:
    """Repo-relative, ``/``-separated, without ``./`` prefixes."""
    normalized = os.path.normpath(path).replace(os.sep, "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def dedupe(paths: Iterable[str]) -> FileSet:
    """Normalize and drop duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for path in paths:
        seen.setdefault(normalize_path(path), None)
    return tuple(seen)


@dataclass(frozen=True)
class GlobalFilters:
    files: str = ""
    exclude: str = "^$"

    @classmethod
    def from_config(cls, config: ProjectConfig) -> GlobalFilters:
        return cls(files=config.files, exclude=config.exclude)


def filter_by_include_exclude(paths: Sequence[str], include: str, exclude: str) -> FileSet:
    include_re = _compile(include)
    exclude_re = _compile(exclude)
    return tuple(p for p in paths if include_re.search(p) and not exclude_re.search(p))


class FileSelector:
    """Select candidate files for hooks from one file universe."""

    def __init__(self, universe: Iterable[str], filters: Optional[GlobalFilters] = None):
        self.universe: FileSet = dedupe(universe)
        self.filters = filters or GlobalFilters()
        self._tags: dict[str, Optional[frozenset[str]]] = {}
        self._filtered: Optional[FileSet] = None

    def tags(self, path: str) -> Optional[frozenset[str]]:
        """Tags for ``path``, or None if it is missing or unreadable."""
        if path not in self._tags:
            try:
                self._tags[path] = tags_from_path(path)
            except OSError as e:
                logger.debug("Excluding unreadable path %s: %s", path, e)
                self._tags[path] = None
        return self._tags[path]

    def matches_types(self, path: str, hook: HookSpec) -> bool:
        tags = self.tags(path)
        if tags is None:
            return False
        if not tags.issuperset(hook.types):
            return False
        if hook.types_or and tags.isdisjoint(hook.types_or):
            return False
        return tags.isdisjoint(hook.exclude_types)

    def filtered(self) -> FileSet:
        """The universe narrowed by the config-wide ``files`` and ``exclude``."""
        if self._filtered is None:
            self._filtered = filter_by_include_exclude(
                self.universe, self.filters.files, self.filters.exclude
            )
        return self._filtered

    def compute(self, hook: HookSpec) -> FileSet:
        """The ordered, duplicate-free files ``hook`` should inspect.

        The global patterns apply first; the hook's own ``files`` and
        ``exclude`` can only narrow what they let through.
        """
        candidates = filter_by_include_exclude(
            self.filtered(),
            hook.files if hook.files is not None else "",
            hook.exclude if hook.exclude is not None else "^$",
        )
        return tuple(p for p in candidates if self.matches_types(p, hook))
