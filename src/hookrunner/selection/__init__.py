"""File universe filtering: include/exclude patterns and type tags."""

from .selector import (
    FileSelector,
    FileSet,
    GlobalFilters,
    dedupe,
    filter_by_include_exclude,
    normalize_path,
)
from .tags import ALL_TAGS, tags_from_filename, tags_from_path

__all__ = [
    "ALL_TAGS",
    "FileSelector",
    "FileSet",
    "GlobalFilters",
    "dedupe",
    "filter_by_include_exclude",
    "normalize_path",
    "tags_from_filename",
    "tags_from_path",
]
