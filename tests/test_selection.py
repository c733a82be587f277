"""Tests for file type tags and per-hook file selection."""

import os
import sys

import pytest

from hookrunner.project import HookSpec, Language
from hookrunner.selection import (
    ALL_TAGS,
    FileSelector,
    GlobalFilters,
    dedupe,
    filter_by_include_exclude,
    normalize_path,
    tags_from_filename,
    tags_from_path,
)
from hookrunner.selection.tags import parse_shebang, tags_from_interpreter


def _hook(**fields) -> HookSpec:
    return HookSpec(id="h", name="h", entry="true", language=Language.SYSTEM, **fields)


@pytest.fixture
def tree(tmp_path, monkeypatch):
    """A small work tree used as cwd."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("print('hi')\n")
    (tmp_path / "src" / "data.json").write_text("{}\n")
    (tmp_path / "README.md").write_text("# readme\n")
    (tmp_path / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")
    (tmp_path / "blob").write_bytes(b"\x00\x01\x02\x03")
    script = tmp_path / "run"
    script.write_text("#!/usr/bin/env python3\nprint('x')\n")
    script.chmod(0o755)
    return tmp_path


# ── Tags ──────────────────────────────────────────────────────────────


class TestTagsFromFilename:
    def test_extension(self):
        assert tags_from_filename("src/app.py") == {"text", "python"}

    def test_extension_is_case_insensitive(self):
        assert "python" in tags_from_filename("APP.PY")

    def test_special_name(self):
        assert "dockerfile" in tags_from_filename("docker/Dockerfile")

    def test_unknown(self):
        assert tags_from_filename("notes.unknownext") == frozenset()

    def test_every_tag_is_known(self):
        assert tags_from_filename("a.py") <= ALL_TAGS


class TestTagsFromPath:
    def test_regular_text_file(self, tree):
        tags = tags_from_path("src/app.py")
        assert {"file", "non-executable", "text", "python"} <= tags

    def test_binary_by_content(self, tree):
        tags = tags_from_path("blob")
        assert "binary" in tags
        assert "text" not in tags

    @pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX permissions")
    def test_executable_uses_shebang(self, tree):
        tags = tags_from_path("run")
        assert {"executable", "python", "python3", "text"} <= tags

    def test_directory(self, tree):
        assert tags_from_path("src") == {"directory"}

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="no symlinks")
    def test_symlink(self, tree):
        os.symlink("README.md", "link.md")
        assert tags_from_path("link.md") == {"symlink"}

    def test_missing_file_raises(self, tree):
        with pytest.raises(OSError):
            tags_from_path("gone.py")


class TestShebang:
    def test_env_interpreter(self, tmp_path):
        path = tmp_path / "s"
        path.write_text("#!/usr/bin/env -S python3 -u\n")
        assert parse_shebang(str(path)) == ("python3", "-u")

    def test_no_shebang(self, tmp_path):
        path = tmp_path / "s"
        path.write_text("print(1)\n")
        assert parse_shebang(str(path)) == ()

    def test_versioned_interpreter(self):
        assert "python" in tags_from_interpreter("/usr/bin/python3.12")

    def test_unknown_interpreter(self):
        assert tags_from_interpreter("frobnicate") == frozenset()


# ── Paths ─────────────────────────────────────────────────────────────


class TestPaths:
    def test_normalize_strips_dot_prefix(self):
        assert normalize_path("./src/app.py") == "src/app.py"

    def test_normalize_collapses_segments(self):
        assert normalize_path("src/../src//app.py") == "src/app.py"

    def test_dedupe_keeps_first_seen_order(self):
        assert dedupe(["b.py", "a.py", "./b.py", "a.py"]) == ("b.py", "a.py")


class TestIncludeExclude:
    def test_search_not_match(self):
        paths = ["src/app.py", "docs/app.md"]
        assert filter_by_include_exclude(paths, r"\.py$", "^$") == ("src/app.py",)

    def test_exclude_wins(self):
        paths = ["src/app.py", "tests/test_app.py"]
        assert filter_by_include_exclude(paths, "", "^tests/") == ("src/app.py",)

    def test_empty_include_matches_everything(self):
        assert filter_by_include_exclude(["a", "b"], "", "^$") == ("a", "b")


# ── FileSelector ──────────────────────────────────────────────────────


class TestFileSelector:
    def test_preserves_universe_order(self, tree):
        selector = FileSelector(["src/data.json", "README.md", "src/app.py"])
        assert selector.compute(_hook(types=("text",))) == (
            "src/data.json",
            "README.md",
            "src/app.py",
        )

    def test_types_all_required(self, tree):
        selector = FileSelector(["src/app.py", "src/data.json", "README.md"])
        assert selector.compute(_hook(types=("text", "python"))) == ("src/app.py",)

    def test_types_or_any(self, tree):
        selector = FileSelector(["src/app.py", "src/data.json", "README.md"])
        result = selector.compute(_hook(types_or=("python", "json")))
        assert result == ("src/app.py", "src/data.json")

    def test_exclude_types(self, tree):
        selector = FileSelector(["src/app.py", "logo.png", "blob"])
        assert selector.compute(_hook(exclude_types=("binary",))) == ("src/app.py",)

    def test_default_types_drop_directories(self, tree):
        selector = FileSelector(["src", "src/app.py"])
        assert selector.compute(_hook()) == ("src/app.py",)

    def test_missing_files_silently_excluded(self, tree):
        selector = FileSelector(["src/app.py", "deleted.py"])
        assert selector.compute(_hook()) == ("src/app.py",)

    def test_global_filters_apply(self, tree):
        selector = FileSelector(
            ["src/app.py", "src/data.json", "README.md"],
            GlobalFilters(files="^src/", exclude=r"\.json$"),
        )
        assert selector.compute(_hook()) == ("src/app.py",)

    def test_hook_files_narrow_global_files(self, tree):
        selector = FileSelector(
            ["src/app.py", "src/data.json", "README.md"], GlobalFilters(files="^src/")
        )
        assert selector.compute(_hook(files=r"\.py$")) == ("src/app.py",)
        assert selector.compute(_hook(files=r"\.md$")) == ()

    def test_hook_exclude_adds_to_global_exclude(self, tree):
        selector = FileSelector(
            ["src/app.py", "src/data.json", "README.md"], GlobalFilters(exclude=r"\.md$")
        )
        assert selector.compute(_hook(exclude=r"\.json$")) == ("src/app.py",)

    def test_global_files_disjoint_from_hook_files(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for name in ("file.txt", "valid.json", "invalid.json"):
            (tmp_path / name).write_text("{}\n")
        selector = FileSelector(
            ["file.txt", "valid.json", "invalid.json"], GlobalFilters(files="file.txt")
        )
        assert selector.compute(_hook(files="valid.json")) == ()
        assert selector.compute(_hook(exclude="invalid.json")) == ("file.txt",)

    def test_filtered_applies_only_global_patterns(self, tree):
        selector = FileSelector(
            ["src/app.py", "src/data.json", "README.md"],
            GlobalFilters(files="^src/", exclude=r"\.json$"),
        )
        assert selector.filtered() == ("src/app.py",)

    def test_compute_is_repeatable(self, tree):
        selector = FileSelector(["src/app.py", "README.md", "src/app.py"])
        hook = _hook(types=("text",))
        assert selector.compute(hook) == selector.compute(hook) == ("src/app.py", "README.md")

    def test_empty_result_is_valid(self, tree):
        selector = FileSelector(["README.md"])
        assert selector.compute(_hook(files=r"\.rs$")) == ()

    def test_tags_are_memoised(self, tree, monkeypatch):
        calls = []
        import hookrunner.selection.selector as selector_module

        real = selector_module.tags_from_path

        def counting(path):
            calls.append(path)
            return real(path)

        monkeypatch.setattr(selector_module, "tags_from_path", counting)
        selector = FileSelector(["src/app.py"])
        selector.compute(_hook())
        selector.compute(_hook(types=("python",)))
        assert calls == ["src/app.py"]
