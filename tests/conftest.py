"""Shared test fixtures for hookrunner tests."""

from __future__ import annotations

import io
import os
import shlex
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional

import pytest
import yaml
from rich.console import Console

GIT = shutil.which("git")

requires_git = pytest.mark.skipif(GIT is None, reason="git is not installed")


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep the cache, settings and git config of every test private."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("HOOKRUNNER_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    for var in ("SKIP", "GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE"):
        monkeypatch.delenv(var, raising=False)
    for var in [k for k in os.environ if k.startswith("HOOKRUNNER_") and k != "HOOKRUNNER_HOME"]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path / "cache"


# ── Hook helpers ──────────────────────────────────────────────────────


def py(code: str) -> str:
    """An ``entry`` running ``code`` with the test interpreter."""
    return shlex.join([sys.executable, "-c", code])


def local_hook(hook_id: str, entry: str, **fields) -> dict:
    hook = {"id": hook_id, "name": hook_id, "language": "system", "entry": entry}
    hook.update(fields)
    return hook


def status_line(name: str, status: str, postfix: str = "") -> str:
    """A plain status line as printed for short hook names."""
    return name + "." * (79 - len(name) - len(postfix) - len(status)) + postfix + status


def capture_console() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None, highlight=False)


# ── Git repositories ──────────────────────────────────────────────────


class GitRepo:
    """A throwaway git work tree."""

    def __init__(self, root: Path):
        self.root = root

    def git(self, *args: str, check: bool = True) -> str:
        result = subprocess.run(
            ["git", *args], cwd=self.root, capture_output=True, text=True
        )
        if check and result.returncode != 0:
            raise AssertionError(f"git {' '.join(args)} failed: {result.stderr}")
        return result.stdout

    def write(self, path: str, content, mode: Optional[int] = None) -> Path:
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content)
        if mode is not None:
            target.chmod(mode)
        return target

    def read(self, path: str) -> str:
        return (self.root / path).read_text()

    def add(self, *paths: str) -> None:
        self.git("add", *(paths or (".",)))

    def commit(self, message: str = "commit") -> None:
        self.git("commit", "--quiet", "--no-verify", "-m", message)

    def write_config(self, hooks: list, **top_level) -> Path:
        """Write a config whose only repo is ``local`` with ``hooks``."""
        data = {"repos": [{"repo": "local", "hooks": hooks}]}
        data.update(top_level)
        return self.write_raw_config(data)

    def write_raw_config(self, data: dict) -> Path:
        return self.write(".pre-commit-config.yaml", yaml.safe_dump(data, sort_keys=False))


@pytest.fixture
def repo(tmp_path, monkeypatch) -> GitRepo:
    """An initialised repository on branch ``master``, used as cwd."""
    if GIT is None:
        pytest.skip("git is not installed")
    root = tmp_path / "project"
    root.mkdir()
    root = root.resolve()
    repo = GitRepo(root)
    repo.git("init", "--quiet")
    repo.git("symbolic-ref", "HEAD", "refs/heads/master")
    repo.git("config", "commit.gpgsign", "false")
    repo.git("config", "core.autocrlf", "false")
    monkeypatch.chdir(root)
    return repo
