"""Tests for the hookrunner command line."""

import os
import stat
import subprocess
import textwrap
from pathlib import Path

import pytest
from conftest import local_hook, py, requires_git, status_line
from typer.testing import CliRunner

from hookrunner import __version__
from hookrunner.cli import app
from hookrunner.cli.install import MARKER, hook_script
from hookrunner.cli.sample import SAMPLE_CONFIG
from hookrunner.project import Stage, load_config
from hookrunner.store import Store

runner = CliRunner()

INVALID_CONFIG = """\
repos:
  - repo: https://github.com/pre-commit/pre-commit-hooks
"""


def _invoke(*args: str):
    return runner.invoke(app, list(args))


class TestVersion:
    def test_version(self):
        result = _invoke("--version")
        assert result.exit_code == 0
        assert result.output.strip() == f"hookrunner {__version__}"


class TestSampleConfig:
    def test_prints_sample(self):
        result = _invoke("sample-config")
        assert result.exit_code == 0
        assert result.output == SAMPLE_CONFIG

    def test_sample_is_valid(self, tmp_path):
        path = tmp_path / ".pre-commit-config.yaml"
        path.write_text(SAMPLE_CONFIG)
        [repo] = load_config(path).repos
        assert repo.rev == "v5.0.0"
        assert len(repo.overrides) == 4


# ── Validation ────────────────────────────────────────────────────────


class TestValidate:
    """Test validate-config and validate-manifest."""

    @pytest.fixture(autouse=True)
    def _cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

    def test_valid_config(self):
        Path("ok.yaml").write_text("repos: []\n")
        result = _invoke("validate-config", "ok.yaml")
        assert result.exit_code == 0
        assert result.output == ""

    def test_invalid_config_message(self):
        Path("config-1.yaml").write_text(INVALID_CONFIG)
        result = _invoke("validate-config", "config-1.yaml")
        assert result.exit_code == 1
        assert result.output == (
            "error: Failed to parse `config-1.yaml`\n"
            "  caused by: repos: Invalid remote repo: missing field `rev` at line 2 column 3\n"
        )

    def test_every_file_is_checked(self):
        Path("ok.yaml").write_text("repos: []\n")
        Path("bad.yaml").write_text(INVALID_CONFIG)
        Path("worse.yaml").write_text("repos: [\n")
        result = _invoke("validate-config", "bad.yaml", "ok.yaml", "worse.yaml")
        assert result.exit_code == 1
        assert "`bad.yaml`" in result.output
        assert "`worse.yaml`" in result.output
        assert "`ok.yaml`" not in result.output

    def test_no_files(self):
        assert _invoke("validate-config").exit_code == 0

    def test_valid_manifest(self):
        Path("hooks.yaml").write_text(
            textwrap.dedent(
                """\
                - id: fmt
                  name: fmt
                  entry: fmt
                  language: python
                """
            )
        )
        assert _invoke("validate-manifest", "hooks.yaml").exit_code == 0

    def test_invalid_manifest(self):
        Path("hooks.yaml").write_text("- id: fmt\n  name: fmt\n  language: python\n")
        result = _invoke("validate-manifest", "hooks.yaml")
        assert result.exit_code == 1
        assert "missing field `entry`" in result.output


# ── run ───────────────────────────────────────────────────────────────


@pytest.fixture
def project(repo):
    repo.write("a.py", "x = 1\n")
    repo.write_config(
        [
            local_hook("ok", py("pass")),
            local_hook("bad", py("import sys; print('nope'); sys.exit(1)"), stages=["pre-push"]),
        ]
    )
    repo.add()
    return repo


class TestRun:
    def test_passing_run(self, project):
        result = _invoke("run", "--color", "never")
        assert result.exit_code == 0
        assert status_line("ok", "Passed") in result.output

    def test_failing_stage(self, project):
        result = _invoke("run", "--hook-stage", "push", "--all-files", "--color", "never")
        assert result.exit_code == 1
        assert status_line("bad", "Failed") in result.output
        assert "  nope" in result.output

    def test_single_hook(self, project):
        result = _invoke("run", "ok", "--all-files", "--color", "never")
        assert result.exit_code == 0
        assert "bad" not in result.output

    def test_unknown_hook_with_stage(self, project):
        result = _invoke("run", "missing", "--hook-stage", "pre-push")
        assert result.exit_code == 1
        assert "No hook found for id `missing` and stage `pre-push`" in result.output

    def test_invalid_stage(self, project):
        result = _invoke("run", "--hook-stage", "pre-lunch")
        assert result.exit_code == 1
        assert "Invalid hook stage `pre-lunch`" in result.output

    def test_refs_must_be_paired(self, project):
        result = _invoke("run", "--from-ref", "HEAD")
        assert result.exit_code == 1
        assert "must be given together" in result.output

    def test_skip_environment_variable(self, project, monkeypatch):
        monkeypatch.setenv("SKIP", "bad")
        result = _invoke("run", "--hook-stage", "push", "--all-files", "--color", "never")
        assert result.exit_code == 0
        assert status_line("bad", "Skipped") in result.output

    def test_files_relative_to_subdirectory(self, project, monkeypatch):
        project.write("sub/b.py", "y = 2\n")
        monkeypatch.chdir(project.root / "sub")
        result = _invoke("run", "--files", "b.py", "--color", "never")
        assert result.exit_code == 0
        assert Path.cwd() == project.root / "sub"

    def test_invalid_config(self, project):
        project.write(".pre-commit-config.yaml", INVALID_CONFIG)
        project.add()
        result = _invoke("run")
        assert result.exit_code == 1
        assert "Invalid remote repo: missing field `rev`" in result.output

    @requires_git
    def test_outside_repository(self, tmp_path, monkeypatch):
        outside = tmp_path / "outside"
        outside.mkdir()
        monkeypatch.chdir(outside)
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
        result = _invoke("run")
        assert result.exit_code == 1
        assert "Not a git repository" in result.output

    def test_explicit_config(self, project):
        project.write("alt.yaml", "repos: []\n")
        project.add()
        result = _invoke("run", "--config", "alt.yaml", "--all-files")
        assert result.exit_code == 0


# ── install / uninstall ───────────────────────────────────────────────


class TestInstall:
    def test_installs_executable_script(self, repo):
        result = _invoke("install")
        hook = repo.root / ".git" / "hooks" / "pre-commit"
        assert result.exit_code == 0
        assert MARKER in hook.read_text()
        assert hook.stat().st_mode & stat.S_IXUSR

    def test_script_is_valid_shell(self, tmp_path):
        for stage in (Stage.PRE_COMMIT, Stage.PRE_PUSH, Stage.COMMIT_MSG):
            path = tmp_path / stage.value
            path.write_text(hook_script(stage))
            assert subprocess.run(["sh", "-n", str(path)]).returncode == 0

    def test_hook_types(self, repo):
        result = _invoke("install", "-t", "pre-push", "-t", "commit-msg")
        assert result.exit_code == 0
        hooks = repo.root / ".git" / "hooks"
        assert "--hook-stage pre-push" in (hooks / "pre-push").read_text()
        assert 'HOOK_TYPE=commit-msg' in (hooks / "commit-msg").read_text()
        assert not (hooks / "pre-commit").exists()

    def test_manual_is_not_a_hook_type(self, repo):
        result = _invoke("install", "-t", "manual")
        assert result.exit_code == 1

    def test_foreign_script_needs_overwrite(self, repo):
        hook = repo.write(".git/hooks/pre-commit", "#!/bin/sh\nexit 0\n")
        result = _invoke("install")
        assert result.exit_code == 1
        assert "--overwrite" in result.output
        assert MARKER not in hook.read_text()

        result = _invoke("install", "--overwrite")
        assert result.exit_code == 0
        assert MARKER in hook.read_text()

    def test_reinstall_is_allowed(self, repo):
        assert _invoke("install").exit_code == 0
        assert _invoke("install").exit_code == 0

    def test_uninstall_removes_only_ours(self, repo):
        _invoke("install")
        foreign = repo.write(".git/hooks/pre-push", "#!/bin/sh\nexit 0\n")
        result = _invoke("uninstall", "-t", "pre-commit", "-t", "pre-push")
        assert result.exit_code == 0
        assert not (repo.root / ".git" / "hooks" / "pre-commit").exists()
        assert foreign.exists()
        assert "not written by hookrunner" in result.output


# ── cache ─────────────────────────────────────────────────────────────


class TestCache:
    def test_info_when_empty(self, isolated_env):
        result = _invoke("cache-info")
        assert result.exit_code == 0
        assert "(empty)" in result.output

    def test_info_lists_entries(self, isolated_env):
        store = Store(isolated_env)
        env = store.env_dir("python", "f" * 64)
        env.mkdir()
        store.record("env", "f" * 64, env, language="python", repo="local")
        store.close()
        result = _invoke("cache-info")
        assert result.exit_code == 0
        assert "Environments: 1" in result.output
        assert "python" in result.output
        assert "local" in result.output

    def test_clean(self, isolated_env):
        Store(isolated_env).close()
        result = _invoke("clean")
        assert result.exit_code == 0
        assert "Cleaned" in result.output
        assert not os.path.exists(isolated_env)
