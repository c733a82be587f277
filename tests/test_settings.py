"""Tests for hookrunner's own settings loading."""

from pathlib import Path

import pytest

from hookrunner.config import HookRunnerSettings, load_settings
from hookrunner.exceptions import SettingsError


class TestHookRunnerSettings:
    """Test settings defaults and validation."""

    def test_defaults(self):
        settings = HookRunnerSettings()
        assert settings.config_file == ".pre-commit-config.yaml"
        assert settings.color == "auto"
        assert settings.install_workers == 4
        assert settings.max_arg_length is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"color": "sometimes"},
            {"verbosity": "loud"},
            {"install_workers": 0},
            {"max_arg_length": 10},
            {"config_file": ""},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            HookRunnerSettings(**kwargs)

    def test_frozen(self):
        settings = HookRunnerSettings()
        with pytest.raises(AttributeError):
            settings.color = "never"  # type: ignore[misc]


class TestCachePath:
    def test_hookrunner_home_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOOKRUNNER_HOME", str(tmp_path / "home-cache"))
        settings = HookRunnerSettings(cache_dir=str(tmp_path / "configured"))
        assert settings.cache_path == tmp_path / "home-cache"

    def test_configured_dir(self, tmp_path, monkeypatch):
        monkeypatch.delenv("HOOKRUNNER_HOME")
        settings = HookRunnerSettings(cache_dir=str(tmp_path / "configured"))
        assert settings.cache_path == tmp_path / "configured"

    def test_xdg_cache_home(self, tmp_path, monkeypatch):
        monkeypatch.delenv("HOOKRUNNER_HOME")
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg"))
        assert HookRunnerSettings().cache_path == tmp_path / "xdg" / "hookrunner"

    def test_home_fallback(self, monkeypatch):
        monkeypatch.delenv("HOOKRUNNER_HOME")
        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        assert HookRunnerSettings().cache_path == Path.home() / ".cache" / "hookrunner"


class TestLoadSettings:
    """Test source merging in priority order."""

    @pytest.fixture(autouse=True)
    def _cwd(self, tmp_path, monkeypatch):
        work = tmp_path / "work"
        work.mkdir()
        monkeypatch.chdir(work)
        return work

    def test_no_sources_gives_defaults(self):
        assert load_settings() == HookRunnerSettings()

    def test_global_file(self):
        (Path.home() / ".hookrunner.toml").write_text('[hookrunner]\ncolor = "never"\n')
        assert load_settings().color == "never"

    def test_project_file_overrides_global(self):
        (Path.home() / ".hookrunner.toml").write_text('color = "never"\ninstall_workers = 2\n')
        Path("hookrunner.toml").write_text('[hookrunner]\ncolor = "always"\n')
        settings = load_settings()
        assert settings.color == "always"
        assert settings.install_workers == 2

    def test_explicit_file(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text("install_workers = 8\n")
        assert load_settings(config_file=path).install_workers == 8

    def test_explicit_file_missing(self, tmp_path):
        with pytest.raises(SettingsError, match="not found"):
            load_settings(config_file=tmp_path / "missing.toml")

    def test_env_overrides_files(self, monkeypatch):
        Path("hookrunner.toml").write_text("install_workers = 2\n")
        monkeypatch.setenv("HOOKRUNNER_INSTALL_WORKERS", "6")
        monkeypatch.setenv("HOOKRUNNER_MAX_ARG_LENGTH", "4096")
        settings = load_settings()
        assert settings.install_workers == 6
        assert settings.max_arg_length == 4096

    def test_overrides_win_and_none_is_ignored(self, monkeypatch):
        monkeypatch.setenv("HOOKRUNNER_COLOR", "never")
        settings = load_settings(color="always", log_file=None)
        assert settings.color == "always"
        assert settings.log_file is None

    def test_verbose_and_quiet_flags(self):
        assert load_settings(verbose=True).verbosity == "verbose"
        assert load_settings(quiet=True).verbosity == "quiet"

    def test_bad_env_int(self, monkeypatch):
        monkeypatch.setenv("HOOKRUNNER_INSTALL_WORKERS", "many")
        with pytest.raises(SettingsError, match="HOOKRUNNER_INSTALL_WORKERS"):
            load_settings()

    def test_bad_env_choice(self, monkeypatch):
        monkeypatch.setenv("HOOKRUNNER_COLOR", "sometimes")
        with pytest.raises(SettingsError, match="Invalid settings"):
            load_settings()

    def test_invalid_toml(self):
        Path("hookrunner.toml").write_text("color = \n")
        with pytest.raises(SettingsError, match="Invalid settings file"):
            load_settings()

    def test_unknown_key(self):
        Path("hookrunner.toml").write_text("colour = 'never'\n")
        with pytest.raises(SettingsError):
            load_settings()
