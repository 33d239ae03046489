"""Tests for specport.config: directories, atomic writes, settings precedence."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from specport.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    load_settings,
    resolve_settings,
    save_settings,
    settings_path,
)
from specport.exceptions import ConfigError
from specport.models import ImportSettings


# ---------------------------------------------------------------------------
# Directory layout
# ---------------------------------------------------------------------------


class TestDirectories:
    def test_xdg_config_home(self, isolated_config: Path) -> None:
        result = get_config_dir()
        assert result == isolated_config / "config" / "specport"
        assert result.is_dir()

    def test_xdg_data_home(self, isolated_config: Path) -> None:
        result = get_data_dir()
        assert result == isolated_config / "data" / "specport"
        assert result.is_dir()

    def test_xdg_defaults_under_home(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("specport.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".config" / "specport"
        assert get_data_dir() == tmp_path / ".local" / "share" / "specport"

    def test_non_xdg_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("specport.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".specport"
        assert get_data_dir() == tmp_path / ".specport" / "logs"

    def test_settings_path(self, isolated_config: Path) -> None:
        assert settings_path() == isolated_config / "config" / "specport" / "config.json"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_and_replaces(self, tmp_path: Path) -> None:
        target = tmp_path / "settings.json"
        target.write_text("old", encoding="utf-8")

        _atomic_write(target, "new é")

        assert target.read_text(encoding="utf-8") == "new é"
        assert list(tmp_path.iterdir()) == [target]

    def test_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "settings.json"
        _atomic_write(target, "{}")
        assert target.read_text(encoding="utf-8") == "{}"

    def test_failure_leaves_no_temp_file(self, tmp_path: Path) -> None:
        target = tmp_path / "settings.json"
        with patch("specport.config.os.fsync", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                _atomic_write(target, "{}")

        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Settings file
# ---------------------------------------------------------------------------


class TestSettingsFile:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        settings = load_settings()
        assert settings == ImportSettings()
        assert settings.body_max_depth == 10
        assert settings.parameter_max_depth == 5

    def test_save_and_load(self, isolated_config: Path) -> None:
        save_settings(ImportSettings(body_max_depth=4, verify_ssl=False))

        loaded = load_settings()

        assert loaded.body_max_depth == 4
        assert loaded.verify_ssl is False
        assert json.loads(settings_path().read_text(encoding="utf-8"))["body_max_depth"] == 4

    def test_invalid_json(self, isolated_config: Path) -> None:
        path = settings_path()
        path.write_text("{broken", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid settings at"):
            load_settings()

    def test_invalid_values(self, isolated_config: Path) -> None:
        settings_path().write_text(json.dumps({"body_max_depth": -1}), encoding="utf-8")

        with pytest.raises(ConfigError):
            load_settings()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveSettings:
    def test_defaults(self, isolated_config: Path) -> None:
        assert resolve_settings() == ImportSettings()

    def test_file_over_defaults(self, isolated_config: Path) -> None:
        save_settings(ImportSettings(fetch_timeout=15))
        assert resolve_settings().fetch_timeout == 15

    def test_env_over_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_settings(ImportSettings(fetch_timeout=15, parameter_max_depth=2))
        monkeypatch.setenv("SPECPORT_TIMEOUT", "45")
        monkeypatch.setenv("SPECPORT_VERIFY_SSL", "false")

        settings = resolve_settings()

        assert settings.fetch_timeout == 45
        assert settings.verify_ssl is False
        assert settings.parameter_max_depth == 2

    def test_cli_over_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPECPORT_TIMEOUT", "45")
        assert resolve_settings(cli_timeout=3).fetch_timeout == 3

    def test_blank_env_ignored(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECPORT_BODY_MAX_DEPTH", "  ")
        assert resolve_settings().body_max_depth == 10

    def test_invalid_env_names_variable(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECPORT_BODY_MAX_DEPTH", "deep")

        with pytest.raises(ConfigError, match="SPECPORT_BODY_MAX_DEPTH"):
            resolve_settings()

    def test_invalid_cli_timeout(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid settings"):
            resolve_settings(cli_timeout=0)
