"""Tests for specgraph.config -- XDG paths, config files, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from specgraph.config import (
    get_config_dir,
    get_data_dir,
    load_config_file,
    load_project_config,
    load_user_config,
    resolve_config,
)
from specgraph.exceptions import ConfigError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    """Config and data directories."""

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("specgraph.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "specgraph"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("specgraph.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        assert get_config_dir() == custom / "specgraph"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("specgraph.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".local" / "share" / "specgraph"

    def test_non_xdg_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("specgraph.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".specgraph"
        assert get_data_dir() == tmp_path / ".specgraph" / "logs"


# ---------------------------------------------------------------------------
# Config files
# ---------------------------------------------------------------------------


class TestLoadConfigFile:
    """JSON and YAML config files."""

    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "specgraph.json"
        _write_json(path, {"input": "openapi.yaml", "options": {"dateType": "Date"}})
        assert load_config_file(path) == {"input": "openapi.yaml", "options": {"dateType": "Date"}}

    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "specgraph.yaml"
        path.write_text("input: openapi.yaml\noptions:\n  int64Type: bigint\n", encoding="utf-8")
        assert load_config_file(path) == {"input": "openapi.yaml", "options": {"int64Type": "bigint"}}

    def test_empty_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "specgraph.yml"
        path.write_text("", encoding="utf-8")
        assert load_config_file(path) == {}

    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Config file not found"):
            load_config_file(tmp_path / "nope.json")

    def test_malformed_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config_file(path)

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("a: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config_file(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        _write_json(path, [1, 2])
        with pytest.raises(ConfigError, match="expected a mapping, got list"):
            load_config_file(path)


class TestUserAndProjectConfig:
    """Config discovered from the config dir and the working directory."""

    def test_no_user_config(self, isolated_config: Path) -> None:
        assert load_user_config() == {}

    def test_user_config(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "config" / "specgraph" / "config.json", {"input": "a.yaml"})
        assert load_user_config() == {"input": "a.yaml"}

    def test_no_project_config(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_json_project_file_wins(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "specgraph.json", {"input": "json.yaml"})
        (isolated_config / "specgraph.yaml").write_text("input: yaml.yaml\n", encoding="utf-8")
        assert load_project_config() == {"input": "json.yaml"}


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    """CLI > env > project > user > defaults."""

    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config.input is None
        assert config.options.date_type == "string"
        assert config.options.int64_type == "number"

    def test_project_over_user(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "config" / "specgraph" / "config.json",
            {"input": "user.yaml", "options": {"int64Type": "bigint"}},
        )
        _write_json(isolated_config / "specgraph.json", {"input": "project.yaml", "options": {"dateType": "Date"}})

        config = resolve_config()
        assert config.input == "project.yaml"
        assert config.options.date_type == "Date"
        assert config.options.int64_type == "bigint"

    def test_env_over_project(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(isolated_config / "specgraph.json", {"input": "project.yaml"})
        monkeypatch.setenv("SPECGRAPH_INPUT", "env.yaml")
        monkeypatch.setenv("SPECGRAPH_DATE_TYPE", "Date")

        config = resolve_config()
        assert config.input == "env.yaml"
        assert config.options.date_type == "Date"

    def test_env_config_file(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        extra = isolated_config / "extra.yaml"
        extra.write_text("clientName: PetClient\n", encoding="utf-8")
        monkeypatch.setenv("SPECGRAPH_CONFIG", str(extra))

        assert resolve_config().client_name == "PetClient"

    def test_cli_over_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPECGRAPH_INPUT", "env.yaml")
        monkeypatch.setenv("SPECGRAPH_DATE_TYPE", "Date")

        config = resolve_config(cli_input="cli.yaml", cli_date_type="string")
        assert config.input == "cli.yaml"
        assert config.options.date_type == "string"

    def test_cli_config_replaces_env_config(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        env_file = isolated_config / "env.json"
        cli_file = isolated_config / "cli.json"
        _write_json(env_file, {"output": "env-out"})
        _write_json(cli_file, {"clientName": "Cli"})
        monkeypatch.setenv("SPECGRAPH_CONFIG", str(env_file))

        config = resolve_config(cli_config=str(cli_file))
        assert config.client_name == "Cli"
        assert config.output is None

    def test_invalid_value(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_config(cli_date_type="Timestamp")

    def test_unknown_keys_kept(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "specgraph.json", {"plugins": ["zod"]})
        assert resolve_config().model_extra == {"plugins": ["zod"]}
