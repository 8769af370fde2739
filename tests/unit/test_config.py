"""Tests for core/config.py - source precedence and target resolution."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from trinity.core.config import AppConfig, ConfigError, load_config


def test_missing_target_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Missing required argument: --target"):
        load_config(tmp_path / "absent.toml")


def test_cli_target_is_resolved_and_created(tmp_path: Path) -> None:
    target = tmp_path / "new" / "tools"

    config, meta = load_config(target=target)

    assert config.target == target.resolve()
    assert target.is_dir()
    assert config.glob == "**/*.py"
    assert meta.cli_overrides == {"target"}
    assert meta.file_loaded is False


def test_log_file_defaults_inside_target(tmp_path: Path) -> None:
    config, _ = load_config(target=tmp_path / "tools")

    assert config.log_file == (tmp_path / "tools").resolve() / "debug.log"


def test_env_supplies_target_and_glob(tmp_path: Path) -> None:
    target = tmp_path / "from-env"

    config, meta = load_config(env={"MCP_TARGET": str(target), "MCP_GLOB": "*.py"})

    assert config.target == target.resolve()
    assert config.glob == "*.py"
    assert {"target", "glob"} <= meta.env_overrides


def test_cli_beats_env(tmp_path: Path) -> None:
    config, _ = load_config(
        target=tmp_path / "cli",
        glob="tools/*.py",
        env={"MCP_TARGET": str(tmp_path / "env"), "MCP_GLOB": "*.py"},
    )

    assert config.target == (tmp_path / "cli").resolve()
    assert config.glob == "tools/*.py"


def test_log_file_env_aliases(tmp_path: Path) -> None:
    plain, meta = load_config(target=tmp_path / "t", env={"LOG_FILE": str(tmp_path / "a.log")})
    prefixed, _ = load_config(target=tmp_path / "t", env={"MCP_LOG_FILE": str(tmp_path / "b.log")})

    assert plain.log_file == (tmp_path / "a.log").resolve()
    assert "log_file" in meta.env_overrides
    assert prefixed.log_file == (tmp_path / "b.log").resolve()


def test_toml_file_is_read(tmp_path: Path) -> None:
    config_file = tmp_path / "trinity.toml"
    config_file.write_text(
        f'target = "{(tmp_path / "toml-tools").as_posix()}"\nglob = "**/*_tool.py"\nlog_level = "DEBUG"\n',
        encoding="utf-8",
    )

    config, meta = load_config(config_file)

    assert config.target == (tmp_path / "toml-tools").resolve()
    assert config.glob == "**/*_tool.py"
    assert config.log_level == "DEBUG"
    assert meta.file_loaded is True
    assert meta.path == config_file


def test_json_file_found_through_env(tmp_path: Path) -> None:
    config_file = tmp_path / "trinity.json"
    config_file.write_text(json.dumps({"target": str(tmp_path / "json-tools")}), encoding="utf-8")

    config, meta = load_config(env={"TRINITY_CONFIG": str(config_file)})

    assert config.target == (tmp_path / "json-tools").resolve()
    assert meta.path == config_file


def test_env_beats_file(tmp_path: Path) -> None:
    config_file = tmp_path / "trinity.toml"
    config_file.write_text(
        f'target = "{(tmp_path / "file").as_posix()}"\nglob = "file/*.py"\n', encoding="utf-8"
    )

    config, _ = load_config(config_file, env={"MCP_GLOB": "env/*.py"})

    assert config.glob == "env/*.py"
    assert config.target == (tmp_path / "file").resolve()


def test_malformed_file_is_a_config_error(tmp_path: Path) -> None:
    config_file = tmp_path / "trinity.toml"
    config_file.write_text("target = [unterminated\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Syntax error"):
        load_config(config_file)


def test_non_mapping_json_is_a_config_error(tmp_path: Path) -> None:
    config_file = tmp_path / "trinity.json"
    config_file.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ConfigError, match="must be a mapping"):
        load_config(config_file)


def test_uncreatable_target_is_a_config_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file.txt"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(ConfigError, match="Cannot create target directory"):
        load_config(target=blocker / "tools")


def test_target_folder_property_requires_target() -> None:
    with pytest.raises(ConfigError):
        _ = AppConfig().target_folder
