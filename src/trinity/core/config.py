"""Application configuration management.

Handles loading and validating configuration from multiple sources:
    - CLI overrides (highest priority)
    - Environment variables (MCP_* prefix, plus LOG_FILE)
    - TOML/JSON config file
    - Default values

Key components:
    - AppConfig: Main configuration model
    - load_config(): Config loading with override precedence
    - ConfigLoadResult: Metadata about config source
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from unittest.mock import patch

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_ENV_VAR = "TRINITY_CONFIG"
DEFAULT_GLOB = "**/*.py"
DEFAULT_LOG_NAME = "debug.log"


class ConfigError(RuntimeError):
    """Raised when configuration cannot be loaded or validated."""


class AppConfig(BaseSettings):
    """Server configuration; read-only once the runtime is built."""

    model_config = SettingsConfigDict(
        env_prefix="MCP_",
        extra="ignore",
        populate_by_name=True,
    )

    target: Path | None = Field(
        default=None, description="Folder containing tool files; created if absent."
    )
    glob: str = Field(default=DEFAULT_GLOB, description="Pattern selecting tool files.")
    log_file: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("log_file", "MCP_LOG_FILE", "LOG_FILE"),
        description="JSON-lines log destination. Defaults to <target>/debug.log.",
    )
    log_level: str = Field(default="INFO", description="Log level for trinity output.")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        # Environment variables override config file entries.
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)

    @property
    def target_folder(self) -> Path:
        if self.target is None:
            raise ConfigError(
                "Missing required argument: --target <path>. "
                "Specify the folder containing tool files."
            )
        return self.target


@dataclass
class ConfigLoadResult:
    path: Path | None
    file_loaded: bool
    env_overrides: set[str]
    cli_overrides: set[str]


def _ensure_directory(path: Path, name: str) -> Path:
    """Ensure directory exists, creating if necessary. Raises on failure."""
    expanded = path.expanduser().resolve()
    try:
        expanded.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"Cannot create {name} directory {expanded}: {exc}") from exc
    return expanded


def _resolve_config_path(config_path: Path | None, env_vars: Mapping[str, str]) -> Path | None:
    candidate = config_path or env_vars.get(CONFIG_ENV_VAR)
    return Path(candidate).expanduser() if candidate else None


def _read_config_file(path: Path | None) -> dict[str, Any]:
    if path is None or not path.exists():
        return {}

    raw = path.read_text(encoding="utf-8")
    parser = json.loads if path.suffix.lower() == ".json" else tomllib.loads

    try:
        data = parser(raw)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Syntax error in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config root in {path} must be a mapping.")

    return data


def _detect_env_overrides(env_vars: Mapping[str, str]) -> set[str]:
    prefix = AppConfig.model_config.get("env_prefix", "")
    overrides = {
        field for field in AppConfig.model_fields if f"{prefix}{field}".upper() in env_vars
    }
    if "LOG_FILE" in env_vars:
        overrides.add("log_file")
    return overrides


def load_config(
    config_path: Path | None = None,
    *,
    target: Path | str | None = None,
    glob: str | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[AppConfig, ConfigLoadResult]:
    """Load configuration, resolve the target folder and create it if needed.

    Raises:
        ConfigError: No target was given anywhere, the config file is
            malformed, or the target folder cannot be created.
    """
    env_vars: Mapping[str, str] = os.environ if env is None else {**os.environ, **env}
    resolved_path = _resolve_config_path(config_path, env_vars)
    file_data = _read_config_file(resolved_path)

    context_manager = (
        patch.dict(os.environ, env_vars, clear=False) if env is not None else nullcontext()
    )

    try:
        with context_manager:
            config = AppConfig(**file_data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    cli_overrides: dict[str, Any] = {}
    if target is not None:
        cli_overrides["target"] = Path(target)
    if glob:
        cli_overrides["glob"] = glob
    if cli_overrides:
        config = config.model_copy(update=cli_overrides)

    target_folder = _ensure_directory(config.target_folder, "target")
    log_file = config.log_file or target_folder / DEFAULT_LOG_NAME
    config = config.model_copy(
        update={"target": target_folder, "log_file": log_file.expanduser().resolve()}
    )

    load_result = ConfigLoadResult(
        path=resolved_path,
        file_loaded=resolved_path is not None and resolved_path.exists(),
        env_overrides=_detect_env_overrides(env_vars),
        cli_overrides=set(cli_overrides),
    )
    return config, load_result
