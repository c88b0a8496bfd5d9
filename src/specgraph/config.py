"""Configuration management with XDG paths and precedence resolution.

This module handles all persistent configuration for specgraph:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.specgraph/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Config files** -- JSON or YAML documents deserialised into a
  :class:`~specgraph.models.GeneratorConfig`: the user file
  (``<config_dir>/config.json``), the project file (``./specgraph.json``,
  ``./specgraph.yaml`` or ``./specgraph.yml``) and any explicit file passed
  with ``--config``.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, the project file and the user file into the
  final effective configuration.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from specgraph.exceptions import ConfigError
from specgraph.models import GeneratorConfig

_APP_NAME = "specgraph"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAMES = ("specgraph.json", "specgraph.yaml", "specgraph.yml")

ENV_INPUT = "SPECGRAPH_INPUT"
ENV_DATE_TYPE = "SPECGRAPH_DATE_TYPE"
ENV_CONFIG = "SPECGRAPH_CONFIG"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/specgraph/`` (default ``~/.config/specgraph/``).
    On macOS/Windows: ``~/.specgraph/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/specgraph/`` (default ``~/.local/share/specgraph/``).
    On macOS/Windows: ``~/.specgraph/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Config files ---


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a JSON or YAML config file into a plain dict.

    The format follows the file extension; ``.yaml``/``.yml`` files are
    read with ``yaml.safe_load``, anything else as JSON.

    Raises:
        ConfigError: If the file is missing, unreadable, malformed, or does
            not hold a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a mapping, got {type(data).__name__}")
    return data


def load_user_config() -> dict[str, Any]:
    """Load ``<config_dir>/config.json``; an absent file yields ``{}``."""
    path = get_config_dir() / _CONFIG_FILENAME
    if not path.is_file():
        return {}
    return load_config_file(path)


def load_project_config() -> Optional[dict[str, Any]]:
    """Load the first project config file found in the working directory.

    Returns:
        The parsed mapping, or ``None`` if no project file exists.
    """
    for name in _PROJECT_CONFIG_FILENAMES:
        path = Path.cwd() / name
        if path.is_file():
            return load_config_file(path)
    return None


# --- Precedence resolution ---


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* onto *base* (``options`` merge key by key)."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def resolve_config(
    cli_input: Optional[str] = None,
    cli_config: Optional[str] = None,
    cli_date_type: Optional[str] = None,
) -> GeneratorConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_input``, ``cli_date_type``, and the file named
           by ``cli_config``)
        2. Environment variables (``SPECGRAPH_INPUT``,
           ``SPECGRAPH_DATE_TYPE``; ``SPECGRAPH_CONFIG`` names a file)
        3. Project config (``./specgraph.json`` / ``./specgraph.yaml``)
        4. User config (``~/.config/specgraph/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any config file is invalid or the merged result
            fails validation.
    """
    # 5 + 4. Defaults and user config
    data = load_user_config()

    # 3. Project-local config
    project = load_project_config()
    if project is not None:
        data = _merge(data, project)

    # 2. Environment
    env_config = os.environ.get(ENV_CONFIG)
    if env_config and cli_config is None:
        data = _merge(data, load_config_file(Path(env_config).expanduser()))
    env_input = os.environ.get(ENV_INPUT)
    if env_input:
        data["input"] = env_input
    env_date_type = os.environ.get(ENV_DATE_TYPE)
    if env_date_type:
        data = _merge(data, {"options": {"dateType": env_date_type}})

    # 1. CLI flags (highest precedence)
    if cli_config is not None:
        data = _merge(data, load_config_file(Path(cli_config).expanduser()))
    if cli_input is not None:
        data["input"] = cli_input
    if cli_date_type is not None:
        data = _merge(data, {"options": {"dateType": cli_date_type}})

    try:
        return GeneratorConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
