# codesync/core/config/loader.py
"""
Configuration loader for codesync.

Responsibilities:
- Load the packaged default config
- Load the user config (optional) and merge it on top
- Expand ${ENV_VAR} placeholders
- Validate via schema
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from codesync.core.config.schema import CodeSyncConfig
from codesync.core.exceptions import ConfigError, ConfigNotFoundError
from codesync.core.paths import CodeSyncPaths
from codesync.logging.logger import get_logger
from codesync.logging.tags import CLI

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def _deep_merge(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config_dict(path: str | Path) -> dict:
    """Read a YAML file into a dict with ${ENV} placeholders expanded."""
    path = Path(path)
    if not path.exists():
        raise ConfigNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")

    return _expand_env(data)


def load_config(user_config_path: str | Path | None = None) -> CodeSyncConfig:
    """
    Load and validate codesync configuration.

    Precedence:
    - defaults
    - user config (explicit path, else CODESYNC_HOME/config.yaml if present)
    """
    logger.debug(f"{CLI} Loading default config from {DEFAULT_CONFIG_PATH}")
    cfg = load_config_dict(DEFAULT_CONFIG_PATH)

    if user_config_path is None:
        candidate = CodeSyncPaths.config()
        if candidate.exists():
            user_config_path = candidate

    if user_config_path is not None:
        logger.debug(f"{CLI} Loading user config from {user_config_path}")
        cfg = _deep_merge(cfg, load_config_dict(user_config_path))

    try:
        return CodeSyncConfig.model_validate(cfg)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


__all__ = ["DEFAULT_CONFIG_PATH", "load_config", "load_config_dict"]
