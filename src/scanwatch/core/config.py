"""Layered configuration for scanwatch.

Loads and merges configuration from:
1. Default settings (built-in)
2. Project config (scanwatch.yaml in the working directory)
3. Environment (PORT / API_PORT, SCANWATCH_STORE)
4. CLI parameters (override)
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "scanwatch.yaml"

DEFAULT_CONFIG: dict = {
    "server": {
        "host": "0.0.0.0",
        "port": 3000,
    },
    "scan": {
        "window_seconds": 15,
        "debounce_seconds": 3,
        "claim_seconds": None,
        "max_sightings": 10000,
    },
    "agents": {
        "active_within_seconds": 30,
    },
    "store": {
        "path": "scanwatch-db.yaml",
    },
    "client": {
        "base_url": "http://localhost:3000/api",
        "poll_interval_seconds": 2,
        "timeout_seconds": 30,
    },
    "logging": {
        "level": "INFO",
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_project_config(project_path: Path) -> dict:
    """Load project configuration from scanwatch.yaml."""
    config_path = project_path / CONFIG_FILENAME
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable %s: %s", config_path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: top level is not a mapping", config_path)
        return {}
    return data


def env_overrides(environ: Optional[dict] = None) -> dict:
    """Collect overrides from environment variables."""
    env = os.environ if environ is None else environ
    overrides: dict = {}

    port = env.get("PORT") or env.get("API_PORT")
    if port:
        try:
            overrides.setdefault("server", {})["port"] = int(port)
        except ValueError:
            logger.warning("Ignoring non-numeric port %r", port)

    store_path = env.get("SCANWATCH_STORE")
    if store_path:
        overrides.setdefault("store", {})["path"] = store_path

    return overrides


def get_effective_config(
    project_path: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
    environ: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    project_config = load_project_config(project_path or Path.cwd())
    if project_config:
        config = deep_merge(config, project_config)

    from_env = env_overrides(environ)
    if from_env:
        config = deep_merge(config, from_env)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    return config
