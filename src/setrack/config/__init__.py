"""
setrack.config - Configuration loading and defaults

Configuration comes from three layers, later ones winning:

1. ``DEFAULT_CONFIG``
2. ``.setrack.toml`` (found by walking up from the working directory)
3. ``SETRACK_<SECTION>_<KEY>`` environment variables

Example ``.setrack.toml``::

    [storage]
    dir = "data"

    [server]
    host = "0.0.0.0"
    port = 8001
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from setrack.errors import ConfigError

CONFIG_FILENAME = ".setrack.toml"
ENV_PREFIX = "SETRACK_"

DEFAULT_CORS_ORIGINS = r"^https?://(localhost|127\.0\.0\.1|192\.168\.\d+\.\d+)(:\d+)?$"

DEFAULT_CONFIG: dict[str, Any] = {
    "storage": {
        "dir": "data",
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8001,
        "cors_origins": DEFAULT_CORS_ORIGINS,
        "frontend_dist": "frontend/dist",
        "max_content_length": 1024 * 1024,
    },
    "logging": {
        "level": "INFO",
    },
}

# Key under which the loader records the directory relative paths resolve against.
ROOT_KEY = "_root"


def find_config_file(start: Path) -> Path | None:
    """Find ``.setrack.toml`` in ``start`` or any of its parents.

    Args:
        start: Directory to start searching from.

    Returns:
        Path to the config file, or None if there is none.
    """
    current = Path(start).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` onto a copy of ``base``."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(value: str) -> Any:
    """Interpret an environment variable value.

    JSON lists and objects are decoded, ``true``/``false`` become
    booleans and integers become ints. Anything else (including
    malformed JSON) is returned unchanged.
    """
    stripped = value.strip()
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    lowered = stripped.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if stripped.lstrip("-").isdigit():
        return int(stripped)
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``SETRACK_<SECTION>_<KEY>`` variables onto ``config``.

    ``SETRACK_SERVER_FRONTEND_DIST`` sets ``config["server"]["frontend_dist"]``;
    the first segment after the prefix names the section.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        section, _, key = name[len(ENV_PREFIX) :].lower().partition("_")
        if not section or not key:
            continue
        target = config.setdefault(section, {})
        if isinstance(target, dict):
            target[key] = _try_parse_env_value(raw)
    return config


def parse_config_file(config_path: Path) -> dict[str, Any]:
    """Parse a TOML config file into plain Python values.

    Raises:
        ConfigError: If the file cannot be read or is not valid TOML.
    """
    try:
        content = config_path.read_text(encoding="utf-8")
        return tomlkit.parse(content).unwrap()
    except (OSError, TOMLKitError) as e:
        raise ConfigError(f"Cannot load config {config_path}: {e}") from e


def load_config(config_path: Path | None = None, start: Path | None = None) -> dict[str, Any]:
    """Load the effective configuration.

    Args:
        config_path: Explicit config file. When None, ``.setrack.toml`` is
            searched for from ``start`` (default: the working directory).
        start: Directory to start the search from.

    Returns:
        Merged configuration dict. ``config["_root"]`` holds the directory
        that relative paths are resolved against.
    """
    if config_path is None:
        config_path = find_config_file(start or Path.cwd())

    user_config: dict[str, Any] = {}
    if config_path is not None:
        user_config = parse_config_file(Path(config_path))
        root = Path(config_path).resolve().parent
    else:
        root = Path(start or Path.cwd()).resolve()

    config = _apply_env_overrides(merge_configs(DEFAULT_CONFIG, user_config))
    config[ROOT_KEY] = str(root)
    return config


def resolve_config_path(config: dict[str, Any], section: str, key: str) -> Path:
    """Return a path setting, resolved against the config root if relative."""
    value = Path(str(config[section][key])).expanduser()
    if value.is_absolute():
        return value
    return Path(config.get(ROOT_KEY) or Path.cwd()) / value


def get_config(config_path: Path | None = None, data_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration for a CLI command.

    Args:
        config_path: Value of ``--config``, if given.
        data_dir: Value of ``--data-dir``; overrides ``storage.dir``.
    """
    config = load_config(config_path)
    if data_dir is not None:
        config["storage"]["dir"] = str(Path(data_dir).expanduser().resolve())
    return config


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "find_config_file",
    "get_config",
    "load_config",
    "merge_configs",
    "parse_config_file",
    "resolve_config_path",
]
