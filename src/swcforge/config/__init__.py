"""
swcforge.config - Configuration loading and defaults.

Configuration lives in a ``.swcforge.toml`` file found by walking up
from the working directory. User values are deep-merged over
DEFAULT_CONFIG, then ``SWCFORGE_<SECTION>_<KEY>`` environment variables
override individual keys.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit import TOMLDocument

from swcforge.config.defaults import CONFIG_FILE_NAME, DEFAULT_CONFIG

ENV_PREFIX = "SWCFORGE_"


def parse_toml_document(content: str) -> TOMLDocument:
    """Parse TOML text, preserving formatting for round-trip edits."""
    return tomlkit.parse(content)


def find_config_file(start: Path | None = None) -> Path | None:
    """Find the nearest config file, searching upward from ``start``.

    Args:
        start: Directory to start from (default: current directory).

    Returns:
        Path to the config file, or None if none exists up to the root.
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested tables are merged key by key; any other value in ``override``
    replaces the one in ``base``.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(value: str) -> Any:
    """Parse an environment value into a typed value where possible.

    JSON arrays and objects are decoded, "true"/"false" become booleans
    and integers become ints. Anything else, including malformed JSON,
    is returned unchanged.
    """
    stripped = value.strip()
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    if stripped.lower() == "true":
        return True
    if stripped.lower() == "false":
        return False
    try:
        return int(stripped)
    except ValueError:
        return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``SWCFORGE_<SECTION>_<KEY>`` environment overrides in place.

    The first underscore-separated part after the prefix names the
    section; the rest (lowercased) is the key, so
    ``SWCFORGE_EXTRACTION_MIN_LINE_LENGTH=20`` sets
    ``config["extraction"]["min_line_length"] = 20``.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        parts = name[len(ENV_PREFIX):].lower().split("_", 1)
        if len(parts) != 2 or not all(parts):
            continue
        section, key = parts
        table = config.setdefault(section, {})
        if isinstance(table, dict):
            table[key] = _try_parse_env_value(raw)
    return config


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration merged over the defaults.

    Args:
        config_path: Explicit config file. If None, ``find_config_file``
            is used; with no file at all the defaults are returned.

    Returns:
        Plain configuration dictionary.

    Raises:
        FileNotFoundError: If an explicit config_path does not exist.
    """
    if config_path is None:
        config_path = find_config_file()
    user_config: dict[str, Any] = {}
    if config_path is not None:
        if not config_path.is_file():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        document = parse_toml_document(config_path.read_text(encoding="utf-8"))
        user_config = document.unwrap()
    config = merge_configs(DEFAULT_CONFIG, user_config)
    return _apply_env_overrides(config)


__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_CONFIG",
    "find_config_file",
    "load_config",
    "merge_configs",
    "parse_toml_document",
]
