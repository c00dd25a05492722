"""
Configuration loader — reads ``~/.hudo/config.yml`` into ``HudoConfig``.

A missing file is not an error: every key has a default.  Invalid YAML
or values that fail validation raise ``ConfigError``.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from hudo.core.models.config import HudoConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yml"
ENV_CONFIG = "HUDO_CONFIG"

# Dotted keys accepted by ``hudo config set``
_MAP_SECTIONS = ("versions", "mirrors", "checksums")
_SCALAR_KEYS = (
    "root_dir",
    "probe_timeout",
    "service_timeout",
    "max_probe_workers",
    "max_download_workers",
)


class ConfigError(Exception):
    """Raised when hudo configuration is invalid."""


def config_path() -> Path:
    """Location of the config file (``HUDO_CONFIG`` wins)."""
    override = os.environ.get(ENV_CONFIG)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".hudo" / CONFIG_FILE


def load_config(path: Path | None = None) -> HudoConfig:
    """Load and validate configuration.

    Args:
        path: Explicit config path. Defaults to ``config_path()``.

    Returns:
        Validated HudoConfig (defaults when the file does not exist).

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    path = path or config_path()

    if not path.is_file():
        logger.debug("No config at %s, using defaults", path)
        return HudoConfig()

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = HudoConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded config from %s (root=%s)", path, config.root_dir)
    return config


def save_config(config: HudoConfig, path: Path | None = None) -> Path:
    """Write configuration as YAML (atomic)."""
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json")
    content = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".config_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug("Config saved to %s", path)
    return path


def reset_config(path: Path | None = None) -> bool:
    """Delete the config file so every key reverts to its default.

    Returns:
        False if there was no file to delete.

    Raises:
        ConfigError: The file exists but could not be removed.
    """
    path = path or config_path()
    if not path.is_file():
        return False
    try:
        path.unlink()
    except OSError as e:
        raise ConfigError(f"Cannot remove {path}: {e}") from e
    logger.info("Config reset (removed %s)", path)
    return True


def set_config_value(config: HudoConfig, key: str, value: str) -> HudoConfig:
    """Return a copy of ``config`` with a dotted key set.

    Accepted keys: ``root_dir``, the bounds (``probe_timeout`` ...),
    ``versions.<id>``, ``mirrors.<id>``, ``checksums.<id>``,
    ``settings.<id>.<key>``.
    """
    data = config.model_dump(mode="json")
    _apply(data, key, value)
    return _validate(data)


def unset_config_value(config: HudoConfig, key: str) -> HudoConfig:
    """Return a copy of ``config`` with a dotted key removed."""
    data = config.model_dump(mode="json")
    _apply(data, key, None)
    return _validate(data)


def _apply(data: dict[str, Any], key: str, value: str | None) -> None:
    parts = key.split(".")
    head = parts[0]

    if head in _SCALAR_KEYS and len(parts) == 1:
        if value is None:
            data.pop(head, None)
        else:
            data[head] = value
        return

    if head in _MAP_SECTIONS and len(parts) == 2:
        section = data.setdefault(head, {})
        if value is None:
            section.pop(parts[1], None)
        else:
            section[parts[1]] = value
        return

    if head == "settings" and len(parts) == 3:
        tool_settings = data.setdefault("settings", {}).setdefault(parts[1], {})
        if value is None:
            tool_settings.pop(parts[2], None)
            if not tool_settings:
                data["settings"].pop(parts[1], None)
        else:
            tool_settings[parts[2]] = value
        return

    raise ConfigError(f"Unknown config key: {key}")


def _validate(data: dict[str, Any]) -> HudoConfig:
    try:
        return HudoConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
