"""Configuration loading: defaults < config file < command-line overrides."""

from __future__ import annotations

import json
import logging
from io import StringIO
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML, YAMLError

from storylint.config.models import LinterConfig
from storylint.engine.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (".story-linter.yml", ".story-linter.yaml", ".story-linter.json")


def find_config_file(start: Path) -> Path | None:
    """Search ``start`` and its parents for the first known config file name."""
    current = start.resolve()
    for directory in (current, *current.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a YAML or JSON config file into a plain dict."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if path.suffix == ".json":
        try:
            data = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    elif path.suffix in (".yml", ".yaml"):
        try:
            data = YAML(typ="safe").load(StringIO(text))
        except YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    else:
        raise ConfigError(f"Unsupported config file format: {path}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    config_path: Path | None = None,
    start_dir: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> LinterConfig:
    """Build the run configuration.

    ``config_path`` may name a file or a directory to search from; without it
    the search starts at ``start_dir`` (default: the working directory). A
    relative ``project.root`` is resolved against the config file's directory.
    """
    start = (start_dir or Path.cwd()).resolve()
    source: Path | None = None

    if config_path is not None:
        if config_path.is_dir():
            source = find_config_file(config_path)
        elif config_path.is_file():
            source = config_path.resolve()
        else:
            raise ConfigError(f"Config path not found: {config_path}")
    else:
        source = find_config_file(start)

    data: dict[str, Any] = read_config_file(source) if source else {}
    if overrides:
        data = deep_merge(data, overrides)

    try:
        config = LinterConfig.model_validate(data)
    except ValidationError as e:
        where = f" in {source}" if source else ""
        raise ConfigError(f"Invalid configuration{where}: {e}") from e

    for name, section in (config.model_extra or {}).items():
        if not isinstance(section, dict):
            raise ConfigError(f"Config section '{name}' must be a mapping")

    base_dir = source.parent if source else start
    root = config.project.root
    if not root.is_absolute():
        root = base_dir / root
    config.project.root = root.resolve()
    if not config.project.root.is_dir():
        raise ConfigError(f"Project root is not a directory: {config.project.root}")

    if source:
        logger.info("Loaded configuration from %s", source)
    else:
        logger.debug("No config file found from %s; using defaults", start)
    return config
