"""
Configuration loader — reads protobuild.yml into the BuildConfig model.

This is the primary entry point for loading generation settings.
It reads YAML, validates against Pydantic schemas, and returns a
typed config. Every failure surfaces as ConfigurationError.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from protobuild.core.errors import ConfigurationError
from protobuild.core.models.config import BuildConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "protobuild.yml"


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for protobuild.yml starting from the given directory, walking up.

    This allows running from a subdirectory and still finding the
    project root.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to protobuild.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> BuildConfig:
    """Load and validate the build configuration.

    Args:
        path: Explicit path to protobuild.yml. If None, searches upward.

    Returns:
        Validated BuildConfig model.

    Raises:
        ConfigurationError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigurationError(
            f"No {CONFIG_FILE} found.",
            "Create one next to your .proto files, pass --config, "
            "or list the inputs on the command line.",
        )

    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    logger.debug("Loading build config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "protobuild" key or be flat
    if "protobuild" in data:
        config_data = data["protobuild"] or {}
        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Expected a mapping under 'protobuild' in {path}")
        if "version" in data and "version" not in config_data:
            config_data["version"] = data["version"]
    else:
        config_data = data

    try:
        config = BuildConfig.model_validate(config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

    logger.info(
        "Loaded config '%s' with %d input(s)", config.name or path.parent.name, len(config.inputs)
    )
    return config


def project_root(config_path: Path) -> Path:
    """Get the project root directory from a config file path."""
    return config_path.parent.resolve()
