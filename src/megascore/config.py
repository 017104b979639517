"""Configuration management for MEGASCORE."""

import logging
import os
import tomllib

from pathlib import Path
from typing import Any

import tomli_w

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from megascore.analysis.shared.types import AnalysisConfig
from megascore.constants import (
    CONFIG_PATH_ENV_VAR,
    DEFAULT_CONFIG_DIR,
    DEFAULT_CONFIG_FILE,
)

logger = logging.getLogger(__name__)

ANALYSIS_SECTION = "analysis"


def get_config_path() -> Path:
    """
    Get the path to the configuration file.

    Returns:
        $MEGASCORE_CONFIG if set, otherwise ~/.megascore/config.toml
    """
    override = os.environ.get(CONFIG_PATH_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE


def load_config() -> dict[str, Any]:
    """
    Load configuration from TOML file.

    Returns:
        Configuration dictionary. Returns empty dict if file doesn't exist
        or is corrupted.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return {}

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Treating config as empty. Fix or delete the file to resolve.")
        return {}


def save_config(config: dict[str, Any]) -> None:
    """
    Save configuration to TOML file using atomic write.

    Creates the parent directory if it doesn't exist.
    Uses temp file + rename for atomic operation.

    Raises:
        PermissionError: If directory cannot be created or file cannot be written
    """
    config_path = get_config_path()

    config_dir = config_path.parent
    try:
        os.makedirs(config_dir, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(
            f"Cannot create config directory {config_dir}: {e}"
        ) from e

    temp_path = config_path.with_suffix(".toml.tmp")

    try:
        with open(temp_path, "wb") as f:
            tomli_w.dump(config, f)

        os.replace(temp_path, config_path)

    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def _canonical_key(key: str) -> str:
    """Map a camelCase or snake_case parameter name to its field name."""
    for name in AnalysisConfig.model_fields:
        if key in (name, to_camel(name)):
            return name
    raise ValueError(
        f"Unknown analysis parameter: {key}. "
        f"Available: {', '.join(AnalysisConfig.model_fields)}"
    )


def load_analysis_config(overrides: dict[str, Any] | None = None) -> AnalysisConfig:
    """
    Build the analysis parameters from the config file plus overrides.

    Precedence: overrides > [analysis] section > defaults. An invalid
    [analysis] section is logged and ignored.

    Args:
        overrides: Extra key/value pairs (e.g., from the command line)
    """
    section = load_config().get(ANALYSIS_SECTION, {})
    if not isinstance(section, dict):
        logger.warning(f"Ignoring [{ANALYSIS_SECTION}] config: expected a table")
        section = {}

    try:
        base = AnalysisConfig.from_mapping(section)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid [{ANALYSIS_SECTION}] config: {e}")
        base = AnalysisConfig()

    if not overrides:
        return base

    merged = base.model_dump()
    merged.update({_canonical_key(key): value for key, value in overrides.items()})
    return AnalysisConfig.from_mapping(merged)


def set_analysis_value(key: str, value: str | float) -> float:
    """
    Persist one analysis parameter.

    Args:
        key: Parameter name, camelCase or snake_case
        value: New value; strings are parsed as numbers

    Returns:
        The stored value

    Raises:
        ValueError: If the key is unknown or the value is not a valid number
    """
    name = _canonical_key(key)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Value for {key} must be a number, got {value!r}") from None

    config = load_config()
    section = dict(config.get(ANALYSIS_SECTION, {}))
    section[name] = number

    try:
        AnalysisConfig.from_mapping(section)
    except ValidationError as e:
        raise ValueError(f"Invalid value for {key}: {e}") from e

    config[ANALYSIS_SECTION] = section
    save_config(config)
    return number


def reset_analysis_config() -> None:
    """
    Remove all analysis overrides from the config file.

    If the config becomes empty, deletes the config file.
    """
    config = load_config()

    if ANALYSIS_SECTION not in config:
        return

    del config[ANALYSIS_SECTION]

    if not config:
        config_path = get_config_path()
        if config_path.exists():
            config_path.unlink()
    else:
        save_config(config)
