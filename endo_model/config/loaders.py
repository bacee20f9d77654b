# endo_model/config/loaders.py
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from cerberus import Validator
from pydantic import ValidationError

from endo_model.config.models import ModelSettings
from endo_model.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Top-level shape of a settings file; field-level checks are left to the
# pydantic models.
SETTINGS_SCHEMA: Dict[str, Any] = {
    "n_cycles": {"type": "integer", "required": False},
    "cycle_length": {"type": "number", "required": False},
    "discount_rate": {"type": "number", "required": False},
    "inflation_rate": {"type": "number", "required": False},
    "base_year": {"type": "integer", "required": False},
    "start_age": {"type": "number", "required": False},
    "use_max_probabilities": {"type": "boolean", "required": False},
    "initial_distribution": {
        "type": "dict",
        "required": False,
        "keysrules": {"type": "string"},
        "valuesrules": {"type": "number"},
    },
    "treatments": {"type": "list", "required": False, "schema": {"type": "string"}},
    "reference_treatment": {"type": "string", "required": False},
    "willingness_to_pay": {"type": "number", "required": False, "nullable": True},
    "engine": {
        "type": "dict",
        "required": False,
        "schema": {
            "effects": {"type": "dict", "required": False},
            "qaly": {"type": "dict", "required": False},
            "costs": {"type": "dict", "required": False},
        },
    },
}


class ConfigLoadError(ConfigurationError):
    """Raised for errors during settings loading."""

    pass


def load_yaml_config(config_path: Path) -> Optional[Dict[str, Any]]:
    """
    Loads configuration data from a YAML file.

    Args:
        config_path: Path object pointing to the YAML configuration file.

    Returns:
        A dictionary containing the loaded configuration.

    Raises:
        ConfigLoadError: If the file cannot be found or parsed.
    """
    if not isinstance(config_path, Path):
        config_path = Path(config_path)

    logger.info(f"Attempting to load configuration from: {config_path}")

    if not config_path.is_file():
        logger.error(f"Configuration file not found at path: {config_path}")
        raise ConfigLoadError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.exception(f"Error parsing YAML configuration file {config_path}: {e}")
        raise ConfigLoadError(f"Error parsing YAML file {config_path}") from e

    if config_data is None:
        config_data = {}
    if not isinstance(config_data, dict):
        logger.error(f"Configuration file {config_path} did not parse into a dictionary.")
        raise ConfigLoadError(
            f"Invalid configuration format in {config_path}: Expected a dictionary."
        )

    logger.info(f"Successfully loaded configuration from {config_path}")
    return config_data


def load_settings(config_path: Optional[Path] = None) -> ModelSettings:
    """
    Load and validate :class:`ModelSettings` from YAML.

    With no path, the default settings are returned.
    """
    if config_path is None:
        logger.info("No settings file provided; using default model settings")
        return ModelSettings()

    config_data = load_yaml_config(config_path)

    v = Validator(SETTINGS_SCHEMA)
    if not v.validate(config_data):
        logger.error(f"Settings validation failed: {v.errors}")
        raise ConfigLoadError(f"Config validation failed: {v.errors}")

    try:
        settings = ModelSettings(**config_data)
    except ValidationError as e:
        logger.error(f"Invalid model settings in {config_path}: {e}")
        raise ConfigLoadError(f"Invalid model settings in {config_path}: {e}") from e

    logger.debug(f"Loaded model settings: {settings.model_dump()}")
    return settings


__all__ = [
    "load_yaml_config",
    "load_settings",
    "ConfigLoadError",
    "SETTINGS_SCHEMA",
]
