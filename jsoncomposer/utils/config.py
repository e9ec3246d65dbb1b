"""
Configuration loading for jsoncomposer.

Loads configuration from YAML files in the cfg/ directory and fills in
defaults for anything a file leaves out.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
import yaml

from jsoncomposer.utils.constants import (
    CFG_DIR,
    DEFAULT_ATTRIBUTE_WEIGHT,
    DEFAULT_ENABLE_PARALLEL,
    DEFAULT_HOST,
    DEFAULT_MAX_WORKERS,
    DEFAULT_NAME_WEIGHT,
    DEFAULT_PORT,
    DEFAULT_SIMILARITY_THRESHOLD,
)

# Load environment variables from .env file
load_dotenv()


def default_config() -> Dict[str, Any]:
    """Built-in configuration, same layout as cfg/compose.yml."""
    return {
        "composition": {
            "similarity_threshold": DEFAULT_SIMILARITY_THRESHOLD,
            "name_weight": DEFAULT_NAME_WEIGHT,
            "attribute_weight": DEFAULT_ATTRIBUTE_WEIGHT,
        },
        "discovery": {
            "enable_parallel": DEFAULT_ENABLE_PARALLEL,
            "max_workers": DEFAULT_MAX_WORKERS,
        },
        "server": {
            "host": DEFAULT_HOST,
            "port": DEFAULT_PORT,
        },
    }


def resolve_config_path(config_path: str) -> Path:
    """
    Resolve a config name or path.

    'compose' resolves to <cfg dir>/compose.yml; anything ending in
    .yml/.yaml is used as given. The cfg dir can be moved with the
    JSONCOMPOSER_CFG_DIR environment variable.
    """
    if config_path.endswith(('.yml', '.yaml')):
        return Path(config_path)
    cfg_dir = os.getenv("JSONCOMPOSER_CFG_DIR", CFG_DIR)
    return Path(cfg_dir) / f"{config_path}.yml"


def load_config_from_file(config_path: str = "compose") -> Dict[str, Any]:
    """
    Load configuration from a YAML file, merged over the defaults.

    Args:
        config_path: Config name (e.g., 'compose') or path to a .yml file

    Returns:
        Dictionary with 'composition', 'discovery' and 'server' sections

    Raises:
        FileNotFoundError: The file does not exist
        ValueError: The file is not valid YAML or not a mapping
    """
    config_file = resolve_config_path(config_path)

    try:
        with open(config_file, "r") as f:
            file_config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Config file not found: {config_file}")
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing config file {config_file}: {e}")

    if not isinstance(file_config, dict):
        raise ValueError(f"Config file {config_file} must contain a mapping")

    return merge_config(default_config(), file_config)


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge override into base one level deep (sections are merged key by key).

    An empty section ('composition:' with no body) keeps the base section.

    Raises:
        ValueError: A section that is a mapping in base is overridden by a non-mapping
    """
    merged = {**base}
    for section, values in override.items():
        if isinstance(merged.get(section), dict):
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ValueError(f"Config section '{section}' must be a mapping, got {type(values).__name__}")
            merged[section] = {**merged[section], **values}
        else:
            merged[section] = values
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load a config file if given, otherwise the built-in defaults."""
    if config_path is None:
        return default_config()
    return load_config_from_file(config_path)
