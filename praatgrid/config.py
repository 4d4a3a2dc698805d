"""
Configuration management for praatgrid.

This module provides centralized configuration with sensible defaults
that can be overridden by a user config file. The config file is loaded
from (in order of priority):
    1. ./praatgrid.yaml (current directory)
    2. ~/.config/praatgrid/config.yaml
    3. ~/.praatgrid.yaml

A JSON file with the same base name is accepted in each location.
All settings have defaults, so no config file is required.

Usage:
    from praatgrid.config import config

    # Access settings
    extension = config['io']['extension']
    fmt = config['output']['format']
"""

import copy
import json
import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


# =============================================================================
# DEFAULT CONFIGURATION
# =============================================================================

DEFAULTS = {
    # -------------------------------------------------------------------------
    # Input/output settings
    # -------------------------------------------------------------------------
    'io': {
        'encoding': 'utf-8',
        'default_name': 'New TextGrid',  # Name for documents not read from a path
        'extension': 'TextGrid',  # Used when writing into a directory
    },

    # -------------------------------------------------------------------------
    # Output layout
    # -------------------------------------------------------------------------
    'output': {
        'format': 'verbose',  # verbose (long) or compact (short)
    },

    # -------------------------------------------------------------------------
    # Parsing settings
    # -------------------------------------------------------------------------
    'parsing': {
        'warnings': False,  # Report advisory conditions while decoding
    },

    # -------------------------------------------------------------------------
    # Boundary repair defaults
    # -------------------------------------------------------------------------
    'repair': {
        'prefer_first': True,
        'gap_text': '',  # Label for intervals created by gap filling
    },

    # -------------------------------------------------------------------------
    # Tier settings
    # -------------------------------------------------------------------------
    'tiers': {
        'duplicate_suffix': '_{n}',  # Appended to a duplicate tier name
    },
}


# =============================================================================
# CONFIG LOADING
# =============================================================================

def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Values from 'override' take precedence over 'base'.
    Nested dicts are merged recursively.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _find_config_file() -> Path | None:
    """Find the user's config file, if it exists."""
    candidates = [
        Path('./praatgrid.yaml'),
        Path('./praatgrid.json'),
        Path.home() / '.config' / 'praatgrid' / 'config.yaml',
        Path.home() / '.config' / 'praatgrid' / 'config.json',
        Path.home() / '.praatgrid.yaml',
        Path.home() / '.praatgrid.json',
    ]

    for path in candidates:
        if path.exists():
            return path
    return None


def _load_config_file(path: Path) -> dict:
    """Load configuration from a file."""
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix in ('.yaml', '.yml'):
            return yaml.safe_load(f) or {}
        return json.load(f)


def load_config(config_path: Path | str | None = None) -> dict:
    """
    Load configuration with user overrides.

    Args:
        config_path: Optional explicit path to config file. If provided,
                     this file will be loaded instead of searching default locations.

    Returns a dict with all settings, using defaults for any
    values not specified in the user's config file.
    """
    config = copy.deepcopy(DEFAULTS)

    # Use explicit path if provided, otherwise search default locations
    if config_path:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.warning("Config file not found: %s", config_file)
            return config
    else:
        config_file = _find_config_file()

    if config_file:
        try:
            user_config = _load_config_file(config_file)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning("Failed to load config from %s: %s", config_file, e)
        else:
            config = _deep_merge(config, user_config)
            logger.info("Loaded config from: %s", config_file)

    return config


def save_default_config(path: Path | str):
    """
    Save the default configuration to a file.

    Useful for creating a template config file that users can edit.
    """
    path = Path(path)

    with open(path, 'w', encoding='utf-8') as f:
        if path.suffix in ('.yaml', '.yml'):
            yaml.safe_dump(DEFAULTS, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(DEFAULTS, f, indent=2)


# =============================================================================
# GLOBAL CONFIG INSTANCE
# =============================================================================

# Load config on module import
config = load_config()


def reload_config(config_path: Path | str | None = None):
    """
    Reload configuration from file.

    The shared ``config`` dict is updated in place so modules that imported
    it see the new values.
    """
    new_config = load_config(config_path)
    config.clear()
    config.update(new_config)


def load_config_from_path(path: Path | str) -> dict:
    """
    Load configuration from a specific file path.

    Args:
        path: Path to the config file (YAML or JSON)

    Returns:
        Merged config dict with defaults

    Raises:
        FileNotFoundError: If the config file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    base_config = copy.deepcopy(DEFAULTS)
    user_config = _load_config_file(path)
    return _deep_merge(base_config, user_config)
