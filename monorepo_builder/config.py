#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr)  # Progress owns stdout
    ]
)
logger = logging.getLogger("monorepo_builder")

CONFIG_ENV_VAR = "MONOREPO_BUILD_CONFIG"
ENV_PREFIX = "MONOREPO_BUILD_"
CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. MONOREPO_BUILD_CONFIG environment variable
    2. ~/.monorepo-build/ directory
    """
    if CONFIG_ENV_VAR in os.environ:
        path = Path(os.environ[CONFIG_ENV_VAR])
        if path.exists():
            return path

    config_dir = Path.home() / '.monorepo-build'
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def get_default_config():
    """Get default configuration."""
    return {
        "git": {
            "executable": "git",
            "timeout_seconds": None,  # No timeout; long rewrites block the run
            "squelch_filter_branch_warning": True,
        },
        "build": {
            "orphan_branch": "void",
            "rewrite_head_branch": "master",
            "tag_branch_suffix": "_tmpBranch",
            "verify_rewrite": True,
            "push_remote_placeholder": "<monorepo_remote>",
        },
        "logging": {
            "level": "WARNING",
            "format": "%(levelname)s: %(message)s",
        },
    }


def _read_config_file(config_path):
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config():
    """Load configuration from file.

    Raises:
        ConfigError: If the config file exists but cannot be parsed
    """
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            # tomllib.TOMLDecodeError and json.JSONDecodeError are ValueErrors
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        logger.debug(f"Loaded config from {config_path}")
        config = merge_configs(config, file_config)

    config = apply_env_overrides(config)

    return config


def configure_logging(config, verbose=False):
    """Apply the logging section of the config to the root logger."""
    log_config = config.get("logging", {})
    level_name = "DEBUG" if verbose else str(log_config.get("level", "WARNING")).upper()
    level = getattr(logging, level_name, logging.WARNING)

    root = logging.getLogger()
    root.setLevel(level)
    fmt = log_config.get("format")
    if fmt:
        for handler in root.handlers:
            handler.setFormatter(logging.Formatter(fmt))


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: MONOREPO_BUILD_SECTION_KEY
    For example: MONOREPO_BUILD_BUILD_VERIFY_REWRITE=false
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == CONFIG_ENV_VAR:
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                # Path conflict: env var is longer but we found a non-dict value
                break

    return config
