"""Configuration loading (YAML)."""

import logging
import os

import yaml

from .errors import ArgumentError
from .reader import ON_ERROR_CHOICES

logger = logging.getLogger(__name__)

DEFAULTS = {
    "log_level": "INFO",
    "on_error": "raise",
    "skip_blank_rows": False,
}


def load_config(config_path=None) -> dict:
    """Load configuration from a YAML file, merged over :data:`DEFAULTS`."""
    config = dict(DEFAULTS)
    if config_path and os.path.exists(config_path):
        with open(config_path, "r") as f:
            user_config = yaml.safe_load(f) or {}
        if not isinstance(user_config, dict):
            raise ArgumentError(f"Config file {config_path} must hold a mapping")
        config.update(user_config)
    elif config_path:
        logger.warning(f"Config file not found, using defaults: {config_path}")

    if config["on_error"] not in ON_ERROR_CHOICES:
        raise ArgumentError(
            f"on_error must be one of {ON_ERROR_CHOICES}, got {config['on_error']!r}")
    return config
