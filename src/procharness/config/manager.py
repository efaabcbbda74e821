"""
Configuration management and singleton pattern.

This module provides the main configuration loading interface, caching the
loaded configuration so it is read and validated only once.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import get_process_tables, load_harness_file
from .validators import validate_app_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Default configuration file, looked up in the current directory. The CLI
# and tests override it with set_config_path().
_CONFIG_FILE_PATH = Path("harness.toml")


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path and drop the cached configuration.
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def load_config(config_path: Path) -> AppConfig:
    """
    Load and validate a harness configuration file without caching it.

    Raises:
        FileNotFoundError: If the file is missing
        ValidationError: If the file is not TOML or a harness setting is invalid
        ConfigurationError: If the process specs contain problems
    """
    config_path = Path(config_path)
    try:
        config_data = load_harness_file(config_path)
        containers = get_process_tables(config_data, "containers")
        testers = get_process_tables(config_data, "testers")
        app_config = validate_app_config(
            config_data, containers, testers, base_dir=config_path.resolve().parent
        )
    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=False,
            logger=logger
        )
        raise
    except TypeError as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.ERROR,
            reraise=False,
            logger=logger
        )
        raise

    logger.info(
        f"Successfully loaded configuration with {len(app_config.containers)} containers "
        f"and {len(app_config.testers)} testers"
    )
    return app_config


def get_config() -> AppConfig:
    """
    Get the application configuration, loading it on first access.
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "containers_count": len(_CONFIG.containers) if _CONFIG else 0,
        "testers_count": len(_CONFIG.testers) if _CONFIG else 0,
    }
