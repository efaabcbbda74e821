"""
Configuration management for the procharness package.

This module provides a clean interface for loading, validating, and accessing
the harness configuration from a TOML file.
"""

from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    load_config,
    set_config_path,
)

from .loader import get_process_tables, load_harness_file, load_toml_file
from .validators import validate_app_config, validate_harness_config

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    "load_config",
    # Advanced interface
    "load_toml_file",
    "load_harness_file",
    "get_process_tables",
    "validate_app_config",
    "validate_harness_config",
]
