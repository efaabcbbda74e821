"""
Reading the harness configuration file.

The file is plain TOML: an optional ``[harness]`` table plus
``[[containers]]`` and ``[[testers]]`` arrays of tables.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List

from ..validation import ErrorSeverity, ValidationError, handle_config_error

logger = logging.getLogger(__name__)


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Parse a TOML file into a dictionary.

    Args:
        file_path: File to read
        description: Used in log and error messages

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the file is not valid TOML
    """
    if not file_path.is_file():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    logger.info(f"Reading {description} {file_path}")
    with open(file_path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            handle_config_error(
                error=e,
                context=f"parsing {file_path}",
                severity=ErrorSeverity.CRITICAL,
                reraise=False,
                logger=logger
            )
            raise ValidationError(f"{file_path} is not valid TOML: {e}", value=str(file_path)) from e


def load_harness_file(config_path: Path) -> Dict[str, Any]:
    return load_toml_file(config_path, "harness configuration file")


def get_process_tables(config_data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """
    Extract an array of tables (``[[containers]]`` or ``[[testers]]``).

    Raises:
        TypeError: If the key holds something other than a list of tables
    """
    tables = config_data.get(key, [])
    if not isinstance(tables, list) or not all(isinstance(t, dict) for t in tables):
        raise TypeError(f"'{key}' must be an array of tables, e.g. [[{key}]]")
    return tables
