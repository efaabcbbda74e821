"""
Validation and error handling for the procharness package.

This module provides input validation, the exception hierarchy of the
harness, and consistent error reporting across the application.
"""

from .exceptions import (
    ConfigurationError,
    ErrorSeverity,
    HarnessExecutionError,
    HarnessFailure,
    SpawnError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

from .validators import (
    validate_command,
    validate_environment,
    validate_optional_milliseconds,
    validate_positive_integer,
    validate_process_specs,
)

__all__ = [
    # Exceptions
    "ConfigurationError",
    "ErrorSeverity",
    "HarnessExecutionError",
    "HarnessFailure",
    "SpawnError",
    "ValidationError",
    # Error handling
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    # Validators
    "validate_command",
    "validate_environment",
    "validate_optional_milliseconds",
    "validate_positive_integer",
    "validate_process_specs",
]
