"""
Exception types and error handling helpers.

This module provides the exception hierarchy used by the harness together
with a small helper for consistent, severity-based error logging.
"""

import logging
import sys
from enum import Enum
from typing import Any, List, NoReturn, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when a single value fails validation.

    This is the base exception type used throughout the validation system.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class ConfigurationError(ValidationError):
    """
    Raised when the process specifications contain one or more problems.

    All problems found are collected before raising so that a single run
    reports every mistake at once.
    """

    def __init__(self, problems: List[str]):
        super().__init__(f"{len(problems)} Configuration error(s) found. Aborting")
        self.problems = list(problems)


class HarnessExecutionError(Exception):
    """Fatal error that aborts a harness run."""


class SpawnError(HarnessExecutionError):
    """Raised when the operating system fails to start a process."""

    def __init__(self, process_id: str, cause: Exception):
        super().__init__(f"Unable to start {process_id} process: {cause}")
        self.process_id = process_id
        self.cause = cause


class HarnessFailure(Exception):
    """
    Aggregated verdict failure of a completed run.

    Carries every labelled process id that was recorded as failed.
    """

    def __init__(self, message: str, failed_processes: List[str]):
        super().__init__(message)
        self.failed_processes = list(failed_processes)


_LOG_LEVELS = {
    ErrorSeverity.DEBUG: logging.DEBUG,
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log an error under a context description, optionally re-raising it.

    Args:
        error: The exception that occurred
        context: What was being done, e.g. "starting TESTER[smoke]"
        severity: ErrorSeverity or its string value
        reraise: Raise `error` again after logging
        logger: Logger to write to (defaults to this module's logger)
    """
    if isinstance(severity, str):
        severity = ErrorSeverity(severity.lower())
    level = _LOG_LEVELS[severity]

    # Tracebacks only for the noisiest and the quietest levels.
    with_traceback = severity in (ErrorSeverity.DEBUG, ErrorSeverity.CRITICAL)
    (logger or globals()["logger"]).log(level, f"Error in {context}: {error}", exc_info=with_traceback)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    handle_error(error, f"config {context}", **kwargs)


def handle_cli_error(
    error: Exception,
    context: str,
    exit_code: int = 1,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    logger: Optional[logging.Logger] = None
) -> NoReturn:
    """Log an error at the command-line boundary and exit with `exit_code`."""
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, logger=logger)
    sys.exit(exit_code)
