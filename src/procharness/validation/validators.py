"""
Validation functions for harness settings and process specifications.

Single-value validators raise ValidationError immediately. The process spec
validator collects every problem first and raises one ConfigurationError,
so no process is ever started from a partially valid configuration.
"""

import logging
import shlex
from typing import Any, Dict, List, Optional, Tuple, Union

from ..models.specs import ContainerSpec, TesterSpec
from .exceptions import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if isinstance(value, float) and value != int_value:
        raise ValidationError(
            f"{field_name} must be a whole number, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_optional_milliseconds(value: Any, field_name: str) -> Optional[int]:
    """
    Validate an optional duration in milliseconds.

    None and the empty string mean "not configured". Numeric strings are
    accepted, since durations are often passed through the environment.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, str):
        value = value.strip()
    return validate_positive_integer(value, min_value=0, field_name=field_name)


def validate_command(value: Any, field_name: str = "command") -> Union[str, List[str]]:
    """
    Validate a process command given as a string or an argument list.

    Raises:
        ValidationError: If the command is missing, empty or malformed
    """
    if isinstance(value, str):
        if not value.strip():
            raise ValidationError(f"{field_name} not specified", field_name=field_name, value=value)
        try:
            shlex.split(value)
        except ValueError as e:
            raise ValidationError(f"{field_name} cannot be parsed: {e}",
                                  field_name=field_name, value=value)
        return value
    if isinstance(value, (list, tuple)):
        if not value or not all(isinstance(arg, str) for arg in value):
            raise ValidationError(
                f"{field_name} must be a non-empty list of strings",
                field_name=field_name,
                value=value
            )
        return list(value)
    raise ValidationError(f"{field_name} not specified", field_name=field_name, value=value)


def validate_environment(value: Any, field_name: str = "environment") -> Dict[str, str]:
    """Validate per-process environment overrides."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{field_name} must be a table of strings",
                              field_name=field_name, value=value)
    return {str(key): str(val) for key, val in value.items()}


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _check(problems: List[str], check, *args, **kwargs):
    """Run a validator, turning a ValidationError into a recorded problem."""
    try:
        return check(*args, **kwargs)
    except ValidationError as e:
        logger.error(str(e))
        problems.append(str(e))
        return None


def _validate_common(
    raw: Dict[str, Any], group: str, seen_ids: set, problems: List[str]
) -> Dict[str, Any]:
    process_id = _text(raw.get("id")).strip()
    if not process_id:
        message = f"{group} id not specified"
        logger.error(message)
        problems.append(message)
    elif process_id in seen_ids:
        message = f"There is more than one {group} with id '{process_id}'"
        logger.error(message)
        problems.append(message)
    else:
        seen_ids.add(process_id)

    name = process_id or "<unnamed>"
    command = _check(problems, validate_command, raw.get("command"),
                     field_name=f"{group} '{name}' command")

    working_dir = _text(raw.get("working_dir")).strip()
    if not working_dir:
        message = f"{group} '{name}' working_dir not specified"
        logger.error(message)
        problems.append(message)

    environment = _check(problems, validate_environment, raw.get("environment"),
                         field_name=f"{group} '{name}' environment")

    return {
        "id": process_id,
        "command": command,
        "working_dir": working_dir,
        "environment": environment or {},
    }


def validate_process_specs(
    containers: List[Dict[str, Any]],
    testers: List[Dict[str, Any]],
) -> Tuple[List[ContainerSpec], List[TesterSpec]]:
    """
    Validate raw container and tester tables and build immutable specs.

    Every problem is logged and counted; if any were found a single
    ConfigurationError listing them all is raised.

    Args:
        containers: Raw container tables in start order
        testers: Raw tester tables in run order

    Returns:
        Tuple of (container specs, tester specs)

    Raises:
        ConfigurationError: If at least one problem was found
    """
    problems: List[str] = []
    container_specs: List[ContainerSpec] = []
    tester_specs: List[TesterSpec] = []

    if containers:
        seen: set = set()
        for raw in containers:
            common = _validate_common(raw, "container process", seen, problems)
            container_specs.append(ContainerSpec(
                start_watch=_text(raw.get("start_watch")),
                failure_watch=_text(raw.get("failure_watch")),
                **common,
            ))
    else:
        message = "No container processes were specified"
        logger.error(message)
        problems.append(message)

    if testers:
        seen = set()
        for raw in testers:
            common = _validate_common(raw, "test process", seen, problems)
            name = common["id"] or "<unnamed>"
            startup_delay = _check(
                problems, validate_optional_milliseconds, raw.get("startup_delay"),
                field_name=f"test process '{name}' startup_delay",
            )
            if raw.get("startup_delay") in (None, ""):
                logger.debug(f"No startup delay specified for test process '{name}'")
            completion_timeout = _check(
                problems, validate_optional_milliseconds, raw.get("completion_timeout"),
                field_name=f"test process '{name}' completion_timeout",
            )
            tester_specs.append(TesterSpec(
                startup_delay_ms=startup_delay,
                completion_timeout_ms=completion_timeout,
                watch=_text(raw.get("watch")),
                failure_watch=_text(raw.get("failure_watch")),
                **common,
            ))
    else:
        # Not counted: a run without testers only checks that containers start.
        logger.error("No test processes were specified")

    if problems:
        raise ConfigurationError(problems)

    return container_specs, tester_specs
