"""
Configuration validation utilities.

This module turns raw TOML tables into validated configuration models.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.config import AppConfig, HarnessConfig
from ..validation import (
    ValidationError,
    validate_optional_milliseconds,
    validate_process_specs,
)

logger = logging.getLogger(__name__)


def validate_harness_config(
    harness_data: Dict[str, Any], base_dir: Optional[Path] = None
) -> HarnessConfig:
    """
    Validate and create a HarnessConfig from the raw `[harness]` table.

    Args:
        harness_data: Raw harness table from TOML
        base_dir: Directory relative log_dir paths are resolved against

    Returns:
        Validated HarnessConfig instance

    Raises:
        ValidationError: If validation fails
    """
    containers_startup_timeout = validate_optional_milliseconds(
        harness_data.get("containers_startup_timeout"),
        field_name="harness.containers_startup_timeout",
    )
    tests_completion_timeout = validate_optional_milliseconds(
        harness_data.get("tests_completion_timeout"),
        field_name="harness.tests_completion_timeout",
    )

    fail_fast = harness_data.get("fail_fast", True)
    if not isinstance(fail_fast, bool):
        raise ValidationError(
            "harness.fail_fast must be a boolean",
            field_name="harness.fail_fast",
            value=fail_fast,
        )

    private_variables = harness_data.get("private_environment_variables", [])
    if isinstance(private_variables, str):
        # Comma separated, as accepted on the command line.
        private_variables = [name.strip() for name in private_variables.split(",") if name.strip()]
    if not isinstance(private_variables, list) or not all(isinstance(n, str) for n in private_variables):
        raise ValidationError(
            "harness.private_environment_variables must be a list of names",
            field_name="harness.private_environment_variables",
            value=private_variables,
        )

    log_dir = harness_data.get("log_dir")
    if log_dir is not None:
        if not isinstance(log_dir, str) or not log_dir.strip():
            raise ValidationError(
                "harness.log_dir must be a non-empty string",
                field_name="harness.log_dir",
                value=log_dir,
            )
        log_dir = Path(log_dir)
        if base_dir is not None and not log_dir.is_absolute():
            log_dir = base_dir / log_dir

    return HarnessConfig(
        containers_startup_timeout_ms=containers_startup_timeout,
        tests_completion_timeout_ms=tests_completion_timeout,
        fail_fast=fail_fast,
        private_environment_variables=private_variables,
        log_dir=log_dir,
    )


def _resolve_working_dirs(tables: List[Dict[str, Any]], base_dir: Path) -> List[Dict[str, Any]]:
    resolved = []
    for table in tables:
        table = dict(table)
        working_dir = table.get("working_dir")
        if isinstance(working_dir, str) and working_dir.strip() and not Path(working_dir).is_absolute():
            table["working_dir"] = str(base_dir / working_dir)
        resolved.append(table)
    return resolved


def validate_app_config(
    config_data: Dict[str, Any],
    containers: List[Dict[str, Any]],
    testers: List[Dict[str, Any]],
    base_dir: Optional[Path] = None,
) -> AppConfig:
    """
    Validate a whole configuration file.

    Relative working directories and log directories are resolved against
    `base_dir`, normally the directory holding the configuration file.

    Raises:
        ValidationError: For a bad harness setting
        ConfigurationError: For problems in the process specs
    """
    harness = validate_harness_config(config_data.get("harness", {}), base_dir)
    if base_dir is not None:
        containers = _resolve_working_dirs(containers, base_dir)
        testers = _resolve_working_dirs(testers, base_dir)
    container_specs, tester_specs = validate_process_specs(containers, testers)
    return AppConfig(harness=harness, containers=container_specs, testers=tester_specs)
