"""
Command-line interface for the procharness integration-test harness.

This module loads a harness configuration, applies command-line overrides,
runs the containers and testers, and maps the verdict to an exit code.
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..config import load_config
from ..orchestration import HarnessRunner, HarnessRunnerConfig
from ..validation import (
    ConfigurationError,
    HarnessExecutionError,
    ValidationError,
    handle_cli_error,
    validate_optional_milliseconds,
)

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_RUN_FAILED = 1
EXIT_CONFIG_ERROR = 2


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="procharness",
        description="Start container processes, then run tester processes against them.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("harness.toml"),
        help="Harness configuration file (default: ./harness.toml).",
    )
    parser.add_argument(
        "--containers-startup-timeout",
        type=str,
        metavar="MS",
        help="Override the shared container startup budget in milliseconds.",
    )
    parser.add_argument(
        "--tests-completion-timeout",
        type=str,
        metavar="MS",
        help="Override the overall tester budget in milliseconds.",
    )
    parser.add_argument(
        "--no-fail-fast",
        action="store_true",
        help="Keep running testers after one of them fails.",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        help="Write console captures and a summary log under this directory.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging, including process environments.",
    )
    return parser


def apply_overrides(harness, args: argparse.Namespace):
    """Return a copy of the harness settings with command-line overrides applied."""
    changes = {}
    if args.containers_startup_timeout is not None:
        changes["containers_startup_timeout_ms"] = validate_optional_milliseconds(
            args.containers_startup_timeout, field_name="--containers-startup-timeout"
        )
    if args.tests_completion_timeout is not None:
        changes["tests_completion_timeout_ms"] = validate_optional_milliseconds(
            args.tests_completion_timeout, field_name="--tests-completion-timeout"
        )
    if args.no_fail_fast:
        changes["fail_fast"] = False
    if args.log_dir is not None:
        changes["log_dir"] = args.log_dir
    return dataclasses.replace(harness, **changes)


def main_cli(argv: Optional[List[str]] = None) -> int:
    """
    Main command-line entry point.

    Returns:
        0 when the run passed, 1 when it failed, 2 on configuration errors
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        app_config = load_config(args.config)
        harness = apply_overrides(app_config.harness, args)
    except ConfigurationError as e:
        for problem in e.problems:
            logger.error(f"  - {problem}")
        handle_cli_error(error=e, context="configuration validation",
                         exit_code=EXIT_CONFIG_ERROR, logger=logger)
    except (FileNotFoundError, TypeError, ValidationError) as e:
        handle_cli_error(error=e, context="configuration loading",
                         exit_code=EXIT_CONFIG_ERROR, logger=logger)

    runner = HarnessRunner(HarnessRunnerConfig(
        containers=app_config.containers,
        testers=app_config.testers,
        harness=harness,
    ))

    try:
        result = runner.run()
    except HarnessExecutionError as e:
        handle_cli_error(error=e, context="harness run", exit_code=EXIT_RUN_FAILED, logger=logger)

    if result.success:
        logger.info("Harness run passed.")
        return EXIT_SUCCESS
    logger.error(f"Harness run failed: {result.message}")
    return EXIT_RUN_FAILED


def main() -> None:
    sys.exit(main_cli())


if __name__ == "__main__":
    main()
