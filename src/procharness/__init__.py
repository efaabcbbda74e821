"""
procharness: integration-test harness orchestrator.

Starts long-running container processes, waits until each reports readiness
on its console, then runs short-lived tester processes against them one at a
time. Testers are judged by exit code and watched output text under
configurable timeouts and a fail-fast policy. Every spawned process is
terminated when the run ends, whatever the outcome.

The package is organized into specialized modules:
- config: TOML configuration loading and validation
- models: Process specs, configuration and result structures
- validation: Input validation and the exception hierarchy
- system: Command and environment preparation
- orchestration: The process-orchestration engine
- cli: Command-line interface

Usage:
    From command line:
        procharness -c harness.toml

    Programmatically:
        from procharness import HarnessRunner, HarnessRunnerConfig, load_config
        config = load_config(Path("harness.toml"))
        runner = HarnessRunner(HarnessRunnerConfig(config.containers, config.testers, config.harness))
        runner.run().raise_for_failure()
"""

from .config import clear_config_cache, get_config, load_config, set_config_path
from .orchestration import HarnessRunner, HarnessRunnerConfig

from .models import (
    AppConfig,
    ContainerSpec,
    HarnessConfig,
    RunResult,
    TesterOutcome,
    TesterSpec,
)

from .validation import (
    ConfigurationError,
    HarnessExecutionError,
    HarnessFailure,
    SpawnError,
    ValidationError,
    validate_process_specs,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "load_config",
    "clear_config_cache",
    "set_config_path",
    "HarnessRunner",
    "HarnessRunnerConfig",
    # Models
    "AppConfig",
    "ContainerSpec",
    "HarnessConfig",
    "RunResult",
    "TesterOutcome",
    "TesterSpec",
    # Validation
    "ConfigurationError",
    "HarnessExecutionError",
    "HarnessFailure",
    "SpawnError",
    "ValidationError",
    "validate_process_specs",
]
