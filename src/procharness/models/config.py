"""
Configuration data models.

This module contains the configuration structure of a harness run, loaded
from a TOML file and validated before any process is started.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .specs import ContainerSpec, TesterSpec


@dataclass
class HarnessConfig:
    """
    Global settings of a run, loaded from the `[harness]` table.
    """

    # Shared budget (ms) for every container to print its start-watch text.
    containers_startup_timeout_ms: Optional[int] = None
    # Overall budget (ms) for the tester sequence.
    tests_completion_timeout_ms: Optional[int] = None
    # Stop running testers after the first failure.
    fail_fast: bool = True
    # Environment variable names never written to the log.
    private_environment_variables: List[str] = field(default_factory=list)
    # Where console captures and the summary log go. None disables them.
    log_dir: Optional[Path] = None


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    harness: HarnessConfig
    # Containers in the order they are started.
    containers: List[ContainerSpec]
    # Testers in the order they are run.
    testers: List[TesterSpec]
