"""
Data models for the harness.

Configuration Models:
- Global harness settings and the aggregated application configuration

Specification Models:
- Container and tester process descriptions

Result Models:
- Per-tester outcomes and the final run verdict
"""

from .config import AppConfig, HarnessConfig
from .results import RunResult, TesterOutcome
from .specs import CONTAINER, TESTER, ContainerSpec, TesterSpec, labelled_id

__all__ = [
    # Configuration
    "AppConfig",
    "HarnessConfig",
    # Specifications
    "CONTAINER",
    "TESTER",
    "ContainerSpec",
    "TesterSpec",
    "labelled_id",
    # Results
    "RunResult",
    "TesterOutcome",
]
