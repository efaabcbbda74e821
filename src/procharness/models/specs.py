"""
Process specification models.

This module contains the validated descriptions of the container and tester
processes a harness run starts. Specs are immutable once validated.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

CONTAINER = "CONTAINER"
TESTER = "TESTER"


def labelled_id(role: str, process_id: str) -> str:
    """Return the id used in logs and failure reports, e.g. ``TESTER[smoke]``."""
    return f"{role}[{process_id}]"


@dataclass(frozen=True)
class ContainerSpec:
    """
    A long-running service process that testers run against.
    """

    # Unique id within the container group.
    id: str
    # Either a command line (split with shell rules) or an argument list.
    command: Union[str, List[str]]
    # Directory the process is started in.
    working_dir: str
    # Text whose appearance on the console marks the container as ready.
    start_watch: str = ""
    # Text whose appearance on the console aborts the whole run.
    failure_watch: str = ""
    # Variables added to (or overriding) the inherited environment.
    environment: Dict[str, str] = field(default_factory=dict)

    @property
    def labelled_id(self) -> str:
        return labelled_id(CONTAINER, self.id)


@dataclass(frozen=True)
class TesterSpec:
    """
    A short-lived process exercising the containers.
    """

    id: str
    command: Union[str, List[str]]
    working_dir: str
    # Milliseconds to sleep before the tester is started.
    startup_delay_ms: Optional[int] = None
    # Milliseconds this tester may run, competing with the overall budget.
    completion_timeout_ms: Optional[int] = None
    # Text that marks the tester as complete without waiting for its exit.
    watch: str = ""
    failure_watch: str = ""
    environment: Dict[str, str] = field(default_factory=dict)

    @property
    def labelled_id(self) -> str:
        return labelled_id(TESTER, self.id)
