"""
Result data models.

This module contains the data structures produced at the end of a run.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..validation.exceptions import HarnessFailure


@dataclass
class TesterOutcome:
    """
    The judgment of a single tester run.
    """

    process_id: str
    # Exit code when the process had exited at judgment time, else None.
    exit_code: Optional[int]
    timed_out: bool
    exited_successfully: bool
    # Seconds between spawn and judgment.
    duration: float
    passed: bool


@dataclass
class RunResult:
    """
    The verdict of a whole harness run.
    """

    success: bool
    # Labelled ids in the order their failure was recorded.
    failed_processes: List[str] = field(default_factory=list)
    tester_outcomes: List[TesterOutcome] = field(default_factory=list)
    message: str = ""

    def raise_for_failure(self) -> None:
        """Raise HarnessFailure if the run did not succeed."""
        if not self.success:
            raise HarnessFailure(self.message, self.failed_processes)
