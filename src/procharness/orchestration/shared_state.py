"""
Shared data structures for the orchestration module.

This module defines the run configuration, the lock-guarded run state, the
watch events exchanged between watcher threads and the control thread, and
the timing constants used across orchestration components.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..models.config import HarnessConfig
from ..models.specs import ContainerSpec, TesterSpec

logger = logging.getLogger(__name__)


@dataclass
class HarnessRunnerConfig:
    """
    Everything a single run needs, already validated.
    """
    containers: List[ContainerSpec]
    testers: List[TesterSpec]
    harness: HarnessConfig = field(default_factory=HarnessConfig)


class EventKind(Enum):
    """What a watcher thread observed."""
    READY = "ready"
    FAILURE = "failure"
    EXITED = "exited"


@dataclass(frozen=True)
class WatchEvent:
    """A message posted by a watcher thread to the control thread."""
    process_id: str
    kind: EventKind


class RunPhase(Enum):
    """States of a run. Transitions only move forward."""
    AWAITING_CONTAINERS = "awaiting_containers"
    RUNNING_TESTS = "running_tests"
    DRAINING = "draining"
    DONE = "done"


_PHASE_ORDER = list(RunPhase)


class ShutdownFlag:
    """
    Set-once flag raised from a signal handler.

    Signal handlers run on the main thread between bytecodes, possibly while
    that thread holds a lock, so setting the flag takes no lock at all.
    Waiting polls instead of blocking on a condition.
    """

    def __init__(self):
        self._set = False

    def set(self) -> None:
        self._set = True

    def is_set(self) -> bool:
        return self._set

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Sleep until the flag is set or `timeout` seconds pass."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._set:
            poll = TimeoutConstants.EVENT_POLL_INTERVAL
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                poll = min(poll, remaining)
            time.sleep(poll)
        return True


class RunState:
    """
    Run state owned by the control thread.

    Watcher threads never touch it directly; they post WatchEvents which the
    control thread applies. The signal handler only raises
    `shutdown_requested`, which reads as a failed and aborted run.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._failed = False
        self._abort = False
        self._failed_processes: List[str] = []
        self._phase = RunPhase.AWAITING_CONTAINERS
        self.shutdown_requested = ShutdownFlag()

    @property
    def failed(self) -> bool:
        with self._lock:
            return self._failed or self.shutdown_requested.is_set()

    @property
    def abort(self) -> bool:
        with self._lock:
            return self._abort or self.shutdown_requested.is_set()

    @property
    def phase(self) -> RunPhase:
        with self._lock:
            return self._phase

    @property
    def failed_processes(self) -> List[str]:
        """Labelled ids in the order their failure was recorded."""
        with self._lock:
            return list(self._failed_processes)

    def record_failure(self, process_id: Optional[str], abort: bool = False) -> None:
        """
        Mark the run failed, remembering the process responsible.

        Args:
            process_id: Labelled id, or None for failures not tied to a process
            abort: Also stop any further testers from starting
        """
        with self._lock:
            self._failed = True
            if process_id is not None and process_id not in self._failed_processes:
                self._failed_processes.append(process_id)
            if abort:
                self._abort = True

    def transition(self, phase: RunPhase) -> bool:
        """
        Move to a later phase. Moving backwards or staying put is ignored.

        Returns:
            True if the phase changed
        """
        with self._lock:
            if _PHASE_ORDER.index(phase) <= _PHASE_ORDER.index(self._phase):
                return False
            previous, self._phase = self._phase, phase
        logger.debug(f"Run phase {previous.value} -> {phase.value}")
        return True


class TimeoutConstants:
    """
    Centralized timing configuration.
    """
    # How often a blocked wait re-checks for a shutdown request
    EVENT_POLL_INTERVAL = 0.1

    # Process termination
    TERMINATION_REAP_TIMEOUT = 5.0

    # Watcher threads are daemons; joining them is best effort
    WATCHER_JOIN_TIMEOUT = 1.0
