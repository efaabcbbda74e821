"""
Container startup coordination.

Spawns every container and waits for the ones that declare a start-watch
text, sharing one deadline across all of them.
"""

import logging
import time
from typing import List, Optional

from ..models.specs import CONTAINER, ContainerSpec
from .event_dispatcher import EventDispatcher
from .process_manager import ProcessHandle, ProcessManager
from .shared_state import RunState
from .signal_gate import GateRegistry

logger = logging.getLogger(__name__)


class ContainerStartupCoordinator:
    """
    Starts the containers and waits until all of them report readiness.
    """

    def __init__(
        self,
        containers: List[ContainerSpec],
        state: RunState,
        gates: GateRegistry,
        dispatcher: EventDispatcher,
        process_manager: ProcessManager,
        startup_timeout_ms: Optional[int] = None,
    ):
        self.containers = containers
        self.state = state
        self.gates = gates
        self.dispatcher = dispatcher
        self.process_manager = process_manager
        self.startup_timeout_ms = startup_timeout_ms
        self.handles: List[ProcessHandle] = []

    def start_containers(self) -> List[ProcessHandle]:
        """
        Spawn every container in declared order.

        Raises:
            SpawnError: On the first container that cannot be started;
                later containers are not attempted
        """
        for spec in self.containers:
            self.gates.create(spec.labelled_id)
            handle = self.process_manager.spawn(
                spec,
                CONTAINER,
                notify_text=spec.start_watch,
                failure_text=spec.failure_watch,
            )
            self.handles.append(handle)
        return self.handles

    def await_readiness(self) -> bool:
        """
        Wait for every container with a start-watch text.

        Without a startup timeout each wait is unbounded. With one, the
        deadline is fixed here and every container consumes from what is
        left of it.

        Returns:
            True if all containers became ready and none reported failure
        """
        deadline = None
        if self.startup_timeout_ms is not None:
            deadline = time.monotonic() + self.startup_timeout_ms / 1000.0

        for spec in self.containers:
            if not spec.start_watch:
                continue

            gate = self.gates.get(spec.labelled_id)
            logger.info(f"Waiting for notify text '{spec.start_watch}' from {spec.labelled_id}")
            timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
            ready = self.dispatcher.await_gate(gate, timeout, stop_on_abort=True)
            if self.state.abort:
                # Failure text on some container, or a shutdown request.
                return False
            if not ready:
                logger.error(f"{spec.labelled_id} did not become ready in time")
                self.state.record_failure(spec.labelled_id, abort=True)
                return False

        return not self.state.failed
