"""
Event dispatching for the orchestration module.

The control thread is the only consumer of the watch-event queue. It
applies events to the run state and releases gates while it waits, so all
state changes caused by watcher threads happen on one thread.
"""

import logging
import queue
import time
from typing import Optional

from ..models.specs import CONTAINER
from .shared_state import EventKind, RunState, TimeoutConstants, WatchEvent
from .signal_gate import GateRegistry, SignalGate

logger = logging.getLogger(__name__)


class EventDispatcher:
    """
    Applies watcher events to the run state and waits on gates.
    """

    def __init__(
        self,
        state: RunState,
        gates: GateRegistry,
        events: "queue.Queue[WatchEvent]",
        fail_fast: bool = True,
    ):
        self.state = state
        self.gates = gates
        self.events = events
        self.fail_fast = fail_fast

    def dispatch(self, event: WatchEvent) -> None:
        if event.kind is EventKind.FAILURE:
            logger.warning(f"Failure text arrived for {event.process_id}")
            # A failing container invalidates every tester still to come.
            abort = event.process_id.startswith(CONTAINER) or self.fail_fast
            self.state.record_failure(event.process_id, abort=abort)
            self.gates.release(event.process_id, "failure text")
        elif event.kind is EventKind.READY:
            logger.warning(f"Notify text arrived for {event.process_id}")
            self.gates.release(event.process_id, "notify text")
        elif event.kind is EventKind.EXITED:
            if self.gates.release(event.process_id, "process exit"):
                logger.info(f"{event.process_id} process exited")

    def drain(self) -> int:
        """Apply every event already queued without blocking."""
        handled = 0
        while True:
            try:
                event = self.events.get_nowait()
            except queue.Empty:
                return handled
            self.dispatch(event)
            handled += 1

    def await_gate(
        self,
        gate: SignalGate,
        timeout: Optional[float] = None,
        stop_on_abort: bool = False,
    ) -> bool:
        """
        Pump events until `gate` is released or the deadline passes.

        Args:
            gate: Gate to wait on
            timeout: Seconds to wait; None waits without limit
            stop_on_abort: Give up as soon as the run is aborted

        Returns:
            True if the gate was released. A deadline that passes, a
            shutdown request or (with stop_on_abort) an abort all count as
            "did not complete".
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        self.drain()
        while not gate.is_released:
            if self.state.shutdown_requested.is_set():
                logger.warning(f"Interrupted waiting for {gate.process_id}")
                return False
            if stop_on_abort and self.state.abort:
                return False

            poll = TimeoutConstants.EVENT_POLL_INTERVAL
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                poll = min(poll, remaining)

            try:
                event = self.events.get(timeout=poll)
            except queue.Empty:
                continue
            self.dispatch(event)
        return True
