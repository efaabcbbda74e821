"""
Sequential tester execution.

Testers run one at a time in declared order. Each tester's wait uses the
larger of its own completion timeout and what remains of the overall
budget; the outcome is judged from the exit code and the watch texts.
"""

import logging
import time
from typing import List, Optional

from ..models.results import TesterOutcome
from ..models.specs import TESTER, TesterSpec
from .event_dispatcher import EventDispatcher
from .process_manager import ProcessHandle, ProcessManager
from .shared_state import RunState
from .signal_gate import GateRegistry

logger = logging.getLogger(__name__)


class TestSequenceRunner:
    """
    Runs testers strictly one after another and judges each of them.
    """

    __test__ = False

    def __init__(
        self,
        testers: List[TesterSpec],
        state: RunState,
        gates: GateRegistry,
        dispatcher: EventDispatcher,
        process_manager: ProcessManager,
        completion_timeout_ms: Optional[int] = None,
        fail_fast: bool = True,
    ):
        self.testers = testers
        self.state = state
        self.gates = gates
        self.dispatcher = dispatcher
        self.process_manager = process_manager
        self.completion_timeout_ms = completion_timeout_ms
        self.fail_fast = fail_fast
        self.outcomes: List[TesterOutcome] = []
        self.current: Optional[ProcessHandle] = None

    def run(self) -> List[TesterOutcome]:
        """
        Run the testers until the list ends or the run is aborted.

        Returns:
            Outcomes of the testers that were executed

        Raises:
            SpawnError: If a tester cannot be started
        """
        target_end = None
        if self.completion_timeout_ms is not None:
            target_end = time.monotonic() + self.completion_timeout_ms / 1000.0

        for index, spec in enumerate(self.testers):
            # Pick up container failures that arrived between testers.
            self.dispatcher.drain()
            if self.state.abort:
                skipped = [t.labelled_id for t in self.testers[index:]]
                logger.warning(f"Aborting, skipping {len(skipped)} tester(s): {', '.join(skipped)}")
                break

            self._startup_delay(spec)
            if self.state.abort:
                continue

            self.outcomes.append(self.run_tester(spec, target_end))

        return self.outcomes

    def run_tester(self, spec: TesterSpec, target_end: Optional[float]) -> TesterOutcome:
        """Spawn, wait for, judge and terminate a single tester."""
        process_id = spec.labelled_id
        gate = self.gates.create(process_id)
        handle = self.process_manager.spawn(
            spec,
            TESTER,
            notify_text=spec.watch,
            failure_text=spec.failure_watch,
            watch_exit=True,
        )
        self.current = handle

        logger.info(f"Waiting for {process_id} process to complete.")
        timeout = self.effective_timeout(spec, target_end)
        if timeout is None:
            logger.error("No timeout available, treating it as immediate timeout")
            timed_out = True
        else:
            timed_out = not self.dispatcher.await_gate(gate, timeout)

        outcome = self.judge(handle, timed_out)
        logger.warning(f"{process_id} process: exitedSuccessfully={outcome.exited_successfully}")
        logger.warning(f"{process_id} process: timedOut          ={outcome.timed_out}")
        logger.warning(f"{process_id} process: failed            ={not outcome.passed}")

        self.process_manager.terminate(handle)
        self.current = None
        return outcome

    def effective_timeout(self, spec: TesterSpec, target_end: Optional[float]) -> Optional[float]:
        """
        Seconds to wait for a tester, or None when no timeout is configured.

        The larger of the tester's own completion timeout and the remaining
        overall budget wins. The remaining budget may already be negative.
        """
        candidates = []
        if spec.completion_timeout_ms is not None:
            candidates.append(spec.completion_timeout_ms / 1000.0)
        if target_end is not None:
            candidates.append(target_end - time.monotonic())
        if not candidates:
            return None
        return max(0.0, max(candidates))

    def judge(self, handle: ProcessHandle, timed_out: bool) -> TesterOutcome:
        """
        Decide whether a tester passed and record it if it did not.

        A tester that already exited passes iff its exit code is zero. One
        still running was released by watch text and passes unless the wait
        timed out. Failure text recorded by the dispatcher always fails it.
        """
        # A FAILURE event may still be queued behind the EXITED one.
        self.dispatcher.drain()
        exit_code = handle.exit_code()
        exited_successfully = exit_code == 0 if exit_code is not None else True
        failure_text_seen = handle.process_id in self.state.failed_processes

        passed = not (timed_out or not exited_successfully or failure_text_seen)
        if not passed:
            self.state.record_failure(handle.process_id, abort=self.fail_fast)

        return TesterOutcome(
            process_id=handle.process_id,
            exit_code=exit_code,
            timed_out=timed_out,
            exited_successfully=exited_successfully,
            duration=time.monotonic() - handle.started_at,
            passed=passed,
        )

    def _startup_delay(self, spec: TesterSpec) -> None:
        if not spec.startup_delay_ms:
            return
        logger.debug(f"Sleeping {spec.startup_delay_ms}ms before starting {spec.labelled_id}")
        if self.state.shutdown_requested.wait(spec.startup_delay_ms / 1000.0):
            logger.warning("Startup delay interrupted - you may get some timing issues")
