"""
HarnessRunner, the orchestrator of a harness run.

This module composes the container coordinator, the tester sequence, the
process manager, logging and signal handling. It owns the run state,
guarantees that every spawned process is terminated, and produces the
final verdict.
"""

import logging
import queue
from typing import Optional

from ..models.results import RunResult
from ..models.specs import CONTAINER
from ..validation import HarnessExecutionError
from .container_coordinator import ContainerStartupCoordinator
from .event_dispatcher import EventDispatcher
from .log_manager import LogManager
from .process_manager import ProcessManager, ProcessTerminator
from .shared_state import HarnessRunnerConfig, RunPhase, RunState
from .signal_gate import GateRegistry
from .signal_handler import SignalHandler
from .tester_sequence import TestSequenceRunner

logger = logging.getLogger(__name__)


class HarnessRunner:
    """
    Drives one run: containers, then testers, then cleanup and verdict.

    The run moves through AWAITING_CONTAINERS, RUNNING_TESTS, DRAINING and
    DONE. A container that times out or prints its failure text skips
    RUNNING_TESTS. Termination of every spawned process happens in DRAINING
    and runs even when an earlier phase raised.
    """

    def __init__(self, config: HarnessRunnerConfig, terminator: Optional[ProcessTerminator] = None):
        """
        Args:
            config: Validated specs and harness settings
            terminator: Termination strategy, mainly for tests
        """
        self.config = config
        harness = config.harness

        self.state = RunState()
        self.events: "queue.Queue" = queue.Queue()
        self.gates = GateRegistry()

        self.log_manager = LogManager(harness.log_dir)
        self.process_manager = ProcessManager(
            self.events,
            private_environment_variables=harness.private_environment_variables,
            terminator=terminator,
            sink_factory=self.log_manager.open_console_log,
        )
        self.dispatcher = EventDispatcher(self.state, self.gates, self.events, fail_fast=harness.fail_fast)
        self.coordinator = ContainerStartupCoordinator(
            config.containers,
            self.state,
            self.gates,
            self.dispatcher,
            self.process_manager,
            startup_timeout_ms=harness.containers_startup_timeout_ms,
        )
        self.sequence = TestSequenceRunner(
            config.testers,
            self.state,
            self.gates,
            self.dispatcher,
            self.process_manager,
            completion_timeout_ms=harness.tests_completion_timeout_ms,
            fail_fast=harness.fail_fast,
        )
        self.signal_handler = SignalHandler()
        self.result: Optional[RunResult] = None

    def run(self) -> RunResult:
        """
        Execute the whole run.

        Returns:
            The verdict of the run

        Raises:
            HarnessExecutionError: On fatal errors such as a process that
                cannot be spawned, after every started process was terminated
        """
        runner_id = id(self)
        self.signal_handler.register_runner(runner_id, self)
        self.signal_handler.setup_signal_handlers()

        try:
            self.log_manager.prepare_run_directory()
            if self.start_containers():
                self.run_tests()
        except HarnessExecutionError as e:
            logger.error(f"Run aborted: {e}")
            self.state.record_failure(None, abort=True)
            raise
        finally:
            self.teardown()
            self.signal_handler.cleanup_signal_handlers()
            self.signal_handler.unregister_runner(runner_id)

        return self.result

    def start_containers(self) -> bool:
        """
        Spawn the containers and wait for their readiness.

        Returns:
            True if the tester sequence may start
        """
        logger.info(f"Starting {len(self.config.containers)} container process(es)")
        self.coordinator.start_containers()
        ready = self.coordinator.await_readiness()
        if not ready:
            logger.error("Containers failed to start, tester sequence will not run")
        return ready

    def run_tests(self) -> None:
        self.state.transition(RunPhase.RUNNING_TESTS)
        logger.info(f"Running {len(self.config.testers)} tester process(es)")
        self.sequence.run()

    def teardown(self) -> None:
        """
        Terminate every still-live process, then build the verdict.
        """
        self.state.transition(RunPhase.DRAINING)
        # Apply failures posted before the processes are destroyed.
        self.dispatcher.drain()

        terminated = self.process_manager.terminate_all()
        logger.info(f"Terminated {terminated} remaining process(es)")

        self.result = self.build_result()
        try:
            self.log_manager.write_summary_log(self.result)
        except OSError as e:
            logger.error(f"Failed to write summary log: {e}")
        finally:
            self.log_manager.close_log_files()
        self.state.transition(RunPhase.DONE)

    def build_result(self) -> RunResult:
        failed_processes = self.state.failed_processes
        outcomes = list(self.sequence.outcomes)
        if not self.state.failed:
            logger.info(f"All {len(outcomes)} tester(s) passed")
            return RunResult(success=True, tester_outcomes=outcomes)

        message = format_failure_message(failed_processes, self.state.shutdown_requested.is_set())
        logger.error(message)
        return RunResult(
            success=False,
            failed_processes=failed_processes,
            tester_outcomes=outcomes,
            message=message,
        )

    def request_shutdown(self) -> None:
        """
        Abort the run from outside the control thread, e.g. on SIGINT.

        Only raises the shutdown flag; the control thread sees it as a failed
        and aborted run on its next state read.
        """
        self.state.shutdown_requested.set()


def format_failure_message(failed_processes, interrupted: bool = False) -> str:
    """
    Build the aggregated failure message, containers listed first.
    """
    containers = [p for p in failed_processes if p.startswith(CONTAINER)]
    others = [p for p in failed_processes if not p.startswith(CONTAINER)]
    message = f"Failure text arrived on the following processes: [{', '.join(containers + others)}]"
    if interrupted:
        message += " (run interrupted by signal)"
    return message
