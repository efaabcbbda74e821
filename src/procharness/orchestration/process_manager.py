"""
Process management for the orchestration module.

This module handles spawning container and tester processes, attaching
their watchers, and the uniform two-step termination every spawned process
receives exactly once.
"""

import logging
import queue
import subprocess
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, IO, List, Optional, Union

import psutil

from ..models.specs import CONTAINER, ContainerSpec, TesterSpec
from ..system import build_environment, describe_command, dump_environment, prepare_command
from ..validation import ErrorSeverity, SpawnError, handle_error
from .output_watcher import ExitWatcher, OutputWatcher
from .shared_state import TimeoutConstants, WatchEvent

logger = logging.getLogger(__name__)

# CTRL-C, written to the process input before it is killed
TERMINATION_CHARACTER = b"\x03"


@dataclass
class ProcessHandle:
    """
    A live OS process plus the watcher threads attached to it.
    """
    process_id: str
    role: str
    process: subprocess.Popen
    output_watcher: OutputWatcher
    exit_watcher: Optional[ExitWatcher] = None
    started_at: float = field(default_factory=time.monotonic)
    termination_count: int = 0

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def is_container(self) -> bool:
        return self.role == CONTAINER

    @property
    def terminated(self) -> bool:
        return self.termination_count > 0

    def exit_code(self) -> Optional[int]:
        """The exit code if the process has exited, otherwise None."""
        return self.process.poll()


class ProcessTerminator:
    """
    Two-step shutdown applied to every spawned process.

    First a CTRL-C byte is written to the process input so well-behaved
    services can shut down, then the process and its descendants are
    killed and reaped.
    """

    def __init__(self, reap_timeout: float = TimeoutConstants.TERMINATION_REAP_TIMEOUT):
        self.reap_timeout = reap_timeout

    def terminate(self, handle: ProcessHandle) -> None:
        logger.warning(f"Terminating {handle.process_id} process (PID: {handle.pid})")
        self.send_control_character(handle)
        self.force_kill(handle)

    def send_control_character(self, handle: ProcessHandle) -> None:
        stdin = handle.process.stdin
        if stdin is None:
            return
        try:
            stdin.write(TERMINATION_CHARACTER)
            stdin.flush()
        except (OSError, ValueError) as e:
            # The process may already have closed its input.
            logger.debug(f"Could not write termination character to {handle.process_id}: {e}")

    def force_kill(self, handle: ProcessHandle) -> None:
        """Kill the process tree, then reap the direct child."""
        for child in self._get_children(handle.pid):
            try:
                child.kill()
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied:
                logger.warning(f"Access denied killing PID {child.pid} under {handle.process_id}")

        try:
            handle.process.kill()
        except ProcessLookupError:
            pass

        try:
            exit_code = handle.process.wait(timeout=self.reap_timeout)
            logger.debug(f"{handle.process_id} reaped with exit code {exit_code}")
        except subprocess.TimeoutExpired:
            logger.error(f"{handle.process_id} (PID: {handle.pid}) did not die within "
                         f"{self.reap_timeout}s of being killed")

        self._close_stream(handle.process.stdin)

    @staticmethod
    def _get_children(pid: int) -> List[psutil.Process]:
        try:
            return psutil.Process(pid).children(recursive=True)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return []

    @staticmethod
    def _close_stream(stream: Optional[IO[bytes]]) -> None:
        if stream is None:
            return
        try:
            stream.close()
        except (OSError, ValueError):
            pass


class ProcessManager:
    """
    Spawns processes and keeps the termination bookkeeping of a run.

    Handles are kept in spawn order; terminate() applies the terminator at
    most once per handle.
    """

    def __init__(
        self,
        events: "queue.Queue[WatchEvent]",
        private_environment_variables: Optional[List[str]] = None,
        terminator: Optional[ProcessTerminator] = None,
        sink_factory: Optional[Callable[[str], Optional[IO[Any]]]] = None,
    ):
        """
        Args:
            events: Queue the watchers post to
            private_environment_variables: Names never written to the log
            terminator: Termination strategy, defaults to ProcessTerminator()
            sink_factory: Returns a console capture file for a labelled id
        """
        self.events = events
        self.private_environment_variables = list(private_environment_variables or [])
        self.terminator = terminator or ProcessTerminator()
        self.sink_factory = sink_factory
        self.handles: List[ProcessHandle] = []
        self._lock = threading.Lock()

    def spawn(
        self,
        spec: Union[ContainerSpec, TesterSpec],
        role: str,
        notify_text: str = "",
        failure_text: str = "",
        watch_exit: bool = False,
    ) -> ProcessHandle:
        """
        Start a process and attach its watcher threads.

        Args:
            spec: Container or tester spec to start
            role: CONTAINER or TESTER
            notify_text: Readiness or completion watch text
            failure_text: Failure watch text
            watch_exit: Also start an ExitWatcher for the process

        Returns:
            The handle of the running process

        Raises:
            SpawnError: If the operating system cannot start the process
        """
        process_id = spec.labelled_id
        environment = build_environment(spec.environment)
        dump_environment(environment, process_id, self.private_environment_variables, log=logger)

        command_text = describe_command(spec.command)
        logger.info(f"Starting '{command_text}' in directory '{spec.working_dir}'")
        try:
            process = subprocess.Popen(
                prepare_command(spec.command),
                cwd=spec.working_dir,
                env=environment,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except (OSError, ValueError) as e:
            handle_error(
                error=e,
                context=f"starting {process_id}",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger
            )
            raise SpawnError(process_id, e) from e

        sink = self.sink_factory(process_id) if self.sink_factory else None
        output_watcher = OutputWatcher(
            process_id,
            process.stdout,
            self.events,
            notify_text=notify_text,
            failure_text=failure_text,
            sink=sink,
        )
        handle = ProcessHandle(
            process_id=process_id,
            role=role,
            process=process,
            output_watcher=output_watcher,
        )
        with self._lock:
            self.handles.append(handle)

        output_watcher.start()
        if watch_exit:
            handle.exit_watcher = ExitWatcher(process_id, process, self.events)
            handle.exit_watcher.start()

        logger.info(f"Started '{command_text}' as {process_id} (PID: {process.pid})")
        return handle

    def terminate(self, handle: ProcessHandle) -> bool:
        """
        Terminate a handle unless that already happened.

        Returns:
            True if the terminator ran for this call
        """
        with self._lock:
            if handle.terminated:
                return False
            handle.termination_count += 1
        self.terminator.terminate(handle)
        handle.output_watcher.join(TimeoutConstants.WATCHER_JOIN_TIMEOUT)
        return True

    def terminate_all(self) -> int:
        """
        Terminate every still-live handle: containers in start order, then
        any tester that was not terminated yet.

        Returns:
            Number of handles terminated by this call
        """
        with self._lock:
            containers = [h for h in self.handles if h.is_container]
            others = [h for h in self.handles if not h.is_container]

        terminated = 0
        for handle in containers + others:
            try:
                if self.terminate(handle):
                    terminated += 1
            except Exception as e:
                handle_error(
                    error=e,
                    context=f"terminating {handle.process_id}",
                    severity=ErrorSeverity.ERROR,
                    reraise=False,
                    logger=logger
                )
        return terminated

    def live_handles(self) -> List[ProcessHandle]:
        with self._lock:
            return [h for h in self.handles if not h.terminated]
