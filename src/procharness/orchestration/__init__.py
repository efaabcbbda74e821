"""
Orchestration module for harness runs.

Components:
- HarnessRunner: Main orchestrator, owns the run state and the verdict
- ContainerStartupCoordinator: Starts containers and waits for readiness
- TestSequenceRunner: Runs and judges testers one at a time
- ProcessManager / ProcessTerminator: Spawning and two-step termination
- OutputWatcher / ExitWatcher: Watcher threads posting events
- EventDispatcher: Applies events on the control thread
- SignalGate: One-shot readiness/completion gate
- LogManager: Console capture and summary log files
- SignalHandler: SIGINT/SIGTERM handling
"""

from .container_coordinator import ContainerStartupCoordinator
from .event_dispatcher import EventDispatcher
from .harness_runner import HarnessRunner, format_failure_message
from .output_watcher import ExitWatcher, OutputWatcher
from .process_manager import ProcessHandle, ProcessManager, ProcessTerminator
from .shared_state import (
    EventKind,
    HarnessRunnerConfig,
    RunPhase,
    RunState,
    TimeoutConstants,
    WatchEvent,
)
from .signal_gate import GateRegistry, SignalGate
from .tester_sequence import TestSequenceRunner

__all__ = [
    "ContainerStartupCoordinator",
    "EventDispatcher",
    "EventKind",
    "ExitWatcher",
    "GateRegistry",
    "HarnessRunner",
    "HarnessRunnerConfig",
    "OutputWatcher",
    "ProcessHandle",
    "ProcessManager",
    "ProcessTerminator",
    "RunPhase",
    "RunState",
    "SignalGate",
    "TestSequenceRunner",
    "TimeoutConstants",
    "WatchEvent",
    "format_failure_message",
]
