"""
SIGINT/SIGTERM handling for harness runs.

Python signal handlers are process-wide and cannot be bound to an instance,
so every active HarnessRunner is kept in a module registry and the handler
forwards the signal to all of them.
"""

import logging
import signal
import threading
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .harness_runner import HarnessRunner

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)

_active_runners: Dict[int, "HarnessRunner"] = {}
# Reentrant: the handler runs on the main thread, which may already hold it.
_active_runners_lock = threading.RLock()


class SignalHandler:
    """
    Turns SIGINT/SIGTERM into a shutdown request for the active runs.

    A shutdown request fails the run and stops further testers. Pending
    waits return as "did not complete" and teardown then runs as usual.
    """

    def __init__(self):
        self._previous: Dict[int, Any] = {}

    def setup_signal_handlers(self) -> None:
        """Install the handlers; signals can only be handled on the main thread."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal handlers not installed")
            return
        for signum in HANDLED_SIGNALS:
            try:
                self._previous[signum] = signal.signal(signum, self._global_signal_handler)
            except (ValueError, OSError) as e:
                logger.warning(f"Could not install handler for signal {signum}: {e}")
        logger.debug(f"Installed handlers for {len(self._previous)} signal(s)")

    def cleanup_signal_handlers(self) -> None:
        """Put back whatever handlers were active before setup."""
        while self._previous:
            signum, previous = self._previous.popitem()
            if previous is None:
                # Installed from outside Python; nothing to restore.
                continue
            try:
                signal.signal(signum, previous)
            except (ValueError, OSError) as e:
                logger.warning(f"Could not restore handler for signal {signum}: {e}")

    def register_runner(self, runner_id: int, runner: "HarnessRunner") -> None:
        with _active_runners_lock:
            _active_runners[runner_id] = runner
        logger.debug(f"Runner {runner_id} registered for signal handling")

    def unregister_runner(self, runner_id: int) -> None:
        with _active_runners_lock:
            _active_runners.pop(runner_id, None)

    @staticmethod
    def _global_signal_handler(signum: int, frame: Any) -> None:
        with _active_runners_lock:
            runners = list(_active_runners.values())
        logger.warning(f"Signal {signum} received, stopping {len(runners)} active run(s)")
        for runner in runners:
            runner.request_shutdown()
