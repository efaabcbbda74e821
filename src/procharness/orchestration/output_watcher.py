"""
Console and exit watchers for spawned processes.

Each spawned process gets an OutputWatcher thread reading its console
output. Testers additionally get an ExitWatcher thread that reports when
the OS process ends on its own. Both only post WatchEvents to the control
thread's queue; neither touches the run state.
"""

import logging
import queue
import subprocess
import threading
from typing import IO, Any, Optional

from .shared_state import EventKind, WatchEvent

logger = logging.getLogger(__name__)


class OutputWatcher:
    """
    Reads a process's console stream and reports watch-text matches.

    Every line is checked for both the failure text and the notify text. The
    first match of each kind posts one event; later matches of the same kind
    are ignored. Reaching end of stream posts nothing.
    """

    def __init__(
        self,
        process_id: str,
        stream: IO[bytes],
        events: "queue.Queue[WatchEvent]",
        notify_text: str = "",
        failure_text: str = "",
        sink: Optional[IO[Any]] = None,
    ):
        """
        Args:
            process_id: Labelled id of the watched process
            stream: Binary console stream (stdout with stderr merged)
            events: Queue consumed by the control thread
            notify_text: Readiness or completion text; empty never matches
            failure_text: Failure text; empty never matches
            sink: Optional text file receiving a copy of every line
        """
        self.process_id = process_id
        self.stream = stream
        self.events = events
        self.notify_text = notify_text or ""
        self.failure_text = failure_text or ""
        self.sink = sink

        self.notified = False
        self.failure_notified = False
        self.lines_read = 0
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.thread is not None:
            logger.warning(f"OutputWatcher for {self.process_id} already started")
            return
        self.thread = threading.Thread(
            target=self.run,
            name=f"OutputWatcher-{self.process_id}",
            daemon=True,
        )
        self.thread.start()

    def run(self) -> None:
        try:
            for raw_line in iter(self.stream.readline, b""):
                self.process_line(raw_line.decode("utf-8", errors="replace").rstrip("\r\n"))
        except (OSError, ValueError) as e:
            # Stream closed underneath us when the process was destroyed.
            logger.debug(f"Stopped reading output of {self.process_id}: {e}")
        finally:
            logger.debug(f"OutputWatcher for {self.process_id} finished after {self.lines_read} lines")

    def process_line(self, line: str) -> None:
        """Log, copy and scan a single console line."""
        self.lines_read += 1
        logger.info(f"{self.process_id}: {line}")
        self._write_sink(line)

        if self.failure_text and not self.failure_notified and self.failure_text in line:
            self.failure_notified = True
            self.events.put(WatchEvent(self.process_id, EventKind.FAILURE))
        if self.notify_text and not self.notified and self.notify_text in line:
            self.notified = True
            self.events.put(WatchEvent(self.process_id, EventKind.READY))

    def join(self, timeout: Optional[float] = None) -> None:
        if self.thread is not None:
            self.thread.join(timeout)

    def _write_sink(self, line: str) -> None:
        if self.sink is None:
            return
        try:
            self.sink.write(line + "\n")
            self.sink.flush()
        except (OSError, ValueError):
            # Sink closed during teardown; stop copying.
            self.sink = None


class ExitWatcher:
    """
    Blocks until a process exits on its own, then posts an EXITED event.

    Covers testers that finish without printing any watch text.
    """

    def __init__(
        self,
        process_id: str,
        process: subprocess.Popen,
        events: "queue.Queue[WatchEvent]",
    ):
        self.process_id = process_id
        self.process = process
        self.events = events
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.thread is not None:
            logger.warning(f"ExitWatcher for {self.process_id} already started")
            return
        self.thread = threading.Thread(
            target=self.run,
            name=f"ExitWatcher-{self.process_id}",
            daemon=True,
        )
        self.thread.start()

    def run(self) -> None:
        exit_code = self.process.wait()
        logger.debug(f"{self.process_id} exited with code {exit_code}")
        self.events.put(WatchEvent(self.process_id, EventKind.EXITED))

    @property
    def is_started(self) -> bool:
        return self.thread is not None

    def join(self, timeout: Optional[float] = None) -> None:
        if self.thread is not None:
            self.thread.join(timeout)
