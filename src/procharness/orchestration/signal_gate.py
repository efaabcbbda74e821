"""
One-shot readiness and completion gates.
"""

import threading
from typing import Dict, Iterator, Optional


class SignalGate:
    """
    A gate released exactly once by whichever event arrives first.

    Releasing an already released gate is a no-op, so a watch-text event and
    a process-exit event racing each other are both safe to apply.
    """

    def __init__(self, process_id: str):
        self.process_id = process_id
        self._event = threading.Event()
        self._lock = threading.Lock()
        self.released_by: Optional[str] = None

    def release(self, reason: str = "") -> bool:
        """
        Release the gate.

        Returns:
            True for the call that released it, False for any later call
        """
        with self._lock:
            if self._event.is_set():
                return False
            self.released_by = reason
            self._event.set()
            return True

    @property
    def is_released(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until released or until `timeout` seconds pass."""
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        state = f"released by {self.released_by}" if self.is_released else "pending"
        return f"SignalGate({self.process_id!r}, {state})"


class GateRegistry:
    """
    Gates keyed by labelled process id.

    Each id has at most one gate for the lifetime of a run.
    """

    def __init__(self):
        self._gates: Dict[str, SignalGate] = {}
        self._lock = threading.Lock()

    def create(self, process_id: str) -> SignalGate:
        with self._lock:
            if process_id in self._gates:
                raise ValueError(f"A gate for {process_id} already exists")
            gate = SignalGate(process_id)
            self._gates[process_id] = gate
            return gate

    def get(self, process_id: str) -> Optional[SignalGate]:
        with self._lock:
            return self._gates.get(process_id)

    def release(self, process_id: str, reason: str = "") -> bool:
        """Release the gate for `process_id`; unknown ids are ignored."""
        gate = self.get(process_id)
        if gate is None:
            return False
        return gate.release(reason)

    def __iter__(self) -> Iterator[SignalGate]:
        with self._lock:
            return iter(list(self._gates.values()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._gates)
