"""Fixed-rate background workers."""

import threading
import time
from typing import Callable, Optional


class PeriodicWorker:
    """Run ``action`` at a fixed rate on a daemon thread.

    Pacing is deadline based: each call is scheduled one period after the
    previous slot, so a slow call shortens the next wait instead of drifting.
    When the worker falls more than one period behind it skips ahead rather
    than bursting to catch up.
    """

    def __init__(self, action: Callable[[], None], frequency: float, name: str = "PeriodicWorker"):
        if frequency <= 0:
            raise ValueError(f"Frequency must be positive, got {frequency}")
        self.action = action
        self.period = 1.0 / frequency
        self.name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        """Start the worker thread. No-op when already running."""
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Signal the worker to stop and wait for the current call to finish.

        From inside ``action`` the worker only gets signalled; it exits once
        that call returns.
        """
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _run(self) -> None:
        deadline = time.perf_counter()
        while not self._stop.is_set():
            self.action()
            deadline += self.period
            now = time.perf_counter()
            if deadline < now - self.period:
                deadline = now
            self._stop.wait(max(0.0, deadline - now))
