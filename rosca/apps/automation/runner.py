"""
Periodic loops for the long-running commands.

Stop requests (SIGINT/SIGTERM or setting the stop event) are honoured between
iterations; an iteration in progress always runs to the end.
"""

import logging
import signal
import threading
from typing import Callable, Iterable, Optional

logger = logging.getLogger(__name__)


class PeriodicRunner:
    def __init__(
        self,
        name: str,
        job: Callable[[], object],
        interval: float,
        stop_event: Optional[threading.Event] = None,
    ):
        self.name = name
        self.job = job
        self.interval = interval
        self.stop_event = stop_event or threading.Event()
        self.iterations = 0
        self.failures = 0

    def run_iteration(self) -> bool:
        """Run the job once; a failure is logged and reported, never raised."""
        self.iterations += 1
        try:
            self.job()
        except Exception as e:
            self.failures += 1
            logger.exception(f"{self.name} iteration failed: {e}")
            return False
        return True

    def run_forever(self) -> None:
        logger.info(f"{self.name} started interval={self.interval}s")
        while not self.stop_event.is_set():
            self.run_iteration()
            # wait() returns early when stop is requested
            self.stop_event.wait(self.interval)
        logger.info(f"{self.name} stopped after {self.iterations} iterations")

    def stop(self) -> None:
        self.stop_event.set()


def install_signal_handlers(stop_event: threading.Event) -> None:
    """Set ``stop_event`` on SIGINT/SIGTERM. Main thread only."""

    def _handler(signum, frame):
        logger.info(f"Received signal {signum}, stopping after current iteration")
        stop_event.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def run_concurrently(runners: Iterable[PeriodicRunner]) -> None:
    """Run each runner's loop in its own thread until all have stopped."""
    threads = [
        threading.Thread(target=r.run_forever, name=r.name, daemon=True) for r in runners
    ]
    for t in threads:
        t.start()
    for t in threads:
        # join with timeout so the main thread keeps receiving signals
        while t.is_alive():
            t.join(timeout=0.5)
