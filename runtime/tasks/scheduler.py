"""Periodic trigger for the maintenance batch.

Runs TaskRunner.run_all() every `interval_seconds` on a daemon thread.
The tasks are idempotent, so an overlapping manual run is harmless.
"""

import logging
import threading
from typing import Dict, Optional

from .maintenance import TaskOutcome, TaskRunner


logger = logging.getLogger(__name__)


class MaintenanceScheduler:
    """Background loop around a TaskRunner."""

    def __init__(self, runner: TaskRunner, interval_seconds: float = 3600) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.runner = runner
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_results: Optional[Dict[str, TaskOutcome]] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> Dict[str, TaskOutcome]:
        self.last_results = self.runner.run_all()
        return self.last_results

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name="maintenance-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("[MAINTENANCE] Scheduler started (every %ss)", self.interval_seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None
        logger.info("[MAINTENANCE] Scheduler stopped")

    def run_forever(self) -> None:
        """Blocking variant used by the CLI."""
        self._stop.clear()
        self._loop()

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                # run_all contains task failures; this only guards the loop itself.
                logger.exception("[MAINTENANCE] Scheduled run failed")
            self._stop.wait(self.interval_seconds)
