"""
Fixed-interval scheduler for health-check ticks.
"""

import logging
import threading
from typing import Callable, Optional

import schedule

logger = logging.getLogger(__name__)

CHECK_INTERVAL_SECONDS = 3600


class Scheduler:
    """Runs a job every interval, forever, one run at a time.

    The next run is measured from when the previous run finished, not
    from when it started, so ticks drift later by each run's duration.
    Missed ticks are not caught up: if a run overruns the interval the
    next one starts a full interval after it finishes.
    """

    def __init__(
        self,
        job: Callable[[], object],
        interval_seconds: int = CHECK_INTERVAL_SECONDS,
        poll_seconds: float = 1.0,
    ):
        """
        Initialize scheduler.

        Args:
            job: Callable run on every tick
            interval_seconds: Seconds between ticks
            poll_seconds: How often pending jobs are checked
        """
        self.job = job
        self.interval_seconds = interval_seconds
        self.poll_seconds = poll_seconds
        self._scheduler = schedule.Scheduler()
        self._stop_event = threading.Event()
        self._scheduled_job: Optional[schedule.Job] = None

    def _run_job(self) -> None:
        """Run the job, keeping the loop alive if it raises."""
        try:
            self.job()
        except Exception as e:
            logger.error(f"Scheduled check failed: {e}")

    def start(self, run_immediately: bool = True) -> None:
        """
        Block running ticks until stop() is called.

        Args:
            run_immediately: Run the first tick now instead of after one interval
        """
        self._stop_event.clear()
        if self._scheduled_job is None:
            self._scheduled_job = (
                self._scheduler.every(self.interval_seconds).seconds.do(self._run_job)
            )

        if run_immediately:
            self._run_job()

        while not self._stop_event.is_set():
            self._scheduler.run_pending()
            self._stop_event.wait(self.poll_seconds)

    def stop(self) -> None:
        """Ask the loop to exit after the current tick."""
        self._stop_event.set()
