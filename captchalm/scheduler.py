"""Background scheduler for periodic eviction sweeps."""

import logging
from collections.abc import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


class PeriodicSweep:
    """
    Runs `func` every `interval_seconds` on a daemon scheduler thread.

    Nothing runs until start() is called, and stop() must be called for a
    clean shutdown.
    """

    def __init__(self, job_id: str, func: Callable[[], int], interval_seconds: float = 60):
        self.job_id = job_id
        self.func = func
        self.interval_seconds = interval_seconds
        self._scheduler: BackgroundScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def run_once(self) -> None:
        """Run the sweep, logging instead of raising on failure."""
        try:
            removed = self.func()
            if removed:
                logger.info(f"Sweep {self.job_id}: removed {removed} entries")
        except Exception as e:
            logger.error(f"Sweep {self.job_id} failed: {e}")

    def start(self) -> None:
        if self.running:
            return
        scheduler = BackgroundScheduler(daemon=True)
        scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.job_id,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.debug(f"Sweep {self.job_id} started - runs every {self.interval_seconds}s")

    def stop(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.debug(f"Sweep {self.job_id} stopped")
