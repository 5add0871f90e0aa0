"""Periodic retry-queue draining on an APScheduler background thread."""

import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from intake.logging import get_logger
from intake.persistence.exceptions import PersistenceError

logger = get_logger(__name__, component="scheduler")

JOB_ID = "retry-drain"


class SchedulerService:
    """
    Runs a drain callable every ``interval_seconds``.

    The job never overlaps itself and missed runs are coalesced into one.
    The main thread stays free to handle signals and coordinate shutdown.
    """

    def __init__(
        self,
        drain_callable: Callable[[], object],
        interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Args:
            drain_callable: Called on each run (normally RetryDrainer.drain_once)
            interval_seconds: Seconds between runs
            shutdown_event: Set once the scheduler has shut down
        """
        self.drain_callable = drain_callable
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def _run(self) -> None:
        try:
            self.drain_callable()
        except PersistenceError as e:
            # Store outages end this run only; the next interval tries again
            logger.error(
                f"Retry drain run failed: {e}",
                exc_info=True,
                extra={"event": "scheduler.run.failed", "error_type": type(e).__name__},
            )

    def start(self) -> None:
        """Register the drain job (first run immediately) and start the scheduler."""
        first_run = datetime.now(timezone.utc)
        self.scheduler.add_job(
            func=self._run,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc),
            id=JOB_ID,
            name="Retry queue drain",
            replace_existing=True,
            next_run_time=first_run,
        )
        self.scheduler.start()

        logger.info(
            f"Scheduler started, draining every {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": first_run.isoformat(),
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """Stop the scheduler; ``wait`` blocks until a running drain finishes."""
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self) -> None:
        """Run one drain synchronously in the calling thread."""
        logger.info("Triggering immediate retry drain", extra={"event": "scheduler.trigger_now"})
        self._run()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        """Next scheduled drain, or None when the job is not registered."""
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None
