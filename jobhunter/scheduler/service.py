"""Scheduler service for periodic ingestion runs."""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from jobhunter.logging import get_logger

logger = get_logger(__name__, component="scheduler")

JOB_ID = "ingestion-run"


class SchedulerService:
    """
    Wraps APScheduler to trigger ingestion at a fixed interval.

    The job runs on a BackgroundScheduler worker thread so the main thread
    stays free to handle signals. ``max_instances=1`` and ``coalesce`` keep
    delayed runs from piling up; the orchestrator's own lock covers manual
    triggers that race a scheduled run.
    """

    def __init__(
        self,
        run_callable: Callable[[], Any],
        interval_seconds: int,
        run_on_startup: bool = True,
        timezone_name: str = "UTC",
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Args:
            run_callable: Called on each scheduled run (e.g. orchestrator.run_once)
            interval_seconds: Seconds between runs
            run_on_startup: Fire the first run immediately instead of after one interval
            timezone_name: Timezone the scheduler reports times in
            shutdown_event: Set on shutdown so the main thread can exit
        """
        self.run_callable = run_callable
        self.interval_seconds = interval_seconds
        self.run_on_startup = run_on_startup
        self.timezone_name = timezone_name
        self.shutdown_event = shutdown_event

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone_name,
        )

    def _run_job(self) -> None:
        """Scheduled entry point; a failed run is logged and the schedule continues."""
        logger.info("Scheduled ingestion triggered", extra={"event": "scheduler.run.triggered"})
        try:
            result = self.run_callable()
        except Exception as e:
            logger.error(
                f"Scheduled ingestion failed: {e}",
                extra={"event": "scheduler.run.failed", "error_type": type(e).__name__},
                exc_info=True,
            )
            return

        render = getattr(result, "render", None)
        if callable(render):
            logger.info(render(), extra={"event": "scheduler.run.completed"})

    def start(self) -> None:
        """Register the ingestion job and start the scheduler thread."""
        trigger = IntervalTrigger(seconds=self.interval_seconds, timezone=self.timezone_name)

        job_kwargs = {}
        if self.run_on_startup:
            job_kwargs["next_run_time"] = datetime.now(timezone.utc)

        self.scheduler.add_job(
            func=self._run_job,
            trigger=trigger,
            id=JOB_ID,
            name="Job ingestion run",
            replace_existing=True,
            **job_kwargs,
        )
        self.scheduler.start()

        next_run = self.get_next_run_time()
        logger.info(
            f"Scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "run_on_startup": self.run_on_startup,
                "next_run_time": next_run.isoformat() if next_run else None,
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Args:
            wait: If True, wait for a running ingestion to finish
        """
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
        """Run ingestion synchronously in the calling thread."""
        logger.info("Triggering immediate ingestion run", extra={"event": "scheduler.trigger_now"})
        self._run_job()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None
