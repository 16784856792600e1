"""Periodic escrow release, owned by the application instead of a global timer."""

import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from smart_train.services.escrow_service import release_sweep
from smart_train.services.trip_service import utcnow

logger = logging.getLogger(__name__)


class EscrowReleaseJob:
    """Runs :func:`release_sweep` every ``interval_seconds`` inside an app context.

    ``clock`` is injectable so tests can drive the sweep at any moment.
    """

    JOB_ID = "escrow_release_sweep"

    def __init__(self, app, interval_seconds=None, clock=utcnow, scheduler=None):
        self.app = app
        self.interval_seconds = interval_seconds or app.config.get("RELEASE_SWEEP_INTERVAL", 60)
        self.clock = clock
        self.scheduler = scheduler or BackgroundScheduler(
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": self.interval_seconds,
            },
            timezone="UTC",
        )

    def run_once(self):
        with self.app.app_context():
            return release_sweep(self.clock())

    def _run_scheduled(self):
        try:
            self.run_once()
        except Exception:
            # keep the scheduler alive; the next tick retries everything pending
            logger.exception("Escrow release sweep crashed")

    def start(self):
        self.scheduler.add_job(
            self._run_scheduled,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            name="Release Ticket Escrow",
            replace_existing=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info("Escrow release sweep scheduled every %ss", self.interval_seconds)

    def shutdown(self, wait=False):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
