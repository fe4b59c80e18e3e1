"""Background scheduler that runs the promotion expiry sweep on a fixed interval."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from domain.errors import SweepAlreadyRunning
from services.expiry_sweeper import ExpirySweeper, SweepSummary

logger = logging.getLogger(__name__)

JOB_ID = "promotion-expiry-sweep"


class ExpiryScheduler:
    """Owns the only timer in the engine; each tick calls ExpirySweeper.run_now."""

    def __init__(self, sweeper: ExpirySweeper, *, interval_minutes: int = 60) -> None:
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be > 0")
        self._sweeper = sweeper
        self._interval_minutes = interval_minutes
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        if self._scheduler is not None:
            return

        scheduler = BackgroundScheduler(timezone="UTC")
        scheduler.add_job(
            self.run_scheduled_sweep,
            trigger=IntervalTrigger(minutes=self._interval_minutes),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            "Promotion expiry scheduler started",
            extra={"interval_minutes": self._interval_minutes},
        )

    def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Promotion expiry scheduler stopped")

    def run_scheduled_sweep(self) -> Optional[SweepSummary]:
        """Timer callback. Never raises: a skipped or failed tick is retried on the next one."""

        try:
            return self._sweeper.run_now(wait=False, trigger="scheduled")
        except SweepAlreadyRunning:
            logger.info("Skipping scheduled promotion sweep; a sweep is already running")
        except Exception:
            logger.exception("Scheduled promotion sweep failed")
        return None

    def health(self) -> Dict[str, Any]:
        next_run = None
        if self._scheduler is not None:
            job = self._scheduler.get_job(JOB_ID)
            if job is not None and job.next_run_time is not None:
                next_run = job.next_run_time.isoformat()

        last = self._sweeper.last_summary
        return {
            "running": self.is_running,
            "interval_minutes": self._interval_minutes,
            "sweep_in_progress": self._sweeper.is_running,
            "next_run_at": next_run,
            "last_sweep": None
            if last is None
            else {
                "trigger": last.trigger,
                "scanned": last.scanned,
                "transitioned": last.transitioned,
                "errors": last.error_count,
                "finished_at": last.finished_at.isoformat() if last.finished_at else None,
            },
        }


__all__ = ["ExpiryScheduler", "JOB_ID"]
