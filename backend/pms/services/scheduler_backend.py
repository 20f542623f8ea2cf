"""
APScheduler backend for the automation sweeps
"""
import logging
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from lifecycle.scheduler.base import ISchedulerBackend

logger = logging.getLogger(__name__)

# Seconds a sweep may start late (e.g. after a busy pool) before it is skipped
MISFIRE_GRACE_SECONDS = 60


class APSchedulerBackend(ISchedulerBackend):
    """
    Runs the automation jobs on a BackgroundScheduler.

    A sweep that is still running when its next run comes due is not started
    twice; missed runs collapse into one.
    """

    def __init__(self, scheduler: Optional[BackgroundScheduler] = None):
        self._scheduler = scheduler or BackgroundScheduler()

    @property
    def scheduler(self) -> BackgroundScheduler:
        return self._scheduler

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info(f"Automation scheduler started with {len(self._scheduler.get_jobs())} jobs")

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Automation scheduler shut down")

    def add_job(self, job_id: str, func: Callable, trigger: str, **trigger_args) -> None:
        self._scheduler.add_job(
            func,
            trigger=trigger,
            id=job_id,
            name=job_id,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=MISFIRE_GRACE_SECONDS,
            **trigger_args,
        )
        logger.debug(f"Job scheduled: {job_id} ({trigger} {trigger_args})")

    def remove_job(self, job_id: str) -> bool:
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            logger.warning(f"Job not found for removal: {job_id}")
            return False
        logger.debug(f"Job removed: {job_id}")
        return True


__all__ = ["APSchedulerBackend", "MISFIRE_GRACE_SECONDS"]
