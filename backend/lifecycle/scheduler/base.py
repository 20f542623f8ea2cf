"""
Scheduler backend interface - recurring jobs for the automation scheduler

The automation scheduler only ever registers and removes jobs; starting and
stopping the underlying scheduler belongs to whoever owns the backend.
"""
from abc import ABC, abstractmethod
from typing import Callable


class ISchedulerBackend(ABC):
    """Scheduler backend interface"""

    @abstractmethod
    def add_job(
        self,
        job_id: str,
        func: Callable,
        trigger: str,
        **trigger_args,
    ) -> None:
        """Add a recurring job

        Args:
            job_id: Unique job identifier (replaces an existing job with the same id)
            func: Callable to run
            trigger: Trigger type, e.g. 'interval'
            **trigger_args: Trigger arguments (e.g. seconds=300)
        """

    @abstractmethod
    def remove_job(self, job_id: str) -> bool:
        """Remove a job. Returns False for unknown ids."""


__all__ = ["ISchedulerBackend"]
