"""
lifecycle/scheduler - time-driven automation

- base: ISchedulerBackend
- automation: AutomationScheduler sweeps
- late_fees: late checkout deadline and fee computation
"""
from lifecycle.scheduler.base import ISchedulerBackend
from lifecycle.scheduler.automation import (
    AutomationScheduler,
    SweepAction,
    SweepOutcome,
    SweepReport,
    SweepTask,
)
from lifecycle.scheduler.late_fees import compute_late_checkout_fee

__all__ = [
    "ISchedulerBackend",
    "AutomationScheduler",
    "SweepAction",
    "SweepOutcome",
    "SweepReport",
    "SweepTask",
    "compute_late_checkout_fee",
]
