"""
lifecycle/scheduler/automation.py

Automation scheduler - time-driven reservation sweeps.

Each sweep of a property:
- marks today's arrivals CHECKIN_DUE and today's departures CHECKOUT_DUE
- moves overdue arrivals to NO_SHOW
- assesses late checkout fees on overdue departures (no status change)
- cancels reservations left in CONFIRMATION_PENDING past the timeout

Every status change goes through the TransitionCoordinator with
``is_automatic=True``. Work fans out on a bounded thread pool; one failing
reservation never stops the others. A sweep is safe to re-run: reservations
already moved are rejected by graph validation and counted as skipped.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Optional, Set
import threading
import logging

from lifecycle.clock import Clock, utcnow
from lifecycle.domain.enums import ReservationStatus
from lifecycle.domain.models import AutomationConfig, ReservationRecord
from lifecycle.engine.audit import IAuditTrail
from lifecycle.engine.coordinator import TransitionCoordinator
from lifecycle.engine.result import InvalidTransition, Success
from lifecycle.ports import IBillingGateway, IConfigSource, IReservationStore
from lifecycle.scheduler.base import ISchedulerBackend
from lifecycle.scheduler.late_fees import checkout_deadline, compute_late_checkout_fee

logger = logging.getLogger(__name__)

S = ReservationStatus

NO_SHOW_REASON = "Automatic no-show detection"
TIMEOUT_REASON = "Confirmation timeout exceeded"
CHECKIN_DUE_REASON = "Arrival scheduled today"
CHECKOUT_DUE_REASON = "Departure scheduled today"
LATE_CHECKOUT_REASON = "Automatic late checkout detection"

# Reservations carrying these markers in their last status reason are left alone
AUTOMATION_EXCLUSION_MARKERS = ("manual-override", "automation-disabled")

PROPERTY_REFRESH_JOB_ID = "automation-property-refresh"


class SweepTask:
    CHECKIN_DUE = "checkin_due"
    CHECKOUT_DUE = "checkout_due"
    NO_SHOW = "no_show"
    LATE_CHECKOUT = "late_checkout"
    CONFIRMATION_TIMEOUT = "confirmation_timeout"


class SweepOutcome:
    TRANSITIONED = "transitioned"
    FEE_ASSESSED = "fee_assessed"
    FLAGGED = "flagged"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANDIDATE = "candidate"


@dataclass
class SweepAction:
    reservation_id: int
    task: str
    outcome: str
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reservation_id": self.reservation_id,
            "task": self.task,
            "outcome": self.outcome,
            "detail": self.detail,
        }


@dataclass
class SweepReport:
    """Result of one sweep over one property"""

    property_id: int
    started_at: datetime
    dry_run: bool = False
    actions: List[SweepAction] = field(default_factory=list)
    error: Optional[str] = None

    def count(self, outcome: str, task: Optional[str] = None) -> int:
        return sum(
            1 for a in self.actions
            if a.outcome == outcome and (task is None or a.task == task)
        )

    def for_reservation(self, reservation_id: int) -> List[SweepAction]:
        return [a for a in self.actions if a.reservation_id == reservation_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "property_id": self.property_id,
            "started_at": self.started_at.isoformat(),
            "dry_run": self.dry_run,
            "error": self.error,
            "transitioned": self.count(SweepOutcome.TRANSITIONED),
            "fees_assessed": self.count(SweepOutcome.FEE_ASSESSED),
            "skipped": self.count(SweepOutcome.SKIPPED),
            "failed": self.count(SweepOutcome.FAILED),
            "actions": [a.to_dict() for a in self.actions],
        }


@dataclass
class _WorkItem:
    task: str
    reservation: ReservationRecord
    target: Optional[ReservationStatus] = None
    reason: Optional[str] = None


def is_automation_excluded(reservation: ReservationRecord) -> bool:
    reason = (reservation.status_change_reason or "").lower()
    return any(marker in reason for marker in AUTOMATION_EXCLUSION_MARKERS)


def _day_bounds(day: date):
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class AutomationScheduler:
    """
    Explicit sweep process with injected collaborators.

    ``run_once`` drives a single sweep deterministically (the clock is
    injected); ``start`` registers one interval job per property on a
    scheduler backend.

    Example:
        >>> scheduler = AutomationScheduler(coordinator, store, config_source, billing)
        >>> report = scheduler.run_once(property_id=1)
        >>> report.count("transitioned")
    """

    def __init__(
        self,
        coordinator: TransitionCoordinator,
        store: IReservationStore,
        config_source: IConfigSource,
        billing: Optional[IBillingGateway] = None,
        backend: Optional[ISchedulerBackend] = None,
        audit: Optional[IAuditTrail] = None,
        clock: Clock = utcnow,
        max_workers: int = 4,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._coordinator = coordinator
        self._store = store
        self._config_source = config_source
        self._billing = billing
        self._backend = backend
        self._audit = audit
        self._clock = clock
        self._max_workers = max_workers
        self._job_ids: Set[str] = set()
        self._scheduled_properties: Set[int] = set()
        self._interval_seconds: Optional[int] = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Sweeps
    # ------------------------------------------------------------------

    def run_once(self, property_id: int, dry_run: bool = False) -> SweepReport:
        """Run one sweep for a property and report what happened to each candidate."""
        now = self._clock()
        report = SweepReport(property_id=property_id, started_at=now, dry_run=dry_run)

        try:
            config = self._config_source.load_automation_config(property_id)
            items = self._collect(property_id, config, now)
        except Exception as e:
            logger.error(f"Automation sweep for property {property_id} could not start: {e}", exc_info=True)
            report.error = str(e)
            return report

        if dry_run:
            report.actions = [
                SweepAction(item.reservation.id, item.task, SweepOutcome.CANDIDATE,
                            item.target.value if item.target else None)
                for item in items
            ]
            return report

        if items:
            with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="sweep") as pool:
                futures = [pool.submit(self._process, item, config, now) for item in items]
                for future in as_completed(futures):
                    report.actions.append(future.result())
            report.actions.sort(key=lambda a: (a.reservation_id, a.task))

        logger.info(
            f"Automation sweep property {property_id}: "
            f"{report.count(SweepOutcome.TRANSITIONED)} transitioned, "
            f"{report.count(SweepOutcome.FEE_ASSESSED)} fees, "
            f"{report.count(SweepOutcome.SKIPPED)} skipped, "
            f"{report.count(SweepOutcome.FAILED)} failed"
        )
        return report

    def _collect(self, property_id: int, config: AutomationConfig, now: datetime) -> List[_WorkItem]:
        items: List[_WorkItem] = []
        today_start, tomorrow_start = _day_bounds(now.date())

        if config.enable_confirmation_timeout:
            cutoff = now - timedelta(hours=config.confirmation_pending_timeout_hours)
            for r in self._eligible(property_id, [S.CONFIRMATION_PENDING]):
                if r.created_at is not None and r.created_at < cutoff:
                    items.append(_WorkItem(SweepTask.CONFIRMATION_TIMEOUT, r, S.CANCELLED, TIMEOUT_REASON))

        no_show_ids: Set[int] = set()
        if config.enable_no_show_detection:
            lookback = now - timedelta(days=config.no_show_lookback_days)
            grace = timedelta(hours=config.no_show_grace_hours)
            for r in self._eligible(property_id, [S.CONFIRMED, S.CHECKIN_DUE], check_in_from=lookback):
                if r.check_in + grace <= now:
                    no_show_ids.add(r.id)
                    items.append(_WorkItem(SweepTask.NO_SHOW, r, S.NO_SHOW, NO_SHOW_REASON))

        arrivals = self._eligible(
            property_id, [S.CONFIRMED], check_in_from=today_start, check_in_to=tomorrow_start
        )
        for r in arrivals:
            if r.id not in no_show_ids:
                items.append(_WorkItem(SweepTask.CHECKIN_DUE, r, S.CHECKIN_DUE, CHECKIN_DUE_REASON))

        departures = self._eligible(
            property_id, [S.IN_HOUSE], check_out_from=today_start, check_out_to=tomorrow_start
        )
        for r in departures:
            items.append(_WorkItem(SweepTask.CHECKOUT_DUE, r, S.CHECKOUT_DUE, CHECKOUT_DUE_REASON))

        if config.enable_late_checkout_detection:
            lookback_start, _ = _day_bounds(now.date() - timedelta(days=config.late_checkout_lookback_days))
            overdue = self._eligible(
                property_id, [S.IN_HOUSE, S.CHECKOUT_DUE],
                check_out_from=lookback_start, check_out_to=tomorrow_start,
            )
            for r in overdue:
                if now > checkout_deadline(r, config):
                    items.append(_WorkItem(SweepTask.LATE_CHECKOUT, r, None, LATE_CHECKOUT_REASON))

        return items

    def _eligible(self, property_id: int, statuses: Iterable[ReservationStatus], **bounds) -> List[ReservationRecord]:
        records = self._store.list_by_status(property_id, statuses, **bounds)
        eligible = []
        for r in records:
            if is_automation_excluded(r):
                logger.debug(f"Reservation {r.id} excluded from automation: {r.status_change_reason}")
                continue
            eligible.append(r)
        return eligible

    def _process(self, item: _WorkItem, config: AutomationConfig, now: datetime) -> SweepAction:
        reservation_id = item.reservation.id
        try:
            if item.task == SweepTask.LATE_CHECKOUT:
                return self._assess_late_checkout(item, config, now)
            return self._run_transition(item)
        except Exception as e:
            logger.error(f"Automation {item.task} failed for reservation {reservation_id}: {e}", exc_info=True)
            return SweepAction(reservation_id, item.task, SweepOutcome.FAILED, str(e))

    def _run_transition(self, item: _WorkItem) -> SweepAction:
        r = item.reservation
        result = self._coordinator.transition(
            r.id, item.target, item.reason,
            acting_user_id=None, acting_role=None, is_automatic=True,
            property_id=r.property_id,
        )
        if isinstance(result, Success):
            return SweepAction(r.id, item.task, SweepOutcome.TRANSITIONED, item.target.value)
        if isinstance(result, InvalidTransition):
            logger.debug(f"Reservation {r.id} already handled: {result.reason}")
            return SweepAction(r.id, item.task, SweepOutcome.SKIPPED, result.reason)

        detail = getattr(result, "reason", None) or "; ".join(getattr(result, "errors", []))
        logger.warning(f"Automatic {item.task} on reservation {r.id} not applied ({result.kind}): {detail}")
        return SweepAction(r.id, item.task, SweepOutcome.FAILED, f"{result.kind}: {detail}")

    def _assess_late_checkout(self, item: _WorkItem, config: AutomationConfig, now: datetime) -> SweepAction:
        r = item.reservation
        amount = compute_late_checkout_fee(r, config, now)
        if amount <= 0 or self._billing is None:
            logger.info(f"Late checkout flagged for reservation {r.id} (no fee configured)")
            return SweepAction(r.id, item.task, SweepOutcome.FLAGGED, "No fee configured")

        added = self._billing.assess_late_checkout_fee(
            r, amount, config.late_checkout_fee_type, r.check_out.date(), item.reason,
        )
        if not added:
            return SweepAction(r.id, item.task, SweepOutcome.SKIPPED, "Late checkout fee already assessed")
        logger.info(f"Late checkout fee for reservation {r.id} now {amount} (+{added})")
        return SweepAction(r.id, item.task, SweepOutcome.FEE_ASSESSED, str(added))

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def prune_audit_log(self, property_id: int) -> int:
        """Apply the property's audit retention window. Returns the entries removed."""
        if self._audit is None:
            return 0
        config = self._config_source.load_automation_config(property_id)
        return self._audit.prune(property_id, config.audit_log_retention_days, self._clock())

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    @staticmethod
    def job_id(property_id: int) -> str:
        return f"automation-sweep-{property_id}"

    @staticmethod
    def prune_job_id(property_id: int) -> str:
        return f"audit-prune-{property_id}"

    def start(
        self,
        property_ids: Iterable[int],
        interval_seconds: int,
        property_source: Optional[Callable[[], Iterable[int]]] = None,
        refresh_seconds: int = 600,
    ) -> List[str]:
        """
        Register one interval sweep job per property (and a daily audit prune).

        Args:
            property_ids: Properties to sweep now
            interval_seconds: Seconds between sweeps of one property
            property_source: Returns the current property ids; when given, a
                refresh job re-reads it every ``refresh_seconds`` and calls
                ``sync`` so properties created or removed later are picked up
            refresh_seconds: Seconds between property refreshes

        Returns:
            Job ids registered for ``property_ids``
        """
        if self._backend is None:
            raise RuntimeError("No scheduler backend configured")

        with self._lock:
            self._interval_seconds = interval_seconds
        registered = self.sync(property_ids)

        if property_source is not None:
            self._backend.add_job(
                PROPERTY_REFRESH_JOB_ID, partial(self._scheduled_refresh, property_source),
                "interval", seconds=refresh_seconds,
            )
            with self._lock:
                self._job_ids.add(PROPERTY_REFRESH_JOB_ID)

        logger.info(f"Automation scheduled for {len(registered)} jobs every {interval_seconds}s")
        return registered

    def sync(self, property_ids: Iterable[int]) -> List[str]:
        """
        Reconcile the per-property jobs with ``property_ids``.

        New properties get their jobs, properties no longer listed lose them.
        Returns the job ids added.
        """
        if self._backend is None:
            raise RuntimeError("No scheduler backend configured")

        wanted = list(dict.fromkeys(property_ids))
        with self._lock:
            interval_seconds = self._interval_seconds
            if interval_seconds is None:
                raise RuntimeError("Automation has not been started")
            added = [p for p in wanted if p not in self._scheduled_properties]
            removed = sorted(self._scheduled_properties - set(wanted))
            current_jobs = set(self._job_ids)

        registered = []
        for property_id in added:
            self._backend.add_job(
                self.job_id(property_id), partial(self._scheduled_run, property_id),
                "interval", seconds=interval_seconds,
            )
            registered.append(self.job_id(property_id))
            if self._audit is not None:
                self._backend.add_job(
                    self.prune_job_id(property_id), partial(self._scheduled_prune, property_id),
                    "interval", hours=24,
                )
                registered.append(self.prune_job_id(property_id))

        unregistered = []
        for property_id in removed:
            for job_id in (self.job_id(property_id), self.prune_job_id(property_id)):
                if job_id in current_jobs:
                    self._backend.remove_job(job_id)
                    unregistered.append(job_id)

        with self._lock:
            self._scheduled_properties.update(added)
            self._scheduled_properties.difference_update(removed)
            self._job_ids.update(registered)
            self._job_ids.difference_update(unregistered)

        if added or removed:
            logger.info(f"Automation jobs synced: properties added {added}, removed {removed}")
        return registered

    def stop(self) -> None:
        if self._backend is None:
            return
        with self._lock:
            job_ids = sorted(self._job_ids)
            self._job_ids.clear()
            self._scheduled_properties.clear()
            self._interval_seconds = None
        for job_id in job_ids:
            self._backend.remove_job(job_id)
        logger.info(f"Automation stopped ({len(job_ids)} jobs removed)")

    def _scheduled_run(self, property_id: int) -> None:
        try:
            self.run_once(property_id)
        except Exception as e:
            logger.error(f"Scheduled sweep for property {property_id} crashed: {e}", exc_info=True)

    def _scheduled_prune(self, property_id: int) -> None:
        try:
            self.prune_audit_log(property_id)
        except Exception as e:
            logger.error(f"Audit prune for property {property_id} failed: {e}", exc_info=True)

    def _scheduled_refresh(self, property_source: Callable[[], Iterable[int]]) -> None:
        try:
            self.sync(property_source())
        except Exception as e:
            logger.error(f"Automation property refresh failed: {e}", exc_info=True)


__all__ = [
    "NO_SHOW_REASON",
    "TIMEOUT_REASON",
    "PROPERTY_REFRESH_JOB_ID",
    "SweepTask",
    "SweepOutcome",
    "SweepAction",
    "SweepReport",
    "AutomationScheduler",
    "is_automation_excluded",
]
