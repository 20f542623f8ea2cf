"""
lifecycle/store.py

In-memory implementations of the engine ports.

Used for embedding the engine without a database and throughout the engine
tests. The pms package provides the SQLAlchemy implementations.
"""
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
import threading
import logging

from lifecycle.domain.enums import LateCheckoutFeeType, ReservationStatus
from lifecycle.domain.models import AutomationConfig, ReservationRecord, StatusHistoryEntry
from lifecycle.engine.audit import AuditEngine
from lifecycle.ports import IBillingGateway, IConfigSource, IReservationStore

logger = logging.getLogger(__name__)


def within(value: datetime, lower: Optional[datetime], upper: Optional[datetime]) -> bool:
    """Inclusive lower, exclusive upper; None bounds are open."""
    if lower is not None and value < lower:
        return False
    if upper is not None and value >= upper:
        return False
    return True


class InMemoryReservationStore(IReservationStore):
    """
    Dict-backed reservation store writing history into an AuditEngine.

    Example:
        >>> audit = AuditEngine()
        >>> store = InMemoryReservationStore(audit)
        >>> store.add(ReservationRecord(id=1, property_id=1, ...))
    """

    def __init__(self, audit: Optional[AuditEngine] = None):
        self._audit = audit or AuditEngine()
        self._records: Dict[int, ReservationRecord] = {}
        self._lock = threading.Lock()

    @property
    def audit(self) -> AuditEngine:
        return self._audit

    def add(self, record: ReservationRecord) -> ReservationRecord:
        with self._lock:
            self._records[record.id] = record
        return record

    def get(self, reservation_id: int) -> Optional[ReservationRecord]:
        with self._lock:
            return self._records.get(reservation_id)

    def apply_transition(
        self,
        reservation_id: int,
        expected_status: ReservationStatus,
        changes: Dict[str, Any],
        entry: StatusHistoryEntry,
    ) -> Optional[Tuple[ReservationRecord, StatusHistoryEntry]]:
        with self._lock:
            current = self._records.get(reservation_id)
            if current is None or current.status != expected_status:
                return None
            updated = current.with_changes(**changes)
            stored = self._audit.record(entry)
            self._records[reservation_id] = updated
        return updated, stored

    def list_by_status(
        self,
        property_id: int,
        statuses: Iterable[ReservationStatus],
        *,
        check_in_from: Optional[datetime] = None,
        check_in_to: Optional[datetime] = None,
        check_out_from: Optional[datetime] = None,
        check_out_to: Optional[datetime] = None,
    ) -> List[ReservationRecord]:
        wanted = set(statuses)
        with self._lock:
            records = list(self._records.values())
        return sorted(
            (
                r for r in records
                if r.property_id == property_id
                and r.status in wanted
                and within(r.check_in, check_in_from, check_in_to)
                and within(r.check_out, check_out_from, check_out_to)
            ),
            key=lambda r: r.id,
        )


class StaticConfigSource(IConfigSource):
    """Fixed per-property configs, defaults for everything else."""

    def __init__(self, configs: Optional[Dict[int, AutomationConfig]] = None):
        self._configs = dict(configs or {})
        self.loads = 0

    def set(self, config: AutomationConfig) -> None:
        self._configs[config.property_id] = config

    def load_automation_config(self, property_id: int) -> AutomationConfig:
        self.loads += 1
        return self._configs.get(property_id) or AutomationConfig(property_id=property_id)


class InMemoryBillingGateway(IBillingGateway):
    """Records late checkout charges in a dict keyed by (reservation, business date)."""

    def __init__(self):
        self.charges: Dict[Tuple[int, date], Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def assess_late_checkout_fee(
        self,
        reservation: ReservationRecord,
        amount: int,
        fee_type: LateCheckoutFeeType,
        business_date: date,
        reason: str,
    ) -> int:
        key = (reservation.id, business_date)
        with self._lock:
            billed = self.charges.get(key, {}).get("amount", 0)
            if amount <= billed:
                return 0
            self.charges[key] = {"amount": amount, "fee_type": fee_type, "reason": reason}
        logger.info(f"Late checkout fee raised to {amount} on reservation {reservation.id}")
        return amount - billed

    def has_late_checkout_charge(self, reservation_id: int, business_date: Optional[date] = None) -> bool:
        with self._lock:
            keys: Set[Tuple[int, date]] = set(self.charges)
        if business_date is not None:
            return (reservation_id, business_date) in keys
        return any(rid == reservation_id for rid, _ in keys)


__all__ = [
    "InMemoryReservationStore",
    "StaticConfigSource",
    "InMemoryBillingGateway",
    "within",
]
