"""
lifecycle/engine/audit.py

Audit trail - append-only record of realized status transitions.

Entries are never updated. The only deletion is retention pruning, a
maintenance task that the coordinator never calls.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from dataclasses import replace
from typing import Dict, List
import threading
import logging

from lifecycle.domain.models import StatusHistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


def _check_limit(limit: int) -> None:
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")


def history_sort_key(entry: StatusHistoryEntry):
    """Most recent first, ties broken by entry id."""
    return (entry.changed_at, entry.entry_id or 0)


class IAuditTrail(ABC):
    """Audit trail interface"""

    @abstractmethod
    def record(self, entry: StatusHistoryEntry) -> StatusHistoryEntry:
        """Append one entry and return it with its assigned id."""

    @abstractmethod
    def history(self, reservation_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> List[StatusHistoryEntry]:
        """Entries of a reservation, most recent first."""

    @abstractmethod
    def history_for_property(
        self, property_id: int, limit: int = DEFAULT_HISTORY_LIMIT, offset: int = 0
    ) -> List[StatusHistoryEntry]:
        """Entries of a property, most recent first."""

    @abstractmethod
    def prune(self, property_id: int, retention_days: int, now: datetime) -> int:
        """Delete entries older than the retention window. Returns the count removed."""


class AuditEngine(IAuditTrail):
    """
    In-memory audit trail.

    Example:
        >>> engine = AuditEngine()
        >>> stored = engine.record(entry)
        >>> engine.history(stored.reservation_id, limit=10)
    """

    def __init__(self):
        self._entries: List[StatusHistoryEntry] = []
        self._by_reservation: Dict[int, List[StatusHistoryEntry]] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def record(self, entry: StatusHistoryEntry) -> StatusHistoryEntry:
        with self._lock:
            stored = replace(entry, entry_id=self._next_id)
            self._next_id += 1
            self._entries.append(stored)
            self._by_reservation.setdefault(stored.reservation_id, []).append(stored)

        logger.debug(
            f"Audit: reservation {stored.reservation_id} "
            f"{stored.previous_status} -> {stored.new_status.value} by {stored.changed_by}"
        )
        return stored

    def history(self, reservation_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> List[StatusHistoryEntry]:
        _check_limit(limit)
        with self._lock:
            entries = list(self._by_reservation.get(reservation_id, []))
        entries.sort(key=history_sort_key, reverse=True)
        return entries[:limit]

    def history_for_property(
        self, property_id: int, limit: int = DEFAULT_HISTORY_LIMIT, offset: int = 0
    ) -> List[StatusHistoryEntry]:
        _check_limit(limit)
        with self._lock:
            entries = [e for e in self._entries if e.property_id == property_id]
        entries.sort(key=history_sort_key, reverse=True)
        return entries[offset: offset + limit]

    def prune(self, property_id: int, retention_days: int, now: datetime) -> int:
        cutoff = now - timedelta(days=retention_days)
        with self._lock:
            keep = [e for e in self._entries if e.property_id != property_id or e.changed_at >= cutoff]
            removed = len(self._entries) - len(keep)
            self._entries = keep
            self._by_reservation = {}
            for e in keep:
                self._by_reservation.setdefault(e.reservation_id, []).append(e)

        if removed:
            logger.info(f"Pruned {removed} audit entries for property {property_id} older than {cutoff}")
        return removed

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        """Clear all entries (for testing)."""
        with self._lock:
            self._entries.clear()
            self._by_reservation.clear()
            self._next_id = 1


__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "IAuditTrail",
    "AuditEngine",
    "history_sort_key",
]
