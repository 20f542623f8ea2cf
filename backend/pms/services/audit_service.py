"""
Status history audit service
Implements the engine's IAuditTrail on the reservation_status_history table.
Entries are only ever inserted; retention pruning is the single delete path.
"""
import logging
from datetime import datetime, timedelta
from typing import List

from sqlalchemy.orm import Session, sessionmaker

from lifecycle.domain.models import StatusHistoryEntry
from lifecycle.engine.audit import DEFAULT_HISTORY_LIMIT, IAuditTrail
from pms.models.ontology import ReservationStatusHistory
from pms.services.reservation_store import history_row, to_entry

logger = logging.getLogger(__name__)

_NEWEST_FIRST = (ReservationStatusHistory.changed_at.desc(), ReservationStatusHistory.id.desc())


class AuditService(IAuditTrail):
    """Reservation status history queries"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def record(self, entry: StatusHistoryEntry) -> StatusHistoryEntry:
        db: Session = self._session_factory()
        try:
            row = history_row(entry)
            db.add(row)
            db.commit()
            db.refresh(row)
            return to_entry(row)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def history(self, reservation_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> List[StatusHistoryEntry]:
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        db: Session = self._session_factory()
        try:
            rows = (
                db.query(ReservationStatusHistory)
                .filter(ReservationStatusHistory.reservation_id == reservation_id)
                .order_by(*_NEWEST_FIRST)
                .limit(limit)
                .all()
            )
            return [to_entry(r) for r in rows]
        finally:
            db.close()

    def history_for_property(
        self, property_id: int, limit: int = DEFAULT_HISTORY_LIMIT, offset: int = 0
    ) -> List[StatusHistoryEntry]:
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        db: Session = self._session_factory()
        try:
            rows = (
                db.query(ReservationStatusHistory)
                .filter(ReservationStatusHistory.property_id == property_id)
                .order_by(*_NEWEST_FIRST)
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [to_entry(r) for r in rows]
        finally:
            db.close()

    def prune(self, property_id: int, retention_days: int, now: datetime) -> int:
        cutoff = now - timedelta(days=retention_days)
        db: Session = self._session_factory()
        try:
            removed = (
                db.query(ReservationStatusHistory)
                .filter(
                    ReservationStatusHistory.property_id == property_id,
                    ReservationStatusHistory.changed_at < cutoff,
                )
                .delete(synchronize_session=False)
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        if removed:
            logger.info(f"Pruned {removed} status history rows for property {property_id} older than {cutoff}")
        return removed
