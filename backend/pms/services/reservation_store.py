"""
SQLAlchemy reservation store
Implements the engine's IReservationStore. Each call opens its own session
from the factory, so the store can be shared by scheduler worker threads.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session, sessionmaker

from lifecycle.domain.enums import ReservationStatus
from lifecycle.domain.models import ReservationRecord, StatusHistoryEntry
from lifecycle.ports import IReservationStore
from pms.models.ontology import Reservation, ReservationStatusHistory, Room

logger = logging.getLogger(__name__)

# Columns the coordinator is allowed to write
WRITABLE_COLUMNS = frozenset({
    "status",
    "status_updated_by",
    "status_updated_at",
    "status_change_reason",
    "checked_in_at",
    "checked_out_at",
})


def to_record(row: Reservation, room_number: Optional[str] = None) -> ReservationRecord:
    """ORM row -> immutable engine record"""
    if room_number is None and row.room is not None:
        room_number = row.room.room_number
    return ReservationRecord(
        id=row.id,
        property_id=row.property_id,
        status=row.status,
        check_in=row.check_in,
        check_out=row.check_out,
        guest_name=row.guest_name,
        organization_id=row.organization_id,
        room_id=row.room_id,
        room_number=room_number,
        adults=row.adults or 0,
        children=row.children or 0,
        payment_status=row.payment_status,
        total_amount=row.total_amount or 0,
        paid_amount=row.paid_amount or 0,
        amount_captured=row.amount_captured or 0,
        deposit_amount=row.deposit_amount or 0,
        status_updated_by=row.status_updated_by,
        status_updated_at=row.status_updated_at,
        status_change_reason=row.status_change_reason,
        checked_in_at=row.checked_in_at,
        checked_out_at=row.checked_out_at,
        created_at=row.created_at,
    )


def to_entry(row: ReservationStatusHistory) -> StatusHistoryEntry:
    """ORM row -> immutable history entry"""
    return StatusHistoryEntry(
        reservation_id=row.reservation_id,
        property_id=row.property_id,
        previous_status=row.previous_status,
        new_status=row.new_status,
        changed_by=row.changed_by,
        change_reason=row.change_reason,
        is_automatic=bool(row.is_automatic),
        changed_at=row.changed_at,
        entry_id=row.id,
    )


def history_row(entry: StatusHistoryEntry) -> ReservationStatusHistory:
    return ReservationStatusHistory(
        reservation_id=entry.reservation_id,
        property_id=entry.property_id,
        previous_status=entry.previous_status,
        new_status=entry.new_status,
        changed_by=entry.changed_by,
        change_reason=entry.change_reason,
        is_automatic=entry.is_automatic,
        changed_at=entry.changed_at,
    )


class SqlReservationStore(IReservationStore):
    """Reservation store backed by the reservations table"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, reservation_id: int) -> Optional[ReservationRecord]:
        db: Session = self._session_factory()
        try:
            row = db.get(Reservation, reservation_id)
            return to_record(row) if row else None
        finally:
            db.close()

    def apply_transition(
        self,
        reservation_id: int,
        expected_status: ReservationStatus,
        changes: Dict[str, Any],
        entry: StatusHistoryEntry,
    ) -> Optional[Tuple[ReservationRecord, StatusHistoryEntry]]:
        unknown = set(changes) - WRITABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns not writable by a transition: {sorted(unknown)}")

        db: Session = self._session_factory()
        try:
            # Compare-and-set: only applies while the status is still the one validated
            result = db.execute(
                update(Reservation)
                .where(Reservation.id == reservation_id, Reservation.status == expected_status)
                .values(**changes)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.rollback()
                return None

            row = history_row(entry)
            db.add(row)
            db.commit()

            reservation = db.get(Reservation, reservation_id)
            db.refresh(reservation)
            return to_record(reservation), to_entry(row)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

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
        db: Session = self._session_factory()
        try:
            query = (
                db.query(Reservation, Room.room_number)
                .outerjoin(Room, Reservation.room_id == Room.id)
                .filter(Reservation.property_id == property_id)
                .filter(Reservation.status.in_(list(statuses)))
            )
            if check_in_from is not None:
                query = query.filter(Reservation.check_in >= check_in_from)
            if check_in_to is not None:
                query = query.filter(Reservation.check_in < check_in_to)
            if check_out_from is not None:
                query = query.filter(Reservation.check_out >= check_out_from)
            if check_out_to is not None:
                query = query.filter(Reservation.check_out < check_out_to)
            return [
                to_record(row, room_number=room_number or None)
                for row, room_number in query.order_by(Reservation.id).all()
            ]
        finally:
            db.close()


__all__ = ["SqlReservationStore", "to_record", "to_entry", "history_row", "WRITABLE_COLUMNS"]
