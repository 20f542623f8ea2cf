"""
SQLAlchemy reservation store tests
"""
import threading
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lifecycle.domain.enums import PaymentStatus, ReservationStatus as S
from lifecycle.domain.models import StatusHistoryEntry
from lifecycle.engine.coordinator import TransitionCoordinator
from lifecycle.engine.result import Conflict, Success
from pms.database import Base
from pms.models.ontology import Property, Reservation, ReservationStatusHistory, Room
from pms.services.reservation_store import SqlReservationStore
from pms.services.settings_loader import PropertySettingsLoader

NOW = datetime(2026, 3, 10, 14, 0)


def history_entry(reservation_id, previous=S.CONFIRMED, new=S.IN_HOUSE):
    return StatusHistoryEntry(
        reservation_id=reservation_id,
        property_id=1,
        previous_status=previous,
        new_status=new,
        changed_by=7,
        change_reason="Guest arrived",
        is_automatic=False,
        changed_at=NOW,
    )


@pytest.fixture
def sql_store(session_factory):
    return SqlReservationStore(session_factory)


class TestSqlReservationStore:

    def test_get(self, sql_store, add_reservation):
        row = add_reservation()
        record = sql_store.get(row.id)

        assert record.status == S.CONFIRMED
        assert record.room_number == "101"
        assert record.total_amount == 30000
        assert record.check_in == datetime(2026, 3, 10, 15, 0)

    def test_get_missing(self, sql_store, sample_property):
        assert sql_store.get(404) is None

    def test_apply_transition_writes_row_and_history(self, sql_store, add_reservation, db_session):
        row = add_reservation()
        changes = {"status": S.IN_HOUSE, "status_updated_by": 7, "status_updated_at": NOW, "checked_in_at": NOW}

        record, entry = sql_store.apply_transition(row.id, S.CONFIRMED, changes, history_entry(row.id))

        assert record.status == S.IN_HOUSE
        assert record.checked_in_at == NOW
        assert entry.entry_id is not None
        db_session.expire_all()
        assert db_session.get(Reservation, row.id).status == S.IN_HOUSE
        assert db_session.query(ReservationStatusHistory).count() == 1

    def test_stale_expected_status_writes_nothing(self, sql_store, add_reservation, db_session):
        row = add_reservation(status=S.IN_HOUSE)

        applied = sql_store.apply_transition(
            row.id, S.CONFIRMED, {"status": S.CANCELLED}, history_entry(row.id, new=S.CANCELLED),
        )

        assert applied is None
        db_session.expire_all()
        assert db_session.get(Reservation, row.id).status == S.IN_HOUSE
        assert db_session.query(ReservationStatusHistory).count() == 0

    def test_rejects_other_columns(self, sql_store, add_reservation):
        row = add_reservation()
        with pytest.raises(ValueError):
            sql_store.apply_transition(
                row.id, S.CONFIRMED, {"status": S.IN_HOUSE, "paid_amount": 0}, history_entry(row.id),
            )

    def test_list_by_status_bounds(self, sql_store, add_reservation):
        today = add_reservation(check_in=datetime(2026, 3, 10, 15, 0))
        add_reservation(check_in=datetime(2026, 3, 11, 15, 0))
        add_reservation(check_in=datetime(2026, 3, 10, 9, 0), status=S.IN_HOUSE)
        add_reservation(check_in=datetime(2026, 3, 10, 15, 0), property_id=2)

        records = sql_store.list_by_status(
            1, [S.CONFIRMED],
            check_in_from=datetime(2026, 3, 10), check_in_to=datetime(2026, 3, 11),
        )

        assert [r.id for r in records] == [today.id]
        assert records[0].room_number == "101"

    def test_list_without_room(self, sql_store, add_reservation):
        add_reservation(room_id=None)
        records = sql_store.list_by_status(1, [S.CONFIRMED])
        assert records[0].room_number is None


class TestCoordinatorOnDatabase:

    def test_transition_round_trip(self, session_factory, add_reservation, db_session, clock):
        row = add_reservation()
        store = SqlReservationStore(session_factory)
        coordinator = TransitionCoordinator(store, PropertySettingsLoader(session_factory), clock=clock)

        result = coordinator.transition(row.id, "IN_HOUSE", "Guest arrived", 7, "FRONT_DESK", False)

        assert isinstance(result, Success)
        assert result.history_entry.entry_id is not None
        db_session.expire_all()
        stored = db_session.get(Reservation, row.id)
        assert stored.status == S.IN_HOUSE
        assert stored.status_updated_by == 7
        assert stored.checked_in_at == clock.now
        assert [h.new_status for h in stored.history] == [S.IN_HOUSE]

    def test_concurrent_update_detected(self, session_factory, add_reservation, db_session, clock):
        row = add_reservation()
        stale = SqlReservationStore(session_factory).get(row.id)

        # Another writer moves the reservation after our read
        db_session.query(Reservation).filter(Reservation.id == row.id).update({"status": S.CANCELLED})
        db_session.commit()

        class Snapshot(SqlReservationStore):
            def get(self, reservation_id):
                return stale

        coordinator = TransitionCoordinator(
            Snapshot(session_factory), PropertySettingsLoader(session_factory), clock=clock,
        )
        result = coordinator.transition(row.id, S.IN_HOUSE, None, 7, "FRONT_DESK", False)

        assert isinstance(result, Conflict)
        assert db_session.query(ReservationStatusHistory).count() == 0


@pytest.fixture
def file_session_factory(tmp_path):
    """File database so each thread gets its own connection"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


class TestConcurrentTransitionsOnDatabase:

    def test_competing_targets_apply_once(self, file_session_factory, clock):
        db = file_session_factory()
        db.add(Property(id=1, organization_id=10, name="Harbour Hotel"))
        db.add(Room(id=101, property_id=1, room_number="101"))
        row = Reservation(
            property_id=1, organization_id=10, room_id=101, guest_name="Ada Lovelace",
            check_in=clock.now - timedelta(hours=2), check_out=clock.now + timedelta(days=2),
            status=S.CHECKIN_DUE, payment_status=PaymentStatus.PAID, total_amount=30000, paid_amount=30000,
        )
        db.add(row)
        db.commit()
        reservation_id = row.id
        db.close()

        store = SqlReservationStore(file_session_factory)
        config_source = PropertySettingsLoader(file_session_factory)
        targets = [S.IN_HOUSE, S.NO_SHOW, S.CANCELLED] * 4
        results = []
        results_lock = threading.Lock()
        barrier = threading.Barrier(len(targets))

        def worker(user_id, target):
            # One coordinator per caller: the conditional UPDATE is the only guard
            coordinator = TransitionCoordinator(store, config_source, clock=clock)
            barrier.wait()
            result = coordinator.transition(reservation_id, target, None, user_id, "FRONT_DESK", False)
            with results_lock:
                results.append(result)

        threads = [threading.Thread(target=worker, args=(i, t)) for i, t in enumerate(targets)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        successes = [res for res in results if isinstance(res, Success)]
        assert len(successes) == 1

        db = file_session_factory()
        try:
            out_of_due = (
                db.query(ReservationStatusHistory)
                .filter(ReservationStatusHistory.previous_status == S.CHECKIN_DUE)
                .all()
            )
            assert [h.new_status for h in out_of_due] == [successes[0].reservation.status]
            assert db.get(Reservation, reservation_id).status == successes[0].reservation.status
        finally:
            db.close()
