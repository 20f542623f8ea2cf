"""
Pytest configuration and shared fixtures
"""
import itertools
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lifecycle.domain.enums import PaymentStatus, ReservationStatus
from lifecycle.domain.models import ReservationRecord
from lifecycle.engine.audit import AuditEngine
from lifecycle.engine.coordinator import TransitionCoordinator
from lifecycle.notification.channel import NotificationChannelRegistry
from lifecycle.store import InMemoryBillingGateway, InMemoryReservationStore, StaticConfigSource
from pms.database import Base
from pms.models.ontology import Property, Reservation, Room
from pms.security.auth import create_access_token

# 2026-03-10 14:00 UTC, one hour before the default check-in
NOW = datetime(2026, 3, 10, 14, 0)


class FakeClock:
    """Settable clock; call it to read the time"""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def clean_channel_registry():
    """The channel registry is a process-wide singleton"""
    NotificationChannelRegistry().clear()
    yield
    NotificationChannelRegistry().clear()


@pytest.fixture
def clock():
    return FakeClock()


# ============== In-memory engine fixtures ==============

@pytest.fixture
def audit():
    return AuditEngine()


@pytest.fixture
def store(audit):
    return InMemoryReservationStore(audit)


@pytest.fixture
def config_source():
    return StaticConfigSource()


@pytest.fixture
def billing():
    return InMemoryBillingGateway()


@pytest.fixture
def coordinator(store, config_source, clock):
    return TransitionCoordinator(store, config_source, clock=clock)


@pytest.fixture
def make_reservation(store):
    """Add a reservation to the in-memory store; keyword arguments override the defaults"""
    ids = itertools.count(1)

    def _make(**overrides) -> ReservationRecord:
        values = dict(
            id=next(ids),
            property_id=1,
            organization_id=10,
            status=ReservationStatus.CONFIRMED,
            check_in=datetime(2026, 3, 10, 15, 0),
            check_out=datetime(2026, 3, 12, 11, 0),
            guest_name="Ada Lovelace",
            room_id=101,
            room_number="101",
            payment_status=PaymentStatus.PAID,
            total_amount=30000,
            paid_amount=30000,
            created_at=datetime(2026, 3, 1, 9, 0),
        )
        values.update(overrides)
        return store.add(ReservationRecord(**values))

    return _make


# ============== Database fixtures ==============

@pytest.fixture(scope="function")
def db_engine():
    """In-memory database engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def sample_property(db_session):
    """Property 1 with room 101"""
    prop = Property(id=1, organization_id=10, name="Harbour Hotel")
    db_session.add(prop)
    db_session.add(Room(id=101, property_id=1, room_number="101"))
    db_session.commit()
    return prop


@pytest.fixture
def add_reservation(db_session, sample_property):
    """Insert a reservation row; keyword arguments override the defaults"""

    def _add(**overrides) -> Reservation:
        values = dict(
            property_id=1,
            organization_id=10,
            room_id=101,
            guest_name="Ada Lovelace",
            check_in=datetime(2026, 3, 10, 15, 0),
            check_out=datetime(2026, 3, 12, 11, 0),
            status=ReservationStatus.CONFIRMED,
            payment_status=PaymentStatus.PAID,
            total_amount=30000,
            paid_amount=30000,
            created_at=datetime(2026, 3, 1, 9, 0),
        )
        values.update(overrides)
        row = Reservation(**values)
        db_session.add(row)
        db_session.commit()
        db_session.refresh(row)
        return row

    return _add


# ============== API fixtures ==============

@pytest.fixture
def lifecycle_engine(session_factory, clock):
    from pms.services.engine_factory import build_engine
    engine = build_engine(session_factory, clock=clock, channels=NotificationChannelRegistry())
    yield engine
    engine.shutdown()


@pytest.fixture
def client(lifecycle_engine):
    """Test client bound to the in-memory engine (lifespan not run)"""
    from pms.main import app
    from pms.services.engine_factory import set_engine
    set_engine(lifecycle_engine)
    yield TestClient(app)
    set_engine(None)


def _headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def manager_headers():
    return _headers(create_access_token(1, "PROPERTY_MGR", property_id=1, organization_id=10))


@pytest.fixture
def front_desk_headers():
    return _headers(create_access_token(2, "FRONT_DESK", property_id=1, organization_id=10))


@pytest.fixture
def housekeeping_headers():
    return _headers(create_access_token(3, "HOUSEKEEPING", property_id=1, organization_id=10))


@pytest.fixture
def other_property_headers():
    return _headers(create_access_token(4, "PROPERTY_MGR", property_id=2, organization_id=10))
