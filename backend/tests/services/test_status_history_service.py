"""
Status history (audit) service tests
"""
from datetime import datetime, timedelta

import pytest

from lifecycle.domain.enums import ReservationStatus as S
from lifecycle.domain.models import StatusHistoryEntry
from pms.services.audit_service import AuditService

BASE = datetime(2026, 3, 1, 8, 0)


def entry(reservation_id, changed_at, property_id=1, new_status=S.IN_HOUSE):
    return StatusHistoryEntry(
        reservation_id=reservation_id,
        property_id=property_id,
        previous_status=S.CONFIRMED,
        new_status=new_status,
        changed_by=7,
        change_reason="note",
        is_automatic=False,
        changed_at=changed_at,
    )


@pytest.fixture
def audit_service(session_factory, sample_property):
    return AuditService(session_factory)


class TestAuditService:

    def test_record_assigns_id(self, audit_service, add_reservation):
        row = add_reservation()
        stored = audit_service.record(entry(row.id, BASE))
        assert stored.entry_id is not None
        assert stored.change_reason == "note"

    def test_history_newest_first(self, audit_service, add_reservation):
        row = add_reservation()
        for i in range(5):
            audit_service.record(entry(row.id, BASE + timedelta(hours=i)))

        history = audit_service.history(row.id)
        times = [e.changed_at for e in history]

        assert len(history) == 5
        assert all(a > b for a, b in zip(times, times[1:]))

    def test_history_limit(self, audit_service, add_reservation):
        row = add_reservation()
        for i in range(5):
            audit_service.record(entry(row.id, BASE + timedelta(hours=i)))
        history = audit_service.history(row.id, limit=2)
        assert [e.changed_at for e in history] == [BASE + timedelta(hours=4), BASE + timedelta(hours=3)]

    def test_ties_broken_by_id(self, audit_service, add_reservation):
        row = add_reservation()
        audit_service.record(entry(row.id, BASE, new_status=S.IN_HOUSE))
        audit_service.record(entry(row.id, BASE, new_status=S.CHECKOUT_DUE))
        assert [e.new_status for e in audit_service.history(row.id)] == [S.CHECKOUT_DUE, S.IN_HOUSE]

    def test_non_positive_limit(self, audit_service):
        with pytest.raises(ValueError):
            audit_service.history(1, limit=0)

    def test_property_history(self, audit_service, add_reservation):
        first = add_reservation()
        second = add_reservation()
        audit_service.record(entry(first.id, BASE))
        audit_service.record(entry(second.id, BASE + timedelta(hours=1)))

        page = audit_service.history_for_property(1, limit=1, offset=1)
        assert [e.reservation_id for e in page] == [first.id]

    def test_prune(self, audit_service, add_reservation):
        row = add_reservation()
        now = BASE + timedelta(days=100)
        audit_service.record(entry(row.id, BASE))
        audit_service.record(entry(row.id, now - timedelta(days=1)))

        assert audit_service.prune(1, retention_days=30, now=now) == 1
        assert len(audit_service.history(row.id)) == 1
