"""
Property operations API tests
Covers the day-roll check, the property history and manual automation runs.
"""
from datetime import datetime

from lifecycle.domain.enums import ReservationStatus as S


class TestDayRoll:

    def test_blocking_issue(self, client, manager_headers, add_reservation):
        row = add_reservation(status=S.CONFIRMATION_PENDING, paid_amount=0)

        response = client.get("/properties/1/day-roll?candidate_date=2026-03-11", headers=manager_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["can_advance"] is False
        assert data["closing_date"] == "2026-03-10"
        assert data["critical_count"] == 1
        issue = data["issues"][0]
        assert issue["reservation_id"] == row.id
        assert issue["issue_type"] == "PENDING_CONFIRMATION_ARRIVAL"
        assert issue["room_number"] == "101"

    def test_clear_day(self, client, manager_headers, sample_property):
        response = client.get("/properties/1/day-roll?candidate_date=2026-03-11", headers=manager_headers)
        assert response.json()["can_advance"] is True
        assert response.json()["issues"] == []

    def test_other_property_forbidden(self, client, other_property_headers, sample_property):
        response = client.get("/properties/1/day-roll?candidate_date=2026-03-11", headers=other_property_headers)
        assert response.status_code == 403


class TestPropertyHistory:

    def test_recent_changes(self, client, manager_headers, add_reservation, clock):
        first = add_reservation()
        second = add_reservation()
        client.patch(f"/reservations/{first.id}/status", json={"status": "IN_HOUSE"}, headers=manager_headers)
        clock.advance(minutes=5)
        client.patch(f"/reservations/{second.id}/status", json={"status": "IN_HOUSE"}, headers=manager_headers)

        response = client.get("/properties/1/status-history?limit=10", headers=manager_headers)

        assert response.status_code == 200
        assert [h["reservation_id"] for h in response.json()] == [second.id, first.id]


class TestAutomationRun:

    def test_dry_run(self, client, manager_headers, add_reservation, lifecycle_engine):
        row = add_reservation()

        response = client.post("/properties/1/automation/run", json={"dry_run": True}, headers=manager_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["dry_run"] is True
        assert data["actions"] == [
            {"reservation_id": row.id, "task": "checkin_due", "outcome": "candidate", "detail": "CHECKIN_DUE"},
        ]
        assert lifecycle_engine.store.get(row.id).status == S.CONFIRMED

    def test_run(self, client, manager_headers, add_reservation, lifecycle_engine, clock):
        row = add_reservation()
        clock.now = datetime(2026, 3, 10, 22, 0)

        response = client.post("/properties/1/automation/run", headers=manager_headers)

        assert response.status_code == 200
        assert response.json()["transitioned"] == 1
        assert lifecycle_engine.store.get(row.id).status == S.NO_SHOW

    def test_front_desk_forbidden(self, client, front_desk_headers, sample_property):
        response = client.post("/properties/1/automation/run", headers=front_desk_headers)
        assert response.status_code == 403
