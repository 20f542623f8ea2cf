"""
lifecycle/engine/day_roll.py

Day-roll checker - reservation states that conflict with advancing the
operational day. Critical issues block an automatic day-roll; warnings do
not. Pure read: nothing is mutated here.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional
import logging

from lifecycle.domain.enums import (
    DayTransitionIssueType,
    IssueSeverity,
    PaymentStatus,
    ReservationStatus,
)
from lifecycle.domain.models import DayTransitionIssue, ReservationRecord
from lifecycle.ports import IBillingGateway, IReservationStore

logger = logging.getLogger(__name__)

S = ReservationStatus
UNKNOWN_GUEST = "Unknown guest"
UNASSIGNED_ROOM = "Unassigned"


@dataclass
class DayRollReport:
    """Issues for one candidate day"""

    property_id: int
    candidate_date: date
    closing_date: date
    issues: List[DayTransitionIssue] = field(default_factory=list)

    @property
    def critical_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == IssueSeverity.CRITICAL)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == IssueSeverity.WARNING)

    @property
    def can_advance(self) -> bool:
        return self.critical_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "property_id": self.property_id,
            "candidate_date": self.candidate_date.isoformat(),
            "closing_date": self.closing_date.isoformat(),
            "can_advance": self.can_advance,
            "critical_count": self.critical_count,
            "warning_count": self.warning_count,
            "issues": [i.to_dict() for i in self.issues],
        }


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _issue_sort_key(issue: DayTransitionIssue):
    severity_rank = 0 if issue.severity == IssueSeverity.CRITICAL else 1
    return (severity_rank, issue.guest_name.lower(), issue.reservation_id)


class DayRollChecker:
    """
    Computes day-roll issues for a property.

    The closing day is the day before ``candidate_date``: advancing to the
    candidate means closing out everything scheduled up to and including it.

    Example:
        >>> checker = DayRollChecker(store, billing)
        >>> report = checker.check(property_id=1, candidate_date=date(2026, 3, 2))
        >>> report.can_advance
    """

    def __init__(self, store: IReservationStore, billing: Optional[IBillingGateway] = None):
        self._store = store
        self._billing = billing

    def compute_day_roll_issues(self, property_id: int, candidate_date: date) -> List[DayTransitionIssue]:
        closing = candidate_date - timedelta(days=1)
        candidate_start = _start_of(candidate_date)
        issues: List[DayTransitionIssue] = []

        departures = self._store.list_by_status(
            property_id, [S.IN_HOUSE, S.CHECKOUT_DUE], check_out_to=candidate_start
        )
        for r in departures:
            issues.append(self._departure_issue(r, closing))

        pending = self._store.list_by_status(
            property_id, [S.CONFIRMATION_PENDING], check_in_to=candidate_start
        )
        for r in pending:
            issues.append(self._issue(
                r, IssueSeverity.CRITICAL, DayTransitionIssueType.PENDING_CONFIRMATION_ARRIVAL,
                f"Arrival on {r.check_in.date().isoformat()} is still awaiting confirmation",
                r.check_in.date(),
            ))

        arrivals = self._store.list_by_status(
            property_id, [S.CONFIRMED, S.CHECKIN_DUE], check_in_to=candidate_start
        )
        for r in arrivals:
            issues.append(self._issue(
                r, IssueSeverity.WARNING, DayTransitionIssueType.ARRIVAL_NOT_PROCESSED,
                f"Expected arrival on {r.check_in.date().isoformat()} has not checked in or been marked no-show",
                r.check_in.date(),
            ))

        closing_departures = self._store.list_by_status(
            property_id, [S.IN_HOUSE, S.CHECKED_OUT],
            check_out_from=_start_of(closing), check_out_to=candidate_start,
        )
        for r in closing_departures:
            if r.payment_status == PaymentStatus.PARTIALLY_PAID:
                issues.append(self._issue(
                    r, IssueSeverity.WARNING, DayTransitionIssueType.PARTIAL_PAYMENT,
                    f"Balance of {max(0, r.total_amount - r.paid_amount)} outstanding",
                    r.check_out.date(),
                ))

        issues.sort(key=_issue_sort_key)
        return issues

    def check(self, property_id: int, candidate_date: date) -> DayRollReport:
        issues = self.compute_day_roll_issues(property_id, candidate_date)
        report = DayRollReport(
            property_id=property_id,
            candidate_date=candidate_date,
            closing_date=candidate_date - timedelta(days=1),
            issues=issues,
        )
        logger.info(
            f"Day-roll check property {property_id} -> {candidate_date}: "
            f"{report.critical_count} critical, {report.warning_count} warnings"
        )
        return report

    def _departure_issue(self, r: ReservationRecord, closing: date) -> DayTransitionIssue:
        checkout_day = r.check_out.date()
        if r.status == S.CHECKOUT_DUE and checkout_day < closing:
            return self._issue(
                r, IssueSeverity.CRITICAL, DayTransitionIssueType.CHECKOUT_DUE_NOT_COMPLETED,
                f"Checkout due on {checkout_day.isoformat()} was never completed",
                checkout_day,
            )
        if self._billing is not None and self._billing.has_late_checkout_charge(r.id):
            return self._issue(
                r, IssueSeverity.WARNING, DayTransitionIssueType.LATE_CHECKOUT_FEE_ASSESSED,
                "Guest is past checkout; a late checkout fee has been assessed",
                checkout_day,
            )
        if r.status == S.CHECKOUT_DUE:
            return self._issue(
                r, IssueSeverity.WARNING, DayTransitionIssueType.CHECKOUT_DUE_TODAY,
                "Guest is marked for checkout but has not yet checked out",
                checkout_day,
            )
        return self._issue(
            r, IssueSeverity.CRITICAL, DayTransitionIssueType.OVERSTAY_UNRESOLVED,
            f"Guest was due to check out on {checkout_day.isoformat()} and is still in house",
            checkout_day,
        )

    @staticmethod
    def _issue(
        r: ReservationRecord,
        severity: IssueSeverity,
        issue_type: DayTransitionIssueType,
        description: str,
        relevant_date: date,
    ) -> DayTransitionIssue:
        return DayTransitionIssue(
            reservation_id=r.id,
            guest_name=r.guest_name or UNKNOWN_GUEST,
            room_number=r.room_number or UNASSIGNED_ROOM,
            severity=severity,
            issue_type=issue_type,
            description=description,
            payment_status=r.payment_status,
            reservation_status=r.status,
            relevant_date=relevant_date,
        )


__all__ = ["DayRollReport", "DayRollChecker"]
