"""
lifecycle/domain/models.py

Value objects passed between the engine components.

All money fields are integers in the smallest currency unit. All timestamps
are naive UTC datetimes.
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Any, Dict, Optional
import uuid

from lifecycle.domain.enums import (
    DayTransitionIssueType,
    IssueSeverity,
    LateCheckoutFeeType,
    PaymentStatus,
    ReservationStatus,
)


@dataclass(frozen=True)
class ReservationRecord:
    """
    Snapshot of a reservation as read from the store.

    Records are immutable; the coordinator produces a new record for every
    realized transition.
    """

    id: int
    property_id: int
    status: ReservationStatus
    check_in: datetime
    check_out: datetime
    guest_name: Optional[str] = None
    organization_id: Optional[int] = None
    room_id: Optional[int] = None
    room_number: Optional[str] = None
    adults: int = 1
    children: int = 0
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    total_amount: int = 0
    paid_amount: int = 0
    amount_captured: int = 0
    deposit_amount: int = 0
    status_updated_by: Optional[int] = None
    status_updated_at: Optional[datetime] = None
    status_change_reason: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def party_size(self) -> int:
        return self.adults + self.children

    @property
    def nights(self) -> int:
        """Number of nights, at least one."""
        return max(1, (self.check_out.date() - self.check_in.date()).days)

    def with_changes(self, **changes: Any) -> "ReservationRecord":
        return replace(self, **changes)


@dataclass(frozen=True)
class StatusHistoryEntry:
    """
    One realized transition. Immutable and append-only.

    Attributes:
        reservation_id: Reservation the transition belongs to
        property_id: Owning property
        previous_status: Status before the change (None for creation)
        new_status: Status after the change
        changed_by: Acting user id, None for the system
        change_reason: Free-text reason
        is_automatic: True when initiated by the automation scheduler
        changed_at: When the change was written
        entry_id: Store-assigned identifier
    """

    reservation_id: int
    property_id: int
    previous_status: Optional[ReservationStatus]
    new_status: ReservationStatus
    changed_by: Optional[int]
    change_reason: Optional[str]
    is_automatic: bool
    changed_at: datetime
    entry_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.entry_id,
            "reservation_id": self.reservation_id,
            "property_id": self.property_id,
            "previous_status": self.previous_status.value if self.previous_status else None,
            "new_status": self.new_status.value,
            "changed_by": self.changed_by,
            "change_reason": self.change_reason,
            "is_automatic": self.is_automatic,
            "changed_at": self.changed_at.isoformat(),
        }


def parse_clock(value: str) -> time:
    """Parse an ``HH:MM`` property clock setting."""
    hour, minute = value.split(":", 1)
    return time(int(hour), int(minute))


@dataclass(frozen=True)
class AutomationConfig:
    """
    Per-property automation settings. Read-only input to the engine.

    Defaults apply to properties that never saved their automation settings.
    """

    property_id: int
    check_in_time: str = "15:00"
    check_out_time: str = "11:00"
    no_show_grace_hours: int = 6
    no_show_lookback_days: int = 3
    late_checkout_grace_hours: int = 2
    late_checkout_lookback_days: int = 2
    late_checkout_fee: int = 0
    late_checkout_fee_type: LateCheckoutFeeType = LateCheckoutFeeType.FLAT_RATE
    confirmation_pending_timeout_hours: int = 24
    audit_log_retention_days: int = 365
    early_checkin_warning_hours: int = 4
    enable_no_show_detection: bool = True
    enable_late_checkout_detection: bool = True
    enable_confirmation_timeout: bool = True

    @property
    def check_in_clock(self) -> time:
        return parse_clock(self.check_in_time)

    @property
    def check_out_clock(self) -> time:
        return parse_clock(self.check_out_time)


@dataclass(frozen=True)
class DayTransitionIssue:
    """A reservation state that conflicts with advancing the operational day."""

    reservation_id: int
    guest_name: str
    room_number: str
    severity: IssueSeverity
    issue_type: DayTransitionIssueType
    description: str
    payment_status: Optional[PaymentStatus] = None
    reservation_status: Optional[ReservationStatus] = None
    relevant_date: Optional[date] = None

    @property
    def is_blocking(self) -> bool:
        return self.severity == IssueSeverity.CRITICAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reservation_id": self.reservation_id,
            "guest_name": self.guest_name,
            "room_number": self.room_number,
            "severity": self.severity.value,
            "issue_type": self.issue_type.value,
            "description": self.description,
            "payment_status": self.payment_status.value if self.payment_status else None,
            "reservation_status": self.reservation_status.value if self.reservation_status else None,
            "relevant_date": self.relevant_date.isoformat() if self.relevant_date else None,
        }


@dataclass(frozen=True)
class StatusChangeEvent:
    """Outbound notification payload for a realized transition."""

    reservation_id: int
    old_status: Optional[ReservationStatus]
    new_status: ReservationStatus
    reason: Optional[str]
    property_id: int
    organization_id: Optional[int]
    is_automatic: bool
    occurred_at: datetime
    event_type: str = "reservation.status_changed"
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def subject(self) -> str:
        old = self.old_status.value if self.old_status else "NEW"
        return f"Reservation {self.reservation_id}: {old} -> {self.new_status.value}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "reservation_id": self.reservation_id,
            "old_status": self.old_status.value if self.old_status else None,
            "new_status": self.new_status.value,
            "reason": self.reason,
            "property_id": self.property_id,
            "organization_id": self.organization_id,
            "is_automatic": self.is_automatic,
            "occurred_at": self.occurred_at.isoformat(),
        }


__all__ = [
    "ReservationRecord",
    "StatusHistoryEntry",
    "AutomationConfig",
    "DayTransitionIssue",
    "StatusChangeEvent",
    "parse_clock",
]
