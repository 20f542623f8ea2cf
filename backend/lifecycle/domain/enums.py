"""
lifecycle/domain/enums.py

Enumerations shared by the lifecycle engine.
"""
from enum import Enum


class ReservationStatus(str, Enum):
    """Reservation status"""
    CONFIRMATION_PENDING = "CONFIRMATION_PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKIN_DUE = "CHECKIN_DUE"
    IN_HOUSE = "IN_HOUSE"
    CHECKOUT_DUE = "CHECKOUT_DUE"
    CHECKED_OUT = "CHECKED_OUT"
    NO_SHOW = "NO_SHOW"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    """Payment state as reported by the payment system (read-only here)"""
    UNPAID = "UNPAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class LateCheckoutFeeType(str, Enum):
    """How the late checkout fee amount is interpreted"""
    FLAT_RATE = "FLAT_RATE"
    HOURLY = "HOURLY"
    PERCENTAGE_OF_ROOM_RATE = "PERCENTAGE_OF_ROOM_RATE"
    PERCENTAGE_OF_TOTAL_BILL = "PERCENTAGE_OF_TOTAL_BILL"


class IssueSeverity(str, Enum):
    """Day-roll issue severity"""
    CRITICAL = "critical"  # blocks automatic day-roll
    WARNING = "warning"


class DayTransitionIssueType(str, Enum):
    """Day-roll issue types"""
    OVERSTAY_UNRESOLVED = "OVERSTAY_UNRESOLVED"
    CHECKOUT_DUE_NOT_COMPLETED = "CHECKOUT_DUE_NOT_COMPLETED"
    PENDING_CONFIRMATION_ARRIVAL = "PENDING_CONFIRMATION_ARRIVAL"
    LATE_CHECKOUT_FEE_ASSESSED = "LATE_CHECKOUT_FEE_ASSESSED"
    CHECKOUT_DUE_TODAY = "CHECKOUT_DUE_TODAY"
    ARRIVAL_NOT_PROCESSED = "ARRIVAL_NOT_PROCESSED"
    PARTIAL_PAYMENT = "PARTIAL_PAYMENT"


__all__ = [
    "ReservationStatus",
    "PaymentStatus",
    "LateCheckoutFeeType",
    "IssueSeverity",
    "DayTransitionIssueType",
]
