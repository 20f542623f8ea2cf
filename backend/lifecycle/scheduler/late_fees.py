"""
lifecycle/scheduler/late_fees.py

Late checkout deadline and fee computation.
"""
from datetime import datetime, timedelta
import math

from lifecycle.domain.enums import LateCheckoutFeeType
from lifecycle.domain.models import AutomationConfig, ReservationRecord


def checkout_deadline(reservation: ReservationRecord, config: AutomationConfig) -> datetime:
    """Property check-out time on the check-out date, plus the grace period."""
    scheduled = datetime.combine(reservation.check_out.date(), config.check_out_clock)
    return scheduled + timedelta(hours=config.late_checkout_grace_hours)


def hours_overdue(reservation: ReservationRecord, config: AutomationConfig, now: datetime) -> int:
    """Started hours past the deadline, 0 when not overdue."""
    overdue = now - checkout_deadline(reservation, config)
    if overdue <= timedelta(0):
        return 0
    return math.ceil(overdue.total_seconds() / 3600)


def compute_late_checkout_fee(reservation: ReservationRecord, config: AutomationConfig, now: datetime) -> int:
    """
    Fee in the smallest currency unit.

    FLAT_RATE charges ``late_checkout_fee`` once. HOURLY charges it per
    started hour past the deadline. The percentage types treat
    ``late_checkout_fee`` as a whole percentage of the nightly rate or of the
    total bill. Integer arithmetic throughout, rounding down.
    """
    fee = config.late_checkout_fee
    if fee <= 0:
        return 0

    fee_type = config.late_checkout_fee_type
    if fee_type == LateCheckoutFeeType.FLAT_RATE:
        return fee
    if fee_type == LateCheckoutFeeType.HOURLY:
        return fee * max(1, hours_overdue(reservation, config, now))
    if fee_type == LateCheckoutFeeType.PERCENTAGE_OF_ROOM_RATE:
        nightly_rate = reservation.total_amount // reservation.nights
        return nightly_rate * fee // 100
    if fee_type == LateCheckoutFeeType.PERCENTAGE_OF_TOTAL_BILL:
        return reservation.total_amount * fee // 100
    raise ValueError(f"Unknown late checkout fee type: {fee_type}")


__all__ = ["checkout_deadline", "hours_overdue", "compute_late_checkout_fee"]
