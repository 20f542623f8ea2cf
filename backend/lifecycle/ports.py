"""
Storage, configuration and billing ports - storage-agnostic interfaces

The pms layer implements these against SQLAlchemy; the engine only ever
talks to the interfaces.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from lifecycle.domain.enums import LateCheckoutFeeType, ReservationStatus
from lifecycle.domain.models import AutomationConfig, ReservationRecord, StatusHistoryEntry


class IReservationStore(ABC):
    """Reservation store interface"""

    @abstractmethod
    def get(self, reservation_id: int) -> Optional[ReservationRecord]:
        """Load a reservation snapshot, None when it does not exist."""

    @abstractmethod
    def apply_transition(
        self,
        reservation_id: int,
        expected_status: ReservationStatus,
        changes: Dict[str, Any],
        entry: StatusHistoryEntry,
    ) -> Optional[Tuple[ReservationRecord, StatusHistoryEntry]]:
        """Compare-and-set the reservation and append the history entry atomically.

        The write applies only while the stored status still equals
        ``expected_status``. Both the update and the append happen, or neither.

        Args:
            reservation_id: Reservation to update
            expected_status: Status read before validation
            changes: Column values to write (status, status_updated_*, checked_*_at)
            entry: History entry to append

        Returns:
            The updated record and the stored entry, or None on a stale read
        """

    @abstractmethod
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
        """Reservations of a property in any of ``statuses``.

        Bounds are inclusive lower / exclusive upper and are skipped when None.
        """


class IConfigSource(ABC):
    """Property automation configuration source"""

    @abstractmethod
    def load_automation_config(self, property_id: int) -> AutomationConfig:
        """Load the automation settings of a property (defaults when unset)."""


class IBillingGateway(ABC):
    """Billing side effects triggered by automation"""

    @abstractmethod
    def assess_late_checkout_fee(
        self,
        reservation: ReservationRecord,
        amount: int,
        fee_type: LateCheckoutFeeType,
        business_date: date,
        reason: str,
    ) -> int:
        """Raise the late checkout charge of a business date to ``amount``.

        One charge exists per reservation and business date. Its amount only
        grows, so an hourly fee re-assessed on a later sweep bills the extra
        hours and an unchanged fee bills nothing.

        Returns:
            The amount added by this call, 0 when the charge already covered it
        """

    @abstractmethod
    def has_late_checkout_charge(self, reservation_id: int, business_date: Optional[date] = None) -> bool:
        """Whether a late checkout charge exists (for ``business_date`` when given)."""


__all__ = ["IReservationStore", "IConfigSource", "IBillingGateway"]
