"""
Late checkout billing service
Implements the engine's IBillingGateway. The engine only records charges;
collecting them is the payment system's job.
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from lifecycle.domain.enums import LateCheckoutFeeType
from lifecycle.domain.models import ReservationRecord
from lifecycle.ports import IBillingGateway
from pms.models.ontology import LateCheckoutCharge

logger = logging.getLogger(__name__)


class BillingService(IBillingGateway):
    """Late checkout charges, one running total per reservation and business date"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def assess_late_checkout_fee(
        self,
        reservation: ReservationRecord,
        amount: int,
        fee_type: LateCheckoutFeeType,
        business_date: date,
        reason: str,
    ) -> int:
        if amount < 0:
            raise ValueError(f"Late checkout fee cannot be negative: {amount}")
        if amount == 0:
            return 0

        db: Session = self._session_factory()
        try:
            existing = (
                db.query(LateCheckoutCharge)
                .filter(
                    LateCheckoutCharge.reservation_id == reservation.id,
                    LateCheckoutCharge.business_date == business_date,
                )
                .first()
            )
            if existing is None:
                db.add(LateCheckoutCharge(
                    reservation_id=reservation.id,
                    property_id=reservation.property_id,
                    business_date=business_date,
                    amount=amount,
                    fee_type=fee_type,
                    reason=reason,
                ))
                db.commit()
                added = amount
            elif amount > existing.amount:
                billed = existing.amount
                # Only raise from the amount read; a concurrent raise wins
                result = db.execute(
                    update(LateCheckoutCharge)
                    .where(LateCheckoutCharge.id == existing.id, LateCheckoutCharge.amount == billed)
                    .values(amount=amount, reason=reason)
                    .execution_options(synchronize_session=False)
                )
                db.commit()
                added = amount - billed if result.rowcount == 1 else 0
            else:
                added = 0
        except IntegrityError:
            # Unique (reservation_id, business_date): charged concurrently
            db.rollback()
            logger.info(f"Late checkout fee already assessed for reservation {reservation.id} on {business_date}")
            return 0
        finally:
            db.close()

        if added:
            logger.info(
                f"Late checkout charge for reservation {reservation.id} on {business_date} "
                f"raised to {amount} ({fee_type.value}, +{added})"
            )
        return added

    def has_late_checkout_charge(self, reservation_id: int, business_date: Optional[date] = None) -> bool:
        db: Session = self._session_factory()
        try:
            query = db.query(LateCheckoutCharge.id).filter(LateCheckoutCharge.reservation_id == reservation_id)
            if business_date is not None:
                query = query.filter(LateCheckoutCharge.business_date == business_date)
            return query.first() is not None
        finally:
            db.close()
