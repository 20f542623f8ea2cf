"""
lifecycle/engine/coordinator.py

Transition coordinator - the only mutating entry point of the engine.

Per call:
1. lock the reservation and load it
2. basic (graph) validation
3. resolve the effective role and run the rule engine
4. stop on rule errors, or on an approval requirement for manual calls
5. compare-and-set the status and append the history entry in one store call
6. hand a status-change event to the notification sink

No exception crosses this boundary; every outcome is a typed result.
"""
from typing import Optional, Tuple, Union
import logging

from lifecycle.clock import Clock, utcnow
from lifecycle.domain.enums import ReservationStatus
from lifecycle.domain.models import ReservationRecord, StatusChangeEvent, StatusHistoryEntry
from lifecycle.domain.roles import EffectiveRole, resolve_effective_role
from lifecycle.domain.transition_graph import parse_status
from lifecycle.engine.locks import LockTimeout, ReservationLockRegistry
from lifecycle.engine.result import (
    ApprovalRequired,
    Conflict,
    InvalidTransition,
    NotFound,
    Success,
    TransitionPreview,
    TransitionResult,
    ValidationFailed,
)
from lifecycle.engine.rule_engine import ReservationSnapshot, RuleEngine, RuleOutcome, TransitionContext
from lifecycle.engine.rules import create_rule_engine
from lifecycle.engine.validator import BasicValidator
from lifecycle.notification.dispatcher import INotificationSink, NullNotificationSink
from lifecycle.ports import IConfigSource, IReservationStore

logger = logging.getLogger(__name__)

RoleInput = Union[EffectiveRole, str, None]
StatusInput = Union[ReservationStatus, str]


class TransitionCoordinator:
    """
    Orchestrates validation, approval gating and the atomic write.

    Example:
        >>> coordinator = TransitionCoordinator(store, config_source)
        >>> result = coordinator.transition(
        ...     42, ReservationStatus.IN_HOUSE, "Guest arrived",
        ...     acting_user_id=7, acting_role="FRONT_DESK", is_automatic=False,
        ... )
        >>> if result.kind == "success":
        ...     print(result.reservation.status)
    """

    def __init__(
        self,
        store: IReservationStore,
        config_source: IConfigSource,
        rule_engine: Optional[RuleEngine] = None,
        validator: Optional[BasicValidator] = None,
        notifier: Optional[INotificationSink] = None,
        locks: Optional[ReservationLockRegistry] = None,
        clock: Clock = utcnow,
    ):
        self._store = store
        self._config_source = config_source
        self._rule_engine = rule_engine or create_rule_engine()
        self._validator = validator or BasicValidator()
        self._notifier = notifier or NullNotificationSink()
        self._locks = locks or ReservationLockRegistry()
        self._clock = clock

    @property
    def store(self) -> IReservationStore:
        return self._store

    def transition(
        self,
        reservation_id: int,
        new_status: StatusInput,
        reason: Optional[str],
        acting_user_id: Optional[int],
        acting_role: RoleInput,
        is_automatic: bool,
        *,
        property_id: Optional[int] = None,
        organization_id: Optional[int] = None,
        approval_override: bool = False,
        org_role: Optional[str] = None,
    ) -> TransitionResult:
        """
        Attempt one status transition.

        Args:
            reservation_id: Reservation to move
            new_status: Target status
            reason: Reason recorded on the reservation and in the history
            acting_user_id: Acting user, None for the system
            acting_role: Raw property role or an already-resolved EffectiveRole
            is_automatic: True for scheduler-driven transitions
            property_id: When given, the reservation must belong to it
            organization_id: When given, the reservation must belong to it
            approval_override: Caller already holds the required approval
            org_role: Raw organization role of the acting user

        Returns:
            Success, InvalidTransition, ValidationFailed, ApprovalRequired,
            Conflict or NotFound
        """
        event = None
        try:
            with self._locks.hold(reservation_id):
                result, event = self._transition_locked(
                    reservation_id, new_status, reason, acting_user_id, acting_role,
                    is_automatic, property_id, organization_id, approval_override, org_role,
                )
        except LockTimeout as e:
            return Conflict(reason=str(e))
        except Exception as e:
            logger.error(f"Transition of reservation {reservation_id} failed: {e}", exc_info=True)
            return Conflict(reason=f"Transition could not be completed: {e}")

        if event is not None:
            self._emit(event)
        return result

    def preview(
        self,
        reservation_id: int,
        new_status: StatusInput,
        reason: Optional[str],
        acting_user_id: Optional[int],
        acting_role: RoleInput,
        is_automatic: bool = False,
        *,
        property_id: Optional[int] = None,
        organization_id: Optional[int] = None,
        org_role: Optional[str] = None,
    ) -> Union[TransitionPreview, InvalidTransition, ValidationFailed, NotFound, Conflict]:
        """Run validation and rules without locking or writing anything."""
        try:
            record = self._load(reservation_id, property_id, organization_id)
            if record is None:
                return NotFound(reservation_id=reservation_id)
            checked = self._check(record, new_status, reason, acting_user_id, acting_role, is_automatic, org_role)
        except Exception as e:
            logger.error(f"Preview of reservation {reservation_id} failed: {e}", exc_info=True)
            return Conflict(reason=f"Preview could not be completed: {e}")
        if not isinstance(checked, tuple):
            return checked
        proposed, outcome, _ = checked
        return TransitionPreview(
            current_status=record.status,
            new_status=proposed,
            requires_approval=outcome.requires_approval,
            approval_reason=outcome.approval_reason,
            warnings=list(outcome.warnings),
            business_rule_violations=list(outcome.business_rule_violations),
            data_integrity_issues=list(outcome.data_integrity_issues),
        )

    def _load(
        self, reservation_id: int, property_id: Optional[int], organization_id: Optional[int] = None
    ) -> Optional[ReservationRecord]:
        record = self._store.get(reservation_id)
        if record is None:
            return None
        if property_id is not None and record.property_id != property_id:
            return None
        if organization_id is not None and record.organization_id != organization_id:
            return None
        return record

    def _resolve_role(self, acting_role: RoleInput, org_role: Optional[str], is_automatic: bool) -> EffectiveRole:
        if is_automatic:
            return EffectiveRole.SYSTEM
        if isinstance(acting_role, EffectiveRole):
            return acting_role
        return resolve_effective_role(acting_role, org_role, is_automatic=False)

    def _check(
        self,
        record: ReservationRecord,
        new_status: StatusInput,
        reason: Optional[str],
        acting_user_id: Optional[int],
        acting_role: RoleInput,
        is_automatic: bool,
        org_role: Optional[str],
    ) -> Union[Tuple[ReservationStatus, RuleOutcome, TransitionContext], InvalidTransition, ValidationFailed]:
        basic = self._validator.validate(record.status, new_status)
        if not basic.is_valid:
            requested = new_status.value if isinstance(new_status, ReservationStatus) else str(new_status)
            return InvalidTransition(current_status=record.status, requested_status=requested, reason=basic.reason)

        proposed = parse_status(new_status)
        context = TransitionContext(
            reservation_id=record.id,
            current_status=record.status,
            new_status=proposed,
            reason=reason,
            acting_user_id=acting_user_id,
            acting_role=self._resolve_role(acting_role, org_role, is_automatic),
            property_id=record.property_id,
            organization_id=record.organization_id,
            is_automatic=is_automatic,
            now=self._clock(),
            config=self._config_source.load_automation_config(record.property_id),
            snapshot=ReservationSnapshot.from_record(record),
        )
        outcome = self._rule_engine.evaluate(context)
        if outcome.has_errors:
            return ValidationFailed(
                errors=list(outcome.errors),
                warnings=list(outcome.warnings),
                business_rule_violations=list(outcome.business_rule_violations),
                data_integrity_issues=list(outcome.data_integrity_issues),
            )
        return proposed, outcome, context

    def _transition_locked(
        self,
        reservation_id: int,
        new_status: StatusInput,
        reason: Optional[str],
        acting_user_id: Optional[int],
        acting_role: RoleInput,
        is_automatic: bool,
        property_id: Optional[int],
        organization_id: Optional[int],
        approval_override: bool,
        org_role: Optional[str],
    ) -> Tuple[TransitionResult, Optional[StatusChangeEvent]]:
        record = self._load(reservation_id, property_id, organization_id)
        if record is None:
            return NotFound(reservation_id=reservation_id), None

        checked = self._check(record, new_status, reason, acting_user_id, acting_role, is_automatic, org_role)
        if not isinstance(checked, tuple):
            logger.info(f"Transition rejected for reservation {reservation_id}: {checked.kind}")
            return checked, None
        proposed, outcome, context = checked

        if outcome.requires_approval and not is_automatic:
            if not approval_override:
                return ApprovalRequired(
                    reason=outcome.approval_reason or "Approval required",
                    warnings=list(outcome.warnings),
                ), None
            logger.warning(
                f"Approval override used by user {acting_user_id} on reservation {reservation_id}: "
                f"{record.status.value} -> {proposed.value}"
            )

        now = context.now
        changes = {
            "status": proposed,
            "status_updated_by": acting_user_id,
            "status_updated_at": now,
            "status_change_reason": reason,
        }
        if proposed == ReservationStatus.IN_HOUSE and record.status != ReservationStatus.CHECKOUT_DUE:
            changes["checked_in_at"] = now
        elif proposed == ReservationStatus.CHECKED_OUT:
            changes["checked_out_at"] = now
        elif record.status == ReservationStatus.IN_HOUSE and proposed == ReservationStatus.CONFIRMED:
            changes["checked_in_at"] = None

        entry = StatusHistoryEntry(
            reservation_id=record.id,
            property_id=record.property_id,
            previous_status=record.status,
            new_status=proposed,
            changed_by=acting_user_id,
            change_reason=reason,
            is_automatic=is_automatic,
            changed_at=now,
        )

        try:
            applied = self._store.apply_transition(record.id, record.status, changes, entry)
        except Exception as e:
            logger.error(f"Store write failed for reservation {reservation_id}: {e}", exc_info=True)
            return Conflict(reason="Reservation could not be updated; retry the transition"), None
        if applied is None:
            logger.warning(f"Stale read on reservation {reservation_id}, expected {record.status.value}")
            return Conflict(
                reason=f"Reservation {reservation_id} changed while the transition was being processed"
            ), None

        updated, stored_entry = applied
        logger.info(
            f"Reservation {reservation_id}: {record.status.value} -> {proposed.value} "
            f"(user={acting_user_id}, automatic={is_automatic})"
        )
        event = StatusChangeEvent(
            reservation_id=record.id,
            old_status=record.status,
            new_status=proposed,
            reason=reason,
            property_id=record.property_id,
            organization_id=record.organization_id,
            is_automatic=is_automatic,
            occurred_at=now,
        )
        success = Success(
            reservation=updated,
            history_entry=stored_entry,
            warnings=list(outcome.warnings),
            business_rule_violations=list(outcome.business_rule_violations),
            data_integrity_issues=list(outcome.data_integrity_issues),
        )
        return success, event

    def _emit(self, event: StatusChangeEvent) -> None:
        try:
            self._notifier.notify(event)
        except Exception as e:
            logger.error(f"Notification hand-off failed for reservation {event.reservation_id}: {e}")


__all__ = ["TransitionCoordinator"]
