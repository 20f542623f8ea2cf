"""
lifecycle/engine/rules.py

Default reservation transition rules.

Money comparisons are integer comparisons in the smallest currency unit.
"""
from datetime import timedelta
from typing import Dict, FrozenSet, List, Tuple

from lifecycle.domain.enums import ReservationStatus
from lifecycle.domain.roles import EffectiveRole
from lifecycle.engine.rule_engine import (
    AlwaysCondition,
    EdgeCondition,
    FunctionCondition,
    Rule,
    RuleCategory,
    RuleEngine,
    RuleOutcome,
    TransitionContext,
)

S = ReservationStatus
Edge = Tuple[ReservationStatus, ReservationStatus]

PAYMENT_GATED_EDGES: FrozenSet[Edge] = frozenset({
    (S.CONFIRMATION_PENDING, S.CONFIRMED),
    (S.NO_SHOW, S.CONFIRMED),
})

CRITICAL_EDGES: FrozenSet[Edge] = frozenset({
    (S.CONFIRMED, S.CANCELLED),
    (S.IN_HOUSE, S.CANCELLED),
    (S.NO_SHOW, S.CONFIRMED),
    (S.IN_HOUSE, S.CONFIRMED),
})

_CONFIRM = (S.CONFIRMATION_PENDING, S.CONFIRMED)
_CANCEL_CONFIRMED = (S.CONFIRMED, S.CANCELLED)
_CANCEL_IN_HOUSE = (S.IN_HOUSE, S.CANCELLED)
_CHECK_OUT = (S.IN_HOUSE, S.CHECKED_OUT)

# Transitions a role may request but not take without approval
ROLE_RESTRICTED_TRANSITIONS: Dict[EffectiveRole, FrozenSet[Edge]] = {
    EffectiveRole.PROPERTY_MGR: frozenset(),
    EffectiveRole.FRONT_DESK: frozenset({_CANCEL_IN_HOUSE, _CANCEL_CONFIRMED}),
    EffectiveRole.HOUSEKEEPING: frozenset({_CONFIRM, _CANCEL_CONFIRMED, _CANCEL_IN_HOUSE}),
    EffectiveRole.MAINTENANCE: frozenset({_CONFIRM, _CANCEL_CONFIRMED, _CANCEL_IN_HOUSE, _CHECK_OUT}),
    EffectiveRole.SECURITY: frozenset({_CONFIRM, _CANCEL_CONFIRMED, _CANCEL_IN_HOUSE, _CHECK_OUT}),
    EffectiveRole.GUEST_SERVICES: frozenset({_CANCEL_IN_HOUSE}),
    EffectiveRole.ACCOUNTANT: frozenset({_CHECK_OUT}),
    EffectiveRole.IT_SUPPORT: frozenset({_CONFIRM, _CANCEL_CONFIRMED, _CANCEL_IN_HOUSE, _CHECK_OUT}),
}

NO_SHOW_CANCEL_SUGGESTION_HOURS = 72
LATE_CHECKIN_WARNING = timedelta(days=1)


def is_payment_sufficient(paid_amount: int, amount_captured: int, deposit_amount: int) -> bool:
    """
    Something has been paid, or a required deposit has been captured in full.

    A zero deposit with nothing captured does not count as sufficient.
    """
    if paid_amount > 0:
        return True
    return deposit_amount > 0 and amount_captured > 0 and amount_captured >= deposit_amount


def _hours(delta: timedelta) -> int:
    return int(delta.total_seconds() // 3600)


def check_unknown_role(ctx: TransitionContext, outcome: RuleOutcome) -> None:
    outcome.add_error("Unknown role: acting user has no recognized role for this property")


def check_payment_sufficiency(ctx: TransitionContext, outcome: RuleOutcome) -> None:
    s = ctx.snapshot
    if not is_payment_sufficient(s.paid_amount, s.amount_captured, s.deposit_amount):
        outcome.add_error(
            "Payment required: confirming needs a payment or a fully captured deposit "
            f"(paid={s.paid_amount}, captured={s.amount_captured}, deposit={s.deposit_amount})"
        )


def check_no_show_timing(ctx: TransitionContext, outcome: RuleOutcome) -> None:
    check_in = ctx.snapshot.check_in
    if ctx.now < check_in:
        outcome.add_error("Cannot mark as no-show before the scheduled check-in time")
        return
    overdue = ctx.now - check_in
    if overdue > timedelta(hours=NO_SHOW_CANCEL_SUGGESTION_HOURS):
        outcome.add_warning(
            f"Reservation is {_hours(overdue)} hours past check-in; consider cancelling instead"
        )


def check_arrival_timing(ctx: TransitionContext, outcome: RuleOutcome) -> None:
    check_in = ctx.snapshot.check_in
    early_threshold = check_in - timedelta(hours=ctx.config.early_checkin_warning_hours)
    if ctx.now < early_threshold:
        outcome.add_warning(
            f"Early check-in: guest is arriving {_hours(check_in - ctx.now)} hours before scheduled check-in"
        )
    elif ctx.now > check_in + LATE_CHECKIN_WARNING:
        outcome.add_warning("Late check-in: guest is arriving more than a day after scheduled check-in")


def check_critical_transition(ctx: TransitionContext, outcome: RuleOutcome) -> None:
    if not ctx.acting_role.at_least(EffectiveRole.PROPERTY_MGR):
        outcome.require_approval("Critical status change requires manager approval")


def check_role_restriction(ctx: TransitionContext, outcome: RuleOutcome) -> None:
    restricted = ROLE_RESTRICTED_TRANSITIONS.get(ctx.acting_role, frozenset())
    if ctx.edge in restricted:
        outcome.require_approval(f"Role {ctx.acting_role.value} requires approval for this transition")


def check_checkout_balance(ctx: TransitionContext, outcome: RuleOutcome) -> None:
    s = ctx.snapshot
    if s.paid_amount < s.total_amount:
        outcome.add_violation(f"Outstanding balance of {s.total_amount - s.paid_amount} at checkout")


def check_data_integrity(ctx: TransitionContext, outcome: RuleOutcome) -> None:
    s = ctx.snapshot
    if not (s.guest_name or "").strip():
        outcome.add_integrity_issue("Guest name is missing")
    if s.room_id is None:
        outcome.add_integrity_issue("No room assigned")
    if s.check_out <= s.check_in:
        outcome.add_integrity_issue("Check-out is not after check-in")


def default_rules() -> List[Rule]:
    """Build a fresh copy of the default rule set."""
    return [
        Rule(
            rule_id="actor_unknown_role",
            name="Unknown actor role",
            category=RuleCategory.PERMISSION,
            condition=FunctionCondition(
                lambda ctx: not ctx.is_automatic and ctx.acting_role == EffectiveRole.UNKNOWN,
                "manual transition by unrecognized role",
            ),
            action=check_unknown_role,
            priority=100,
        ),
        Rule(
            rule_id="payment_sufficiency",
            name="Payment sufficiency",
            category=RuleCategory.PAYMENT,
            condition=EdgeCondition(*PAYMENT_GATED_EDGES),
            action=check_payment_sufficiency,
            priority=90,
        ),
        Rule(
            rule_id="timing_no_show",
            name="No-show timing",
            category=RuleCategory.TIMING,
            condition=FunctionCondition(lambda ctx: ctx.new_status == S.NO_SHOW, "into NO_SHOW"),
            action=check_no_show_timing,
            priority=80,
        ),
        Rule(
            rule_id="timing_arrival",
            name="Arrival timing",
            category=RuleCategory.TIMING,
            condition=FunctionCondition(
                lambda ctx: ctx.new_status == S.IN_HOUSE and ctx.current_status != S.CHECKOUT_DUE,
                "check-in",
            ),
            action=check_arrival_timing,
            priority=70,
        ),
        Rule(
            rule_id="approval_critical",
            name="Critical transition approval",
            category=RuleCategory.APPROVAL,
            condition=EdgeCondition(*CRITICAL_EDGES),
            action=check_critical_transition,
            priority=60,
        ),
        Rule(
            rule_id="approval_role_restricted",
            name="Role-restricted transition",
            category=RuleCategory.APPROVAL,
            condition=AlwaysCondition(),
            action=check_role_restriction,
            priority=50,
        ),
        Rule(
            rule_id="business_checkout_balance",
            name="Checkout balance",
            category=RuleCategory.BUSINESS,
            condition=FunctionCondition(lambda ctx: ctx.new_status == S.CHECKED_OUT, "into CHECKED_OUT"),
            action=check_checkout_balance,
            priority=20,
        ),
        Rule(
            rule_id="data_integrity",
            name="Reservation data integrity",
            category=RuleCategory.DATA_INTEGRITY,
            condition=AlwaysCondition(),
            action=check_data_integrity,
            priority=10,
        ),
    ]


def create_rule_engine() -> RuleEngine:
    """Rule engine loaded with the default rule set."""
    engine = RuleEngine()
    for rule in default_rules():
        engine.register_rule(rule)
    return engine


__all__ = [
    "PAYMENT_GATED_EDGES",
    "CRITICAL_EDGES",
    "ROLE_RESTRICTED_TRANSITIONS",
    "is_payment_sufficient",
    "default_rules",
    "create_rule_engine",
]
