"""
Rule engine and default rule set tests
"""
from datetime import datetime, timedelta

import pytest

from lifecycle.domain.enums import ReservationStatus as S
from lifecycle.domain.models import AutomationConfig, ReservationRecord
from lifecycle.domain.roles import EffectiveRole
from lifecycle.engine.rule_engine import (
    AlwaysCondition,
    EdgeCondition,
    FunctionCondition,
    ReservationSnapshot,
    Rule,
    RuleCategory,
    RuleEngine,
    RuleOutcome,
    TransitionContext,
)
from lifecycle.engine.rules import create_rule_engine, is_payment_sufficient

CHECK_IN = datetime(2026, 3, 10, 15, 0)


def make_context(current, new, role=EffectiveRole.PROPERTY_MGR, is_automatic=False,
                 now=CHECK_IN, config=None, **fields):
    values = dict(
        id=1,
        property_id=1,
        status=current,
        check_in=CHECK_IN,
        check_out=CHECK_IN + timedelta(days=2),
        guest_name="Ada Lovelace",
        room_id=101,
        total_amount=30000,
        paid_amount=30000,
    )
    values.update(fields)
    record = ReservationRecord(**values)
    return TransitionContext(
        reservation_id=record.id,
        current_status=current,
        new_status=new,
        reason=None,
        acting_user_id=None if is_automatic else 7,
        acting_role=role,
        property_id=record.property_id,
        organization_id=None,
        is_automatic=is_automatic,
        now=now,
        config=config or AutomationConfig(property_id=1),
        snapshot=ReservationSnapshot.from_record(record),
    )


def make_rule(rule_id, action, priority=0, condition=None, name=None):
    return Rule(
        rule_id=rule_id,
        name=name or rule_id,
        category=RuleCategory.BUSINESS,
        condition=condition or AlwaysCondition(),
        action=action,
        priority=priority,
    )


class TestRuleEngine:
    """Registration and evaluation"""

    def test_duplicate_rule_id_rejected(self):
        engine = RuleEngine()
        engine.register_rule(make_rule("r1", lambda ctx, out: None))
        with pytest.raises(ValueError):
            engine.register_rule(make_rule("r1", lambda ctx, out: None))

    def test_rules_sorted_by_priority(self):
        engine = RuleEngine()
        engine.register_rule(make_rule("low", lambda ctx, out: None, priority=1))
        engine.register_rule(make_rule("high", lambda ctx, out: None, priority=9))
        engine.register_rule(make_rule("mid", lambda ctx, out: None, priority=5))
        assert [r.rule_id for r in engine.get_rules()] == ["high", "mid", "low"]

    def test_every_applicable_rule_runs(self):
        engine = RuleEngine()
        engine.register_rule(make_rule("a", lambda ctx, out: out.add_error("first")))
        engine.register_rule(make_rule("b", lambda ctx, out: out.add_error("second")))
        outcome = engine.evaluate(make_context(S.CONFIRMED, S.IN_HOUSE))
        assert sorted(outcome.errors) == ["first", "second"]

    def test_condition_filters(self):
        engine = RuleEngine()
        engine.register_rule(make_rule(
            "cancel_only", lambda ctx, out: out.add_warning("cancel"),
            condition=EdgeCondition((S.CONFIRMED, S.CANCELLED)),
        ))
        assert engine.evaluate(make_context(S.CONFIRMED, S.IN_HOUSE)).warnings == []
        assert engine.evaluate(make_context(S.CONFIRMED, S.CANCELLED)).warnings == ["cancel"]

    def test_disabled_rule_skipped(self):
        engine = RuleEngine()
        engine.register_rule(make_rule("r1", lambda ctx, out: out.add_error("nope")))
        engine.disable_rule("r1")
        assert not engine.evaluate(make_context(S.CONFIRMED, S.IN_HOUSE)).has_errors
        engine.enable_rule("r1")
        assert engine.evaluate(make_context(S.CONFIRMED, S.IN_HOUSE)).has_errors

    def test_raising_rule_becomes_error(self):
        def boom(ctx, out):
            raise RuntimeError("broken")

        engine = RuleEngine()
        engine.register_rule(make_rule("boom", boom, priority=5, name="Boom"))
        engine.register_rule(make_rule("after", lambda ctx, out: out.add_warning("still ran")))
        outcome = engine.evaluate(make_context(S.CONFIRMED, S.IN_HOUSE))
        assert outcome.errors == ["Rule 'Boom' could not be evaluated"]
        assert outcome.warnings == ["still ran"]

    def test_function_condition(self):
        condition = FunctionCondition(lambda ctx: ctx.is_automatic, "automatic only")
        assert condition.evaluate(make_context(S.CONFIRMED, S.NO_SHOW, is_automatic=True))
        assert not condition.evaluate(make_context(S.CONFIRMED, S.NO_SHOW))


class TestRuleOutcome:

    def test_approval_reasons_joined(self):
        outcome = RuleOutcome()
        outcome.require_approval("first reason")
        outcome.require_approval("second reason")
        outcome.require_approval("first reason")
        assert outcome.requires_approval
        assert outcome.approval_reason == "first reason; second reason"


@pytest.mark.parametrize("paid,captured,deposit,expected", [
    (1, 0, 0, True),
    (0, 0, 0, False),
    (0, 5000, 5000, True),
    (0, 6000, 5000, True),
    (0, 4000, 5000, False),
    (0, 5000, 0, False),
])
def test_is_payment_sufficient(paid, captured, deposit, expected):
    assert is_payment_sufficient(paid, captured, deposit) is expected


class TestDefaultRules:
    """The default rule set"""

    def setup_method(self):
        self.engine = create_rule_engine()

    def test_clean_check_in(self):
        outcome = self.engine.evaluate(make_context(S.CONFIRMED, S.IN_HOUSE, role=EffectiveRole.FRONT_DESK))
        assert outcome.errors == []
        assert outcome.warnings == []
        assert not outcome.requires_approval

    def test_confirm_without_payment(self):
        outcome = self.engine.evaluate(make_context(S.CONFIRMATION_PENDING, S.CONFIRMED, paid_amount=0))
        assert len(outcome.errors) == 1
        assert outcome.errors[0].startswith("Payment required")

    def test_confirm_with_captured_deposit(self):
        outcome = self.engine.evaluate(make_context(
            S.CONFIRMATION_PENDING, S.CONFIRMED,
            paid_amount=0, deposit_amount=5000, amount_captured=5000,
        ))
        assert outcome.errors == []

    def test_reinstating_no_show_needs_payment(self):
        outcome = self.engine.evaluate(make_context(S.NO_SHOW, S.CONFIRMED, paid_amount=0))
        assert any(e.startswith("Payment required") for e in outcome.errors)

    def test_no_show_before_check_in(self):
        outcome = self.engine.evaluate(make_context(
            S.CONFIRMED, S.NO_SHOW, now=CHECK_IN - timedelta(hours=1),
        ))
        assert outcome.errors == ["Cannot mark as no-show before the scheduled check-in time"]

    def test_no_show_long_after_check_in_warns(self):
        outcome = self.engine.evaluate(make_context(
            S.CONFIRMED, S.NO_SHOW, now=CHECK_IN + timedelta(hours=80),
        ))
        assert outcome.errors == []
        assert len(outcome.warnings) == 1
        assert "consider cancelling" in outcome.warnings[0]

    def test_early_check_in_warns(self):
        outcome = self.engine.evaluate(make_context(
            S.CONFIRMED, S.IN_HOUSE, now=CHECK_IN - timedelta(hours=6),
        ))
        assert outcome.errors == []
        assert len(outcome.warnings) == 1
        assert outcome.warnings[0].startswith("Early check-in")

    def test_check_in_inside_warning_window(self):
        outcome = self.engine.evaluate(make_context(
            S.CONFIRMED, S.IN_HOUSE, now=CHECK_IN - timedelta(hours=2),
        ))
        assert outcome.warnings == []

    def test_late_check_in_warns(self):
        outcome = self.engine.evaluate(make_context(
            S.CHECKIN_DUE, S.IN_HOUSE, now=CHECK_IN + timedelta(hours=25),
        ))
        assert [w for w in outcome.warnings if w.startswith("Late check-in")]

    def test_stay_extension_has_no_arrival_warning(self):
        outcome = self.engine.evaluate(make_context(
            S.CHECKOUT_DUE, S.IN_HOUSE, role=EffectiveRole.FRONT_DESK, now=CHECK_IN + timedelta(days=2),
        ))
        assert outcome.warnings == []
        assert outcome.errors == []

    def test_critical_transition_needs_manager(self):
        outcome = self.engine.evaluate(make_context(S.IN_HOUSE, S.CONFIRMED, role=EffectiveRole.FRONT_DESK))
        assert outcome.requires_approval
        assert outcome.approval_reason == "Critical status change requires manager approval"

    def test_manager_takes_critical_transition(self):
        outcome = self.engine.evaluate(make_context(S.CONFIRMED, S.CANCELLED, role=EffectiveRole.PROPERTY_MGR))
        assert not outcome.requires_approval

    def test_front_desk_cancel_collects_both_reasons(self):
        outcome = self.engine.evaluate(make_context(S.CONFIRMED, S.CANCELLED, role=EffectiveRole.FRONT_DESK))
        assert outcome.approval_reason == (
            "Critical status change requires manager approval; "
            "Role FRONT_DESK requires approval for this transition"
        )

    def test_role_restricted_checkout(self):
        outcome = self.engine.evaluate(make_context(S.IN_HOUSE, S.CHECKED_OUT, role=EffectiveRole.ACCOUNTANT))
        assert outcome.requires_approval
        assert outcome.approval_reason == "Role ACCOUNTANT requires approval for this transition"

    def test_unknown_role_is_an_error(self):
        outcome = self.engine.evaluate(make_context(S.CONFIRMED, S.IN_HOUSE, role=EffectiveRole.UNKNOWN))
        assert any(e.startswith("Unknown role") for e in outcome.errors)

    def test_system_skips_approval(self):
        outcome = self.engine.evaluate(make_context(
            S.CONFIRMED, S.CANCELLED, role=EffectiveRole.SYSTEM, is_automatic=True,
        ))
        assert not outcome.requires_approval
        assert outcome.errors == []

    def test_checkout_balance_is_a_violation(self):
        outcome = self.engine.evaluate(make_context(S.IN_HOUSE, S.CHECKED_OUT, paid_amount=20000))
        assert outcome.errors == []
        assert outcome.business_rule_violations == ["Outstanding balance of 10000 at checkout"]

    def test_data_integrity_issues_do_not_block(self):
        outcome = self.engine.evaluate(make_context(
            S.CONFIRMED, S.IN_HOUSE, guest_name="  ", room_id=None,
        ))
        assert outcome.errors == []
        assert outcome.data_integrity_issues == ["Guest name is missing", "No room assigned"]

    def test_inverted_stay_dates_reported(self):
        outcome = self.engine.evaluate(make_context(
            S.CONFIRMED, S.IN_HOUSE, check_out=CHECK_IN - timedelta(hours=1),
        ))
        assert "Check-out is not after check-in" in outcome.data_integrity_issues
