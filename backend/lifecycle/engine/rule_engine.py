"""
lifecycle/engine/rule_engine.py

Rule engine - registered business rules evaluated against a proposed transition.

Every enabled rule runs in priority order; failures accumulate in a single
RuleOutcome so the caller sees the full picture instead of the first error.
"""
from typing import Callable, Dict, List, Optional
from dataclasses import dataclass, field
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
import logging

from lifecycle.domain.enums import PaymentStatus, ReservationStatus
from lifecycle.domain.models import AutomationConfig, ReservationRecord
from lifecycle.domain.roles import EffectiveRole

logger = logging.getLogger(__name__)


class RuleCategory(str, Enum):
    """Rule category"""
    PAYMENT = "payment"
    TIMING = "timing"
    APPROVAL = "approval"
    PERMISSION = "permission"
    BUSINESS = "business"
    DATA_INTEGRITY = "data_integrity"


@dataclass(frozen=True)
class ReservationSnapshot:
    """Reservation fields the rules are allowed to look at."""

    guest_name: Optional[str]
    check_in: datetime
    check_out: datetime
    payment_status: PaymentStatus
    total_amount: int
    paid_amount: int
    amount_captured: int
    deposit_amount: int
    room_id: Optional[int]
    adults: int = 1
    children: int = 0
    created_at: Optional[datetime] = None

    @property
    def party_size(self) -> int:
        return self.adults + self.children

    @classmethod
    def from_record(cls, record: ReservationRecord) -> "ReservationSnapshot":
        return cls(
            guest_name=record.guest_name,
            check_in=record.check_in,
            check_out=record.check_out,
            payment_status=record.payment_status,
            total_amount=record.total_amount,
            paid_amount=record.paid_amount,
            amount_captured=record.amount_captured,
            deposit_amount=record.deposit_amount,
            room_id=record.room_id,
            adults=record.adults,
            children=record.children,
            created_at=record.created_at,
        )


@dataclass(frozen=True)
class TransitionContext:
    """
    Rule evaluation context.

    Attributes:
        reservation_id: Reservation being transitioned
        current_status: Status read before validation
        new_status: Proposed status
        reason: Caller-supplied reason
        acting_user_id: Acting user, None for the system
        acting_role: Already-resolved effective role
        property_id: Owning property
        organization_id: Owning organization
        is_automatic: True when initiated by the automation scheduler
        now: Evaluation time
        config: Property automation settings
        snapshot: Reservation fields needed by the rules
    """

    reservation_id: int
    current_status: ReservationStatus
    new_status: ReservationStatus
    reason: Optional[str]
    acting_user_id: Optional[int]
    acting_role: EffectiveRole
    property_id: int
    organization_id: Optional[int]
    is_automatic: bool
    now: datetime
    config: AutomationConfig
    snapshot: ReservationSnapshot

    @property
    def edge(self):
        return (self.current_status, self.new_status)


@dataclass
class RuleOutcome:
    """Accumulated result of a rule engine evaluation."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    requires_approval: bool = False
    approval_reason: Optional[str] = None
    business_rule_violations: List[str] = field(default_factory=list)
    data_integrity_issues: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def add_violation(self, message: str) -> None:
        self.business_rule_violations.append(message)

    def add_integrity_issue(self, message: str) -> None:
        self.data_integrity_issues.append(message)

    def require_approval(self, reason: str) -> None:
        self.requires_approval = True
        if self.approval_reason is None:
            self.approval_reason = reason
        elif reason not in self.approval_reason:
            self.approval_reason = f"{self.approval_reason}; {reason}"


class RuleCondition(ABC):
    """Rule condition interface."""

    @abstractmethod
    def evaluate(self, context: TransitionContext) -> bool:
        """
        Evaluate whether the rule applies.

        Args:
            context: Transition being evaluated.

        Returns:
            True if the rule's action should run.
        """
        raise NotImplementedError


class FunctionCondition(RuleCondition):
    """Function condition - evaluates using a callable."""

    def __init__(self, func: Callable[[TransitionContext], bool], description: str = ""):
        self._func = func
        self._description = description

    def evaluate(self, context: TransitionContext) -> bool:
        return self._func(context)

    def __repr__(self) -> str:
        return f"FunctionCondition({self._description or self._func.__name__})"


class EdgeCondition(RuleCondition):
    """Applies when the proposed transition is one of a fixed set of edges."""

    def __init__(self, *edges):
        self._edges = frozenset(edges)

    def evaluate(self, context: TransitionContext) -> bool:
        return context.edge in self._edges

    def __repr__(self) -> str:
        pairs = ", ".join(f"{a.value}->{b.value}" for a, b in sorted(self._edges))
        return f"EdgeCondition({pairs})"


class AlwaysCondition(RuleCondition):
    """Applies to every transition."""

    def evaluate(self, context: TransitionContext) -> bool:
        return True


@dataclass
class Rule:
    """
    Business rule definition.

    Attributes:
        rule_id: Unique rule identifier
        name: Rule name
        category: Rule category
        condition: When the rule applies
        action: Writes errors/warnings/approval into the outcome
        priority: Priority (higher number = evaluated first)
        enabled: Whether the rule is enabled
    """

    rule_id: str
    name: str
    category: RuleCategory
    condition: RuleCondition
    action: Callable[[TransitionContext, RuleOutcome], None]
    priority: int = 0
    enabled: bool = True


class RuleEngine:
    """
    Rule engine - manages and evaluates transition rules.

    A rule that raises is logged and turned into an error, so a broken rule
    can never silently let a transition through.

    Example:
        >>> engine = RuleEngine()
        >>> engine.register_rule(Rule(
        ...     rule_id="checkout_balance",
        ...     name="Checkout balance",
        ...     category=RuleCategory.BUSINESS,
        ...     condition=FunctionCondition(lambda ctx: ctx.new_status == ReservationStatus.CHECKED_OUT),
        ...     action=lambda ctx, out: out.add_violation("Outstanding balance"),
        ... ))
        >>> outcome = engine.evaluate(context)
    """

    def __init__(self):
        self._rules: Dict[str, Rule] = {}

    def register_rule(self, rule: Rule) -> None:
        """
        Register a rule.

        Raises:
            ValueError: If the rule_id already exists.
        """
        if rule.rule_id in self._rules:
            raise ValueError(f"Rule {rule.rule_id} already exists")
        self._rules[rule.rule_id] = rule
        logger.debug(f"Rule {rule.rule_id} registered")

    def unregister_rule(self, rule_id: str) -> None:
        if rule_id in self._rules:
            del self._rules[rule_id]
            logger.debug(f"Rule {rule_id} unregistered")

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def get_rules(self, category: Optional[RuleCategory] = None) -> List[Rule]:
        """Enabled rules sorted by priority (highest first)."""
        rules = [r for r in self._rules.values() if r.enabled]
        if category is not None:
            rules = [r for r in rules if r.category == category]
        return sorted(rules, key=lambda r: r.priority, reverse=True)

    def evaluate(self, context: TransitionContext) -> RuleOutcome:
        """
        Evaluate every applicable rule.

        Args:
            context: Transition being evaluated.

        Returns:
            The accumulated outcome.
        """
        outcome = RuleOutcome()

        for rule in self.get_rules():
            try:
                if rule.condition.evaluate(context):
                    rule.action(context, outcome)
            except Exception as e:
                logger.error(
                    f"Error executing rule {rule.rule_id} for reservation {context.reservation_id}: {e}",
                    exc_info=True,
                )
                outcome.add_error(f"Rule '{rule.name}' could not be evaluated")

        return outcome

    def enable_rule(self, rule_id: str) -> None:
        if rule_id in self._rules:
            self._rules[rule_id].enabled = True

    def disable_rule(self, rule_id: str) -> None:
        if rule_id in self._rules:
            self._rules[rule_id].enabled = False

    def clear(self) -> None:
        """Clear all rules (for testing)."""
        self._rules.clear()


__all__ = [
    "RuleCategory",
    "ReservationSnapshot",
    "TransitionContext",
    "RuleOutcome",
    "RuleCondition",
    "FunctionCondition",
    "EdgeCondition",
    "AlwaysCondition",
    "Rule",
    "RuleEngine",
]
