"""
lifecycle/engine - transition engine

- validator: graph-only validation
- rule_engine / rules: business rules and the default rule set
- audit: append-only status history
- locks: per-reservation mutexes
- result: typed transition results
- coordinator: the mutating entry point
- day_roll: day-roll issue computation

Usage:
    >>> from lifecycle.engine import TransitionCoordinator, DayRollChecker
"""

from lifecycle.engine.validator import BasicValidation, BasicValidator
from lifecycle.engine.rule_engine import (
    RuleCategory,
    ReservationSnapshot,
    TransitionContext,
    RuleOutcome,
    RuleCondition,
    FunctionCondition,
    EdgeCondition,
    Rule,
    RuleEngine,
)
from lifecycle.engine.rules import create_rule_engine, default_rules
from lifecycle.engine.audit import IAuditTrail, AuditEngine
from lifecycle.engine.locks import LockTimeout, ReservationLockRegistry
from lifecycle.engine.result import (
    Success,
    InvalidTransition,
    ValidationFailed,
    ApprovalRequired,
    Conflict,
    NotFound,
    TransitionPreview,
    TransitionResult,
)
from lifecycle.engine.coordinator import TransitionCoordinator
from lifecycle.engine.day_roll import DayRollChecker, DayRollReport

__all__ = [
    "BasicValidation",
    "BasicValidator",
    "RuleCategory",
    "ReservationSnapshot",
    "TransitionContext",
    "RuleOutcome",
    "RuleCondition",
    "FunctionCondition",
    "EdgeCondition",
    "Rule",
    "RuleEngine",
    "create_rule_engine",
    "default_rules",
    "IAuditTrail",
    "AuditEngine",
    "LockTimeout",
    "ReservationLockRegistry",
    "Success",
    "InvalidTransition",
    "ValidationFailed",
    "ApprovalRequired",
    "Conflict",
    "NotFound",
    "TransitionPreview",
    "TransitionResult",
    "TransitionCoordinator",
    "DayRollChecker",
    "DayRollReport",
]
