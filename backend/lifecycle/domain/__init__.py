"""
lifecycle/domain - reservation lifecycle domain types

- enums: statuses, payment states, fee types, day-roll issue types
- models: immutable value objects exchanged between components
- transition_graph: the static status graph
- roles: effective role resolution
"""
from lifecycle.domain.enums import (
    ReservationStatus,
    PaymentStatus,
    LateCheckoutFeeType,
    IssueSeverity,
    DayTransitionIssueType,
)
from lifecycle.domain.models import (
    ReservationRecord,
    StatusHistoryEntry,
    AutomationConfig,
    DayTransitionIssue,
    StatusChangeEvent,
)
from lifecycle.domain.transition_graph import TransitionGraph, transition_graph
from lifecycle.domain.roles import EffectiveRole, resolve_effective_role

__all__ = [
    "ReservationStatus",
    "PaymentStatus",
    "LateCheckoutFeeType",
    "IssueSeverity",
    "DayTransitionIssueType",
    "ReservationRecord",
    "StatusHistoryEntry",
    "AutomationConfig",
    "DayTransitionIssue",
    "StatusChangeEvent",
    "TransitionGraph",
    "transition_graph",
    "EffectiveRole",
    "resolve_effective_role",
]
