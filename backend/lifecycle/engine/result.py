"""
lifecycle/engine/result.py

Typed transition results.

The coordinator never raises across its boundary; every outcome is one of
these classes. Callers branch on ``kind`` (or ``isinstance``).
"""
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

from lifecycle.domain.enums import ReservationStatus
from lifecycle.domain.models import ReservationRecord, StatusHistoryEntry


def _record_dict(record: ReservationRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "property_id": record.property_id,
        "status": record.status.value,
        "status_updated_by": record.status_updated_by,
        "status_updated_at": record.status_updated_at.isoformat() if record.status_updated_at else None,
        "status_change_reason": record.status_change_reason,
        "checked_in_at": record.checked_in_at.isoformat() if record.checked_in_at else None,
        "checked_out_at": record.checked_out_at.isoformat() if record.checked_out_at else None,
    }


@dataclass
class Success:
    """Transition written and recorded"""
    kind: ClassVar[str] = "success"

    reservation: ReservationRecord
    history_entry: StatusHistoryEntry
    warnings: List[str] = field(default_factory=list)
    business_rule_violations: List[str] = field(default_factory=list)
    data_integrity_issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "reservation": _record_dict(self.reservation),
            "history_entry": self.history_entry.to_dict(),
            "warnings": self.warnings,
            "business_rule_violations": self.business_rule_violations,
            "data_integrity_issues": self.data_integrity_issues,
        }


@dataclass
class InvalidTransition:
    """Edge not present in the status graph"""
    kind: ClassVar[str] = "invalid_transition"

    current_status: Optional[ReservationStatus]
    requested_status: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "current_status": self.current_status.value if self.current_status else None,
            "requested_status": self.requested_status,
            "reason": self.reason,
        }


@dataclass
class ValidationFailed:
    """One or more rule errors"""
    kind: ClassVar[str] = "validation_failed"

    errors: List[str]
    warnings: List[str] = field(default_factory=list)
    business_rule_violations: List[str] = field(default_factory=list)
    data_integrity_issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "errors": self.errors,
            "warnings": self.warnings,
            "business_rule_violations": self.business_rule_violations,
            "data_integrity_issues": self.data_integrity_issues,
        }


@dataclass
class ApprovalRequired:
    """Valid but needs an explicit approval before it is written"""
    kind: ClassVar[str] = "approval_required"

    reason: str
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "reason": self.reason, "warnings": self.warnings}


@dataclass
class Conflict:
    """Lock timeout or stale read; the caller may retry"""
    kind: ClassVar[str] = "conflict"

    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "reason": self.reason}


@dataclass
class NotFound:
    """Reservation missing or outside the given property"""
    kind: ClassVar[str] = "not_found"

    reservation_id: int

    @property
    def reason(self) -> str:
        return f"Reservation {self.reservation_id} not found"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "reservation_id": self.reservation_id, "reason": self.reason}


@dataclass
class TransitionPreview:
    """Read-only evaluation of a transition that would be allowed"""
    kind: ClassVar[str] = "allowed"

    current_status: ReservationStatus
    new_status: ReservationStatus
    requires_approval: bool = False
    approval_reason: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    business_rule_violations: List[str] = field(default_factory=list)
    data_integrity_issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "current_status": self.current_status.value,
            "new_status": self.new_status.value,
            "requires_approval": self.requires_approval,
            "approval_reason": self.approval_reason,
            "warnings": self.warnings,
            "business_rule_violations": self.business_rule_violations,
            "data_integrity_issues": self.data_integrity_issues,
        }


TransitionResult = Union[Success, InvalidTransition, ValidationFailed, ApprovalRequired, Conflict, NotFound]


__all__ = [
    "Success",
    "InvalidTransition",
    "ValidationFailed",
    "ApprovalRequired",
    "Conflict",
    "NotFound",
    "TransitionPreview",
    "TransitionResult",
]
