"""
lifecycle/domain/roles.py

Effective role resolution.

Callers arrive with a raw property role, an organization role, or both.
Resolution collapses them into exactly one EffectiveRole before any rule
sees the actor, so rules compare levels instead of branching on strings.
"""
from enum import Enum
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class EffectiveRole(str, Enum):
    """Normalized actor role"""
    SYSTEM = "SYSTEM"
    PROPERTY_MGR = "PROPERTY_MGR"
    FRONT_DESK = "FRONT_DESK"
    ACCOUNTANT = "ACCOUNTANT"
    HOUSEKEEPING = "HOUSEKEEPING"
    IT_SUPPORT = "IT_SUPPORT"
    MAINTENANCE = "MAINTENANCE"
    SECURITY = "SECURITY"
    GUEST_SERVICES = "GUEST_SERVICES"
    UNKNOWN = "UNKNOWN"

    @property
    def level(self) -> int:
        return ROLE_LEVELS[self]

    def at_least(self, other: "EffectiveRole") -> bool:
        return self.level >= other.level


ROLE_LEVELS: Dict[EffectiveRole, int] = {
    EffectiveRole.SYSTEM: 100,
    EffectiveRole.PROPERTY_MGR: 6,
    EffectiveRole.FRONT_DESK: 5,
    EffectiveRole.ACCOUNTANT: 5,
    EffectiveRole.HOUSEKEEPING: 4,
    EffectiveRole.IT_SUPPORT: 4,
    EffectiveRole.MAINTENANCE: 3,
    EffectiveRole.SECURITY: 2,
    EffectiveRole.GUEST_SERVICES: 1,
    EffectiveRole.UNKNOWN: 0,
}

# Organization roles act as property managers on every property they own
ORG_ROLE_EQUIVALENTS: Dict[str, EffectiveRole] = {
    "SUPER_ADMIN": EffectiveRole.PROPERTY_MGR,
    "ORG_ADMIN": EffectiveRole.PROPERTY_MGR,
    "OWNER": EffectiveRole.PROPERTY_MGR,
    "PROPERTY_MGR": EffectiveRole.PROPERTY_MGR,
}

ROLE_ALIASES: Dict[str, EffectiveRole] = {
    "PROPERTY_MANAGER": EffectiveRole.PROPERTY_MGR,
    "MANAGER": EffectiveRole.PROPERTY_MGR,
    "RECEPTIONIST": EffectiveRole.FRONT_DESK,
    "CLEANER": EffectiveRole.HOUSEKEEPING,
}


def _normalize(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    value = str(raw).strip().upper().replace("-", "_").replace(" ", "_")
    return value or None


def _property_role(raw: Optional[str]) -> Optional[EffectiveRole]:
    value = _normalize(raw)
    if value is None:
        return None
    if value in ROLE_ALIASES:
        return ROLE_ALIASES[value]
    try:
        role = EffectiveRole(value)
    except ValueError:
        return None
    # SYSTEM and UNKNOWN are never accepted from callers
    if role in (EffectiveRole.SYSTEM, EffectiveRole.UNKNOWN):
        return None
    return role


def resolve_effective_role(
    property_role: Optional[str] = None,
    org_role: Optional[str] = None,
    is_automatic: bool = False,
) -> EffectiveRole:
    """
    Resolve the single role the rule engine evaluates.

    Args:
        property_role: Raw property-level role (e.g. "FRONT_DESK")
        org_role: Raw organization-level role (e.g. "ORG_ADMIN")
        is_automatic: True for scheduler-driven transitions

    Returns:
        SYSTEM for automatic transitions, otherwise the higher of the mapped
        organization role and the property role, or UNKNOWN when neither maps.
    """
    if is_automatic:
        return EffectiveRole.SYSTEM

    candidates = []
    org_value = _normalize(org_role)
    if org_value in ORG_ROLE_EQUIVALENTS:
        candidates.append(ORG_ROLE_EQUIVALENTS[org_value])
    prop = _property_role(property_role)
    if prop is not None:
        candidates.append(prop)
    # A single role string may also carry an organization role
    if prop is None and _normalize(property_role) in ORG_ROLE_EQUIVALENTS:
        candidates.append(ORG_ROLE_EQUIVALENTS[_normalize(property_role)])

    if not candidates:
        if property_role or org_role:
            logger.warning(f"Unrecognized role: property={property_role!r} org={org_role!r}")
        return EffectiveRole.UNKNOWN
    return max(candidates, key=lambda r: r.level)


__all__ = [
    "EffectiveRole",
    "ROLE_LEVELS",
    "ORG_ROLE_EQUIVALENTS",
    "resolve_effective_role",
]
