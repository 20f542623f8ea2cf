"""
Property operations routes
Day-roll checks, property status history and manual automation runs.
"""
from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from lifecycle.clock import utcnow
from lifecycle.domain.roles import EffectiveRole, resolve_effective_role
from pms.models.schemas import AutomationRunRequest, DayRollResponse, StatusHistoryResponse
from pms.security.auth import Actor, get_current_actor, require_property_access
from pms.services.engine_factory import LifecycleEngine, get_engine

router = APIRouter(prefix="/properties", tags=["Property operations"])


@router.get("/{property_id}/day-roll", response_model=DayRollResponse)
def get_day_roll(
    property_id: int,
    candidate_date: Optional[date] = None,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    """Issues blocking the advance to candidate_date (default: tomorrow)"""
    require_property_access(property_id, actor)
    target = candidate_date or (utcnow().date() + timedelta(days=1))
    report = engine.day_roll.check(property_id, target)
    return DayRollResponse(**report.to_dict())


@router.get("/{property_id}/status-history", response_model=List[StatusHistoryResponse])
def get_property_history(
    property_id: int,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    """Recent status changes across a property, most recent first"""
    require_property_access(property_id, actor)
    entries = engine.audit.history_for_property(property_id, limit, offset)
    return [StatusHistoryResponse(**e.to_dict()) for e in entries]


@router.post("/{property_id}/automation/run")
def run_automation(
    property_id: int,
    data: Optional[AutomationRunRequest] = None,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    """Run one automation sweep now (managers only)"""
    require_property_access(property_id, actor)
    role = resolve_effective_role(actor.role, actor.org_role)
    if not role.at_least(EffectiveRole.PROPERTY_MGR):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Manager role required")
    report = engine.scheduler.run_once(property_id, dry_run=bool(data and data.dry_run))
    return report.to_dict()
