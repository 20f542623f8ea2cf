"""
Reservation status routes
The only HTTP path that changes a reservation's status.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from pms.models.schemas import StatusHistoryResponse, StatusUpdateRequest
from pms.security.auth import Actor, get_current_actor
from pms.services.engine_factory import LifecycleEngine, get_engine

router = APIRouter(prefix="/reservations", tags=["Reservation status"])

# Transition result kind -> HTTP status
RESULT_STATUS_CODES = {
    "success": status.HTTP_200_OK,
    "allowed": status.HTTP_200_OK,
    "approval_required": status.HTTP_202_ACCEPTED,
    "invalid_transition": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "validation_failed": status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def _respond(result) -> JSONResponse:
    return JSONResponse(status_code=RESULT_STATUS_CODES[result.kind], content=result.to_dict())


@router.patch("/{reservation_id}/status")
def update_status(
    reservation_id: int,
    data: StatusUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    """Transition a reservation to a new status"""
    result = engine.coordinator.transition(
        reservation_id,
        data.status,
        data.reason,
        actor.user_id,
        actor.role,
        False,
        property_id=actor.property_id,
        organization_id=actor.organization_id,
        approval_override=data.approval_override,
        org_role=actor.org_role,
    )
    return _respond(result)


@router.post("/{reservation_id}/status/preview")
def preview_status(
    reservation_id: int,
    data: StatusUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    """Validate a transition without applying it"""
    result = engine.coordinator.preview(
        reservation_id,
        data.status,
        data.reason,
        actor.user_id,
        actor.role,
        property_id=actor.property_id,
        organization_id=actor.organization_id,
        org_role=actor.org_role,
    )
    return _respond(result)


@router.get("/{reservation_id}/status-history", response_model=List[StatusHistoryResponse])
def get_status_history(
    reservation_id: int,
    limit: int = Query(50, ge=1, le=500),
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_engine),
):
    """Status history, most recent first"""
    record = engine.store.get(reservation_id)
    if record is None or not actor.can_access_reservation(record.property_id, record.organization_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    entries = engine.audit.history(reservation_id, limit)
    return [StatusHistoryResponse(**e.to_dict()) for e in entries]
