"""
Pydantic schemas
API request/response validation
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from lifecycle.domain.enums import (
    DayTransitionIssueType, IssueSeverity, PaymentStatus, ReservationStatus,
)


# ============== Status transition Schemas ==============

class StatusUpdateRequest(BaseModel):
    # Kept as a string so unknown statuses reach the validator and come back as 400
    status: str = Field(..., min_length=1, max_length=40)
    reason: Optional[str] = Field(None, max_length=500)
    approval_override: bool = False


class StatusHistoryResponse(BaseModel):
    id: int
    reservation_id: int
    property_id: int
    previous_status: Optional[ReservationStatus] = None
    new_status: ReservationStatus
    changed_by: Optional[int] = None
    change_reason: Optional[str] = None
    is_automatic: bool
    changed_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== Day-roll Schemas ==============

class DayTransitionIssueResponse(BaseModel):
    reservation_id: int
    guest_name: str
    room_number: str
    severity: IssueSeverity
    issue_type: DayTransitionIssueType
    description: str
    payment_status: Optional[PaymentStatus] = None
    reservation_status: Optional[ReservationStatus] = None
    relevant_date: Optional[date] = None
    model_config = ConfigDict(from_attributes=True)


class DayRollResponse(BaseModel):
    property_id: int
    candidate_date: date
    closing_date: date
    can_advance: bool
    critical_count: int
    warning_count: int
    issues: List[DayTransitionIssueResponse] = []


# ============== Automation Schemas ==============

class AutomationRunRequest(BaseModel):
    dry_run: bool = False
