from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from vacation_service.services.dates import DateRange
from vacation_service.services.transitions import DecisionOutcome

class SplitIn(BaseModel):
    start_date: date
    end_date: date

    def to_range(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

class SplitResponse(BaseModel):
    id: int
    start_date: date
    end_date: date
    days: int

    model_config = ConfigDict(from_attributes=True)

class VacationTypeCreate(BaseModel):
    name: str = Field(min_length=1)
    max_days: Optional[int] = Field(default=None, ge=1)
    requires_documentation: bool = False

class VacationTypeResponse(BaseModel):
    id: int
    name: str
    max_days: Optional[int] = None
    requires_documentation: bool

    model_config = ConfigDict(from_attributes=True)

class VacationPlanCreate(BaseModel):
    staff_id: Optional[int] = None # defaults to the caller
    vacation_type_id: int
    splits: List[SplitIn]
    notes: Optional[str] = None
    documentation_url: Optional[str] = None

class VacationPlanUpdate(BaseModel):
    vacation_type_id: Optional[int] = None
    splits: Optional[List[SplitIn]] = None
    notes: Optional[str] = None
    documentation_url: Optional[str] = None

class ApprovalResponse(BaseModel):
    id: int
    vacation_plan_id: int
    approval_level: int
    approver_id: int
    status: str
    comments: Optional[str] = None
    has_conflict: bool
    conflict_reason: Optional[str] = None
    conflicting_plans: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class VacationPlanResponse(BaseModel):
    id: int
    staff_id: int
    department_id: int
    vacation_type_id: int
    created_by: Optional[int] = None
    total_days: int
    status: str
    notes: Optional[str] = None
    documentation_url: Optional[str] = None
    submitted_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    splits: List[SplitResponse] = []
    approvals: List[ApprovalResponse] = []

    model_config = ConfigDict(from_attributes=True)

class DecisionRequest(BaseModel):
    level: int = Field(ge=1, le=3)
    outcome: DecisionOutcome
    comment: Optional[str] = None

class WithdrawRequest(BaseModel):
    reason: Optional[str] = None

class ConflictQuery(BaseModel):
    department_id: int
    splits: List[SplitIn]
    exclude_plan_id: Optional[int] = None
    staff_id: Optional[int] = None

class FlaggedDayResponse(BaseModel):
    day: date
    absent: int
    present: int

    model_config = ConfigDict(from_attributes=True)

class ConflictReportResponse(BaseModel):
    has_conflict: bool
    conflict_reason: Optional[str] = None
    conflicting_plans: List[int] = []
    flagged_days: List[FlaggedDayResponse] = []

    model_config = ConfigDict(from_attributes=True)

class TransitionResponse(BaseModel):
    plan: VacationPlanResponse
    conflict: Optional[ConflictReportResponse] = None
    notification_sent: bool = False

    model_config = ConfigDict(from_attributes=True)

# Resolve forward references for Pydantic V2
VacationPlanResponse.model_rebuild()
TransitionResponse.model_rebuild()
