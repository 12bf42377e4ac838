from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from vacation_service.core.exceptions import ValidationError
from vacation_service.database import get_db
from vacation_service.models.vacation_plan import VacationStatus
from vacation_service.models.vacation_type import VacationType
from vacation_service.routers.deps import ADMIN_ROLES, get_actor_id, get_workflow, require_role
from vacation_service.schemas.vacation import (
    ConflictQuery,
    ConflictReportResponse,
    TransitionResponse,
    VacationPlanCreate,
    VacationPlanResponse,
    VacationPlanUpdate,
    VacationTypeCreate,
    VacationTypeResponse,
    WithdrawRequest,
)
from vacation_service.services.vacation_workflow import VacationWorkflowService

router = APIRouter(prefix="/vacation", tags=["vacation"])


# --- Vacation types ---

@router.get("/types", response_model=List[VacationTypeResponse])
def list_vacation_types(db: Session = Depends(get_db)):
    return db.query(VacationType).order_by(VacationType.name).all()

@router.post("/types", response_model=VacationTypeResponse, status_code=status.HTTP_201_CREATED)
def create_vacation_type(
    payload: VacationTypeCreate,
    db: Session = Depends(get_db),
    actor_id: int = Depends(require_role(ADMIN_ROLES)),
):
    if db.query(VacationType).filter(VacationType.name == payload.name).first():
        raise ValidationError(f"Vacation type '{payload.name}' already exists")
    vacation_type = VacationType(**payload.model_dump())
    db.add(vacation_type)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(vacation_type)
    return vacation_type


# --- Plans ---

@router.post("/plans", response_model=VacationPlanResponse, status_code=status.HTTP_201_CREATED)
def create_plan(
    payload: VacationPlanCreate,
    actor_id: int = Depends(get_actor_id),
    workflow: VacationWorkflowService = Depends(get_workflow),
):
    return workflow.create_plan(
        actor_id=actor_id,
        vacation_type_id=payload.vacation_type_id,
        splits=[s.to_range() for s in payload.splits],
        staff_id=payload.staff_id,
        notes=payload.notes,
        documentation_url=payload.documentation_url,
    )

@router.get("/plans", response_model=List[VacationPlanResponse])
def list_plans(
    staff_id: Optional[int] = None,
    department_id: Optional[int] = None,
    status: Optional[VacationStatus] = None,
    actor_id: int = Depends(get_actor_id),
    workflow: VacationWorkflowService = Depends(get_workflow),
):
    return workflow.list_plans(staff_id=staff_id, department_id=department_id, status=status)

@router.get("/plans/{plan_id}", response_model=VacationPlanResponse)
def get_plan(
    plan_id: int,
    actor_id: int = Depends(get_actor_id),
    workflow: VacationWorkflowService = Depends(get_workflow),
):
    return workflow.get_plan(plan_id)

@router.put("/plans/{plan_id}", response_model=VacationPlanResponse)
def update_plan(
    plan_id: int,
    payload: VacationPlanUpdate,
    actor_id: int = Depends(get_actor_id),
    workflow: VacationWorkflowService = Depends(get_workflow),
):
    return workflow.update_draft(
        plan_id,
        actor_id,
        vacation_type_id=payload.vacation_type_id,
        splits=[s.to_range() for s in payload.splits] if payload.splits is not None else None,
        notes=payload.notes,
        documentation_url=payload.documentation_url,
    )

@router.delete("/plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_plan(
    plan_id: int,
    actor_id: int = Depends(get_actor_id),
    workflow: VacationWorkflowService = Depends(get_workflow),
):
    workflow.delete_draft(plan_id, actor_id)

@router.post("/plans/{plan_id}/submit", response_model=TransitionResponse)
def submit_plan(
    plan_id: int,
    actor_id: int = Depends(get_actor_id),
    workflow: VacationWorkflowService = Depends(get_workflow),
):
    return TransitionResponse.model_validate(workflow.submit(plan_id, actor_id))

@router.post("/plans/{plan_id}/withdraw", response_model=TransitionResponse)
def withdraw_plan(
    plan_id: int,
    payload: Optional[WithdrawRequest] = None,
    actor_id: int = Depends(get_actor_id),
    workflow: VacationWorkflowService = Depends(get_workflow),
):
    result = workflow.withdraw(plan_id, actor_id, reason=payload.reason if payload else None)
    return TransitionResponse.model_validate(result)


# --- Conflicts ---

@router.post("/conflicts", response_model=ConflictReportResponse)
def query_conflicts(
    query: ConflictQuery,
    actor_id: int = Depends(get_actor_id),
    workflow: VacationWorkflowService = Depends(get_workflow),
):
    """Advisory staffing check shown before a plan is submitted."""
    return workflow.query_conflicts(
        query.department_id,
        [s.to_range() for s in query.splits],
        exclude_plan_id=query.exclude_plan_id,
        staff_id=query.staff_id,
    )
