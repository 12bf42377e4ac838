from typing import List

from fastapi import APIRouter, Depends

from vacation_service.routers.deps import get_actor_id, get_workflow
from vacation_service.schemas.vacation import ApprovalResponse, DecisionRequest, TransitionResponse
from vacation_service.services.vacation_workflow import VacationWorkflowService

router = APIRouter(prefix="/vacation", tags=["vacation-approvals"])


# Approver decision endpoint
@router.post("/plans/{plan_id}/decision", response_model=TransitionResponse)
def decide_plan(
    plan_id: int,
    decision: DecisionRequest,
    actor_id: int = Depends(get_actor_id),
    workflow: VacationWorkflowService = Depends(get_workflow),
):
    result = workflow.decide(
        plan_id,
        level=decision.level,
        approver_id=actor_id,
        outcome=decision.outcome,
        comment=decision.comment,
    )
    return TransitionResponse.model_validate(result)


# Approver inbox
@router.get("/approvals/pending", response_model=List[ApprovalResponse])
def pending_approvals(
    actor_id: int = Depends(get_actor_id),
    workflow: VacationWorkflowService = Depends(get_workflow),
):
    return workflow.pending_for_approver(actor_id)
