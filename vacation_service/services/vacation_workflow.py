"""
Vacation request lifecycle.

Orchestrates drafting, submission, the three approval levels and withdrawal.
Each status change is a single conditional UPDATE keyed on the status the
caller read; if another request got there first the update matches no row and
the caller gets StaleTransition. Notifications go out after the commit and
never undo it.
"""
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from vacation_service.core.config import VacationRules, settings
from vacation_service.core.exceptions import (
    NotFoundError,
    StaleTransition,
    Unauthorized,
    ValidationError,
)
from vacation_service.models.user import User
from vacation_service.models.vacation_approval import ApprovalLevel, ApprovalStatus, VacationApproval
from vacation_service.models.vacation_plan import VacationPlan, VacationSplit, VacationStatus
from vacation_service.models.vacation_type import VacationType
from vacation_service.services.audit import AuditService
from vacation_service.services.base import BaseService
from vacation_service.services.conflicts import ConflictReport, detect_conflicts
from vacation_service.services.dates import DateRange, internal_overlaps, total_days
from vacation_service.services.directory import DirectoryService, SqlDirectoryService, WorkspaceRules
from vacation_service.services.notification import DbNotificationDispatcher, NotificationDispatcher, NotificationIntent
from vacation_service.services.overlap import SelfOverlapValidator
from vacation_service.services.routing import ApprovalRouter
from vacation_service.services.transitions import (
    FINAL_LEVEL,
    LEVEL_FOR_STATUS,
    STATUS_FOR_LEVEL,
    DecisionOutcome,
    ensure_transition,
    status_after,
)
from vacation_service.services.vacation_notifications import (
    compose_status_notification,
    compose_withdrawal_notification,
)

WITHDRAWN_COMMENT = "Withdrawn by requester"


@dataclass
class TransitionResult:
    plan: VacationPlan
    approval: Optional[VacationApproval] = None
    next_approval: Optional[VacationApproval] = None
    conflict: Optional[ConflictReport] = None
    notification: Optional[NotificationIntent] = None
    notification_sent: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ranges(plan: VacationPlan) -> List[DateRange]:
    return [DateRange(s.start_date, s.end_date) for s in plan.splits]


def _plan_state(plan: VacationPlan) -> dict:
    return {"status": plan.status, "total_days": plan.total_days}


class VacationWorkflowService(BaseService):

    def __init__(
        self,
        db: Session,
        directory: Optional[DirectoryService] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        today: Callable[[], date] = date.today,
        rules: VacationRules = settings.vacation,
    ):
        super().__init__(db)
        self.directory = directory or SqlDirectoryService(db)
        self.dispatcher = dispatcher or DbNotificationDispatcher(db)
        self.router = ApprovalRouter(self.directory)
        self.overlap_validator = SelfOverlapValidator(self.directory)
        self.audit = AuditService(db)
        self.today = today
        self.rules = rules

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_plan(self, plan_id: int) -> VacationPlan:
        plan = (
            self.db.query(VacationPlan)
            .options(selectinload(VacationPlan.splits), selectinload(VacationPlan.approvals))
            .filter(VacationPlan.id == plan_id)
            .first()
        )
        if plan is None:
            raise NotFoundError("Vacation plan", plan_id)
        return plan

    def list_plans(
        self,
        staff_id: Optional[int] = None,
        department_id: Optional[int] = None,
        status: Optional[VacationStatus] = None,
    ) -> List[VacationPlan]:
        query = self.db.query(VacationPlan).options(selectinload(VacationPlan.splits))
        if staff_id is not None:
            query = query.filter(VacationPlan.staff_id == staff_id)
        if department_id is not None:
            query = query.filter(VacationPlan.department_id == department_id)
        if status is not None:
            query = query.filter(VacationPlan.status == VacationStatus(status).value)
        return query.order_by(VacationPlan.id.desc()).all()

    def pending_for_approver(self, approver_id: int) -> List[VacationApproval]:
        return (
            self.db.query(VacationApproval)
            .filter(
                VacationApproval.approver_id == approver_id,
                VacationApproval.status == ApprovalStatus.PENDING.value,
            )
            .order_by(VacationApproval.created_at, VacationApproval.id)
            .all()
        )

    def query_conflicts(
        self,
        department_id: int,
        splits: Sequence[DateRange],
        exclude_plan_id: Optional[int] = None,
        staff_id: Optional[int] = None,
    ) -> ConflictReport:
        """Advisory staffing check; always evaluated against current data."""
        return detect_conflicts(
            splits,
            self.directory.get_active_plans(department_id),
            self.directory.get_department_staffing(department_id),
            staff_id=staff_id,
            exclude_plan_id=exclude_plan_id,
        )

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _vacation_type(self, vacation_type_id: Optional[int]) -> VacationType:
        vacation_type = self.db.get(VacationType, vacation_type_id) if vacation_type_id is not None else None
        if vacation_type is None:
            raise ValidationError("Select a valid vacation type", details={"vacation_type_id": vacation_type_id})
        return vacation_type

    def _validate_splits(self, splits: Sequence[DateRange], vacation_type: VacationType, rules: WorkspaceRules) -> int:
        if not splits:
            raise ValidationError("A vacation plan needs at least one date range")
        for split in splits:
            if split.end_date < split.start_date:
                raise ValidationError(
                    f"Vacation range {split} ends before it starts",
                    details={"split": split.to_dict()},
                )
        if len(splits) > rules.max_splits:
            raise ValidationError(
                f"Maximum {rules.max_splits} splits allowed",
                details={"max_splits": rules.max_splits, "count": len(splits)},
            )
        clashes = internal_overlaps(splits)
        if clashes:
            first, second = clashes[0]
            raise ValidationError(
                f"Vacation ranges {first} and {second} overlap",
                details={"overlaps": [[a.to_dict(), b.to_dict()] for a, b in clashes]},
            )

        days = total_days(splits)
        if days <= 0:
            raise ValidationError("A vacation plan must cover at least one day")
        if vacation_type.max_days is not None and days > vacation_type.max_days:
            raise ValidationError(
                f"{vacation_type.name} allows at most {vacation_type.max_days} days, requested {days}",
                details={"max_days": vacation_type.max_days, "total_days": days},
            )
        return days

    def _validate_notice(self, splits: Sequence[DateRange], rules: WorkspaceRules) -> None:
        if not self.rules.enforce_notice_period or not rules.min_notice_days:
            return
        earliest = min(s.start_date for s in splits)
        notice = (earliest - self.today()).days
        if notice < rules.min_notice_days:
            raise ValidationError(
                f"Vacation requests need {rules.min_notice_days} days notice; the first range starts in {notice} days",
                details={"min_notice_days": rules.min_notice_days, "notice_days": notice},
            )

    def _require_owner(self, plan: VacationPlan, actor_id: int) -> None:
        if actor_id not in (plan.staff_id, plan.created_by):
            raise Unauthorized("Only the staff member or the plan's creator can change this vacation plan")

    def _require_draft(self, plan: VacationPlan, action: str) -> None:
        if plan.status != VacationStatus.DRAFT.value:
            raise ValidationError(
                f"Only draft vacation plans can be {action}; this plan is {plan.status}",
                details={"status": plan.status},
            )

    def _display_name(self, user_id: Optional[int]) -> Optional[str]:
        user = self.db.get(User, user_id) if user_id is not None else None
        return user.display_name if user else None

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def create_plan(
        self,
        actor_id: int,
        vacation_type_id: int,
        splits: Sequence[DateRange],
        staff_id: Optional[int] = None,
        notes: Optional[str] = None,
        documentation_url: Optional[str] = None,
    ) -> VacationPlan:
        staff_id = staff_id if staff_id is not None else actor_id
        department_id = self.directory.get_staff_department(staff_id)
        if department_id is None:
            raise ValidationError(
                f"Staff member {staff_id} is not assigned to a department",
                details={"staff_id": staff_id},
            )
        # Department heads may plan on behalf of their staff
        if actor_id != staff_id and self.directory.get_approver(int(ApprovalLevel.DEPARTMENT), department_id) != actor_id:
            raise Unauthorized("Only the staff member or their department head can create this vacation plan")

        vacation_type = self._vacation_type(vacation_type_id)
        rules = self.directory.get_workspace_rules(department_id)
        days = self._validate_splits(splits, vacation_type, rules)
        self.overlap_validator.validate(staff_id, splits)

        plan = VacationPlan(
            staff_id=staff_id,
            department_id=department_id,
            vacation_type_id=vacation_type.id,
            created_by=actor_id,
            total_days=days,
            status=VacationStatus.DRAFT.value,
            notes=notes,
            documentation_url=documentation_url,
            splits=[VacationSplit(start_date=s.start_date, end_date=s.end_date, days=s.days) for s in sorted(splits)],
        )
        self.db.add(plan)
        self.db.flush()
        self.audit.log_action(
            action="vacation_plan_created",
            entity_type="vacation_plan",
            entity_id=plan.id,
            user_id=actor_id,
            details={"staff_id": staff_id, "splits": [s.to_dict() for s in splits]},
            after_state=_plan_state(plan),
        )
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(plan)
        self._logger.info(f"Vacation plan {plan.id} drafted for staff {staff_id} ({days} days)")
        return plan

    def update_draft(
        self,
        plan_id: int,
        actor_id: int,
        vacation_type_id: Optional[int] = None,
        splits: Optional[Sequence[DateRange]] = None,
        notes: Optional[str] = None,
        documentation_url: Optional[str] = None,
    ) -> VacationPlan:
        plan = self.get_plan(plan_id)
        self._require_owner(plan, actor_id)
        self._require_draft(plan, "edited")

        vacation_type = self._vacation_type(vacation_type_id if vacation_type_id is not None else plan.vacation_type_id)
        new_splits = list(splits) if splits is not None else _ranges(plan)
        rules = self.directory.get_workspace_rules(plan.department_id)
        days = self._validate_splits(new_splits, vacation_type, rules)
        self.overlap_validator.validate(plan.staff_id, new_splits, exclude_plan_id=plan.id)

        before = _plan_state(plan)
        plan.vacation_type_id = vacation_type.id
        plan.total_days = days
        if splits is not None:
            plan.splits = [
                VacationSplit(start_date=s.start_date, end_date=s.end_date, days=s.days) for s in sorted(new_splits)
            ]
        if notes is not None:
            plan.notes = notes
        if documentation_url is not None:
            plan.documentation_url = documentation_url

        self.audit.log_action(
            action="vacation_plan_updated",
            entity_type="vacation_plan",
            entity_id=plan.id,
            user_id=actor_id,
            details={"splits": [s.to_dict() for s in new_splits]},
            before_state=before,
            after_state=_plan_state(plan),
        )
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(plan)
        return plan

    def delete_draft(self, plan_id: int, actor_id: int) -> None:
        plan = self.get_plan(plan_id)
        self._require_owner(plan, actor_id)
        self._require_draft(plan, "deleted")

        self.audit.log_action(
            action="vacation_plan_deleted",
            entity_type="vacation_plan",
            entity_id=plan.id,
            user_id=actor_id,
            details={"staff_id": plan.staff_id},
            before_state=_plan_state(plan),
        )
        self.db.delete(plan)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self._logger.info(f"Draft vacation plan {plan_id} deleted by user {actor_id}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _compare_and_set_status(self, plan: VacationPlan, expected: VacationStatus, target: VacationStatus) -> None:
        ensure_transition(expected, target)

        values = {VacationPlan.status: target.value}
        now = _utcnow()
        if expected == VacationStatus.DRAFT:
            values[VacationPlan.submitted_at] = now
        if target.is_terminal:
            values[VacationPlan.decided_at] = now

        updated = (
            self.db.query(VacationPlan)
            .filter(VacationPlan.id == plan.id, VacationPlan.status == expected.value)
            .update(values, synchronize_session=False)
        )
        if updated != 1:
            self.db.rollback()
            self._logger.info(f"Stale transition on vacation plan {plan.id}: expected {expected.value}")
            raise StaleTransition(details={"plan_id": plan.id, "expected_status": expected.value})

    def _commit_transition(self, plan: VacationPlan) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent decision already created the approval row for this level
            self.db.rollback()
            raise StaleTransition(details={"plan_id": plan.id})
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(plan)

    def _pending_row(self, plan: VacationPlan, level: ApprovalLevel) -> VacationApproval:
        row = (
            self.db.query(VacationApproval)
            .filter(
                VacationApproval.vacation_plan_id == plan.id,
                VacationApproval.approval_level == int(level),
            )
            .first()
        )
        if row is None or row.status != ApprovalStatus.PENDING.value:
            raise StaleTransition(
                f"Level {int(level)} of vacation plan {plan.id} has already been decided",
                details={"plan_id": plan.id, "level": int(level)},
            )
        return row

    def _dispatch(self, intent: Optional[NotificationIntent]) -> bool:
        if intent is None:
            return False
        try:
            self.dispatcher.deliver(intent)
            return True
        except Exception as e:
            # Don't fail the transition if notification fails
            self._logger.warning(
                f"Notification for vacation plan {intent.related_plan_id} failed: {e}",
                exc_info=True,
            )
            return False

    def submit(self, plan_id: int, actor_id: int) -> TransitionResult:
        plan = self.get_plan(plan_id)
        self._require_owner(plan, actor_id)
        if plan.status != VacationStatus.DRAFT.value:
            raise StaleTransition(
                f"Vacation plan {plan.id} was already submitted ({plan.status})",
                details={"plan_id": plan.id, "status": plan.status},
            )

        splits = _ranges(plan)
        vacation_type = self._vacation_type(plan.vacation_type_id)
        rules = self.directory.get_workspace_rules(plan.department_id)
        days = self._validate_splits(splits, vacation_type, rules)
        if vacation_type.requires_documentation and not plan.documentation_url:
            raise ValidationError(f"{vacation_type.name} requires supporting documentation")
        self.overlap_validator.validate(plan.staff_id, splits, exclude_plan_id=plan.id)
        self._validate_notice(splits, rules)

        # Resolve before writing so a routing gap leaves the draft untouched
        approver_id = self.router.resolve(ApprovalLevel.DEPARTMENT, plan.department_id)

        before = _plan_state(plan)
        self._compare_and_set_status(plan, VacationStatus.DRAFT, VacationStatus.DEPARTMENT_PENDING)
        if plan.total_days != days:
            plan.total_days = days
        approval = VacationApproval(
            vacation_plan_id=plan.id,
            approval_level=int(ApprovalLevel.DEPARTMENT),
            approver_id=approver_id,
            status=ApprovalStatus.PENDING.value,
        )
        self.db.add(approval)
        self.audit.log_action(
            action="vacation_plan_submitted",
            entity_type="vacation_plan",
            entity_id=plan.id,
            user_id=actor_id,
            details={"approver_id": approver_id, "level": 1},
            before_state=before,
            after_state={"status": VacationStatus.DEPARTMENT_PENDING.value, "total_days": days},
        )
        self._commit_transition(plan)
        self._logger.info(f"Vacation plan {plan.id} submitted; awaiting department head {approver_id}")

        intent = compose_status_notification(
            plan_id=plan.id,
            new_status=VacationStatus.DEPARTMENT_PENDING,
            vacation_type=vacation_type.name,
            total_days=plan.total_days,
            staff_id=plan.staff_id,
            approver_id=approver_id,
        )
        return TransitionResult(
            plan=plan,
            next_approval=approval,
            notification=intent,
            notification_sent=self._dispatch(intent),
        )

    def decide(
        self,
        plan_id: int,
        level: int,
        approver_id: int,
        outcome: DecisionOutcome,
        comment: Optional[str] = None,
    ) -> TransitionResult:
        try:
            level = ApprovalLevel(level)
        except ValueError:
            raise ValidationError(f"Unknown approval level {level}", details={"level": level})
        outcome = DecisionOutcome(outcome)

        plan = self.get_plan(plan_id)
        expected = STATUS_FOR_LEVEL[level]
        if plan.status != expected.value:
            raise StaleTransition(
                f"Vacation plan {plan.id} is {plan.status}, not awaiting a level {int(level)} decision",
                details={"plan_id": plan.id, "status": plan.status, "level": int(level)},
            )

        routed = self.router.resolve(level, plan.department_id)
        if approver_id != routed:
            raise Unauthorized(f"Level {int(level)} of this vacation plan must be decided by its routed approver")

        row = self._pending_row(plan, level)
        target = status_after(level, outcome)

        conflict = None
        next_approver_id = None
        if outcome == DecisionOutcome.APPROVE:
            conflict = self.query_conflicts(
                plan.department_id, _ranges(plan), exclude_plan_id=plan.id, staff_id=plan.staff_id
            )
            if level != FINAL_LEVEL:
                next_approver_id = self.router.resolve(ApprovalLevel(level + 1), plan.department_id)

        before = _plan_state(plan)
        self._compare_and_set_status(plan, expected, target)

        row.approver_id = approver_id
        row.status = ApprovalStatus.APPROVED.value if outcome == DecisionOutcome.APPROVE else ApprovalStatus.REJECTED.value
        row.comments = comment
        row.decided_at = _utcnow()
        if conflict is not None:
            row.has_conflict = conflict.has_conflict
            row.conflict_reason = conflict.conflict_reason
            row.conflicting_plans = conflict.to_snapshot() if conflict.has_conflict else None

        next_row = None
        if next_approver_id is not None:
            next_row = VacationApproval(
                vacation_plan_id=plan.id,
                approval_level=int(level) + 1,
                approver_id=next_approver_id,
                status=ApprovalStatus.PENDING.value,
            )
            self.db.add(next_row)

        self.audit.log_action(
            action=f"vacation_{outcome.value}_level_{int(level)}",
            entity_type="vacation_plan",
            entity_id=plan.id,
            user_id=approver_id,
            details={
                "comment": comment,
                "has_conflict": bool(conflict and conflict.has_conflict),
                "next_approver_id": next_approver_id,
            },
            before_state=before,
            after_state={"status": target.value, "total_days": plan.total_days},
        )
        self._commit_transition(plan)
        self._logger.info(
            f"Vacation plan {plan.id} level {int(level)} {outcome.value}d by {approver_id}; now {target.value}",
            extra={"plan_id": plan.id, "has_conflict": bool(conflict and conflict.has_conflict)},
        )

        intent = compose_status_notification(
            plan_id=plan.id,
            new_status=target,
            vacation_type=plan.vacation_type.name if plan.vacation_type else None,
            total_days=plan.total_days,
            staff_id=plan.staff_id,
            approver_id=next_approver_id,
            actor_name=self._display_name(approver_id),
            comment=comment,
            conflict_reason=conflict.conflict_reason if conflict is not None else None,
        )
        return TransitionResult(
            plan=plan,
            approval=row,
            next_approval=next_row,
            conflict=conflict,
            notification=intent,
            notification_sent=self._dispatch(intent),
        )

    def withdraw(self, plan_id: int, actor_id: int, reason: Optional[str] = None) -> TransitionResult:
        """Requester cancels a pending plan. Recorded as a rejection of the current level."""
        plan = self.get_plan(plan_id)
        self._require_owner(plan, actor_id)
        status = plan.status_enum
        if status == VacationStatus.DRAFT:
            raise ValidationError(
                f"Vacation plan {plan.id} has not been submitted; delete the draft instead",
                details={"plan_id": plan.id, "status": plan.status},
            )
        if not status.is_pending:
            raise StaleTransition(
                f"Vacation plan {plan.id} is {plan.status} and cannot be withdrawn",
                details={"plan_id": plan.id, "status": plan.status},
            )

        level = LEVEL_FOR_STATUS[status]
        row = self._pending_row(plan, level)
        before = _plan_state(plan)
        self._compare_and_set_status(plan, status, VacationStatus.REJECTED)

        row.status = ApprovalStatus.REJECTED.value
        row.comments = reason or WITHDRAWN_COMMENT
        row.decided_at = _utcnow()
        self.audit.log_action(
            action="vacation_plan_withdrawn",
            entity_type="vacation_plan",
            entity_id=plan.id,
            user_id=actor_id,
            details={"level": int(level), "reason": row.comments},
            before_state=before,
            after_state={"status": VacationStatus.REJECTED.value, "total_days": plan.total_days},
        )
        self._commit_transition(plan)
        self._logger.info(f"Vacation plan {plan.id} withdrawn at level {int(level)} by user {actor_id}")

        intent = compose_withdrawal_notification(
            plan_id=plan.id,
            vacation_type=plan.vacation_type.name if plan.vacation_type else None,
            total_days=plan.total_days,
            approver_id=row.approver_id,
            staff_name=self._display_name(plan.staff_id),
        )
        return TransitionResult(
            plan=plan,
            approval=row,
            notification=intent,
            notification_sent=self._dispatch(intent),
        )
