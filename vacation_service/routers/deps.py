"""
Request-scoped dependencies.

Authentication happens upstream; the gateway forwards the authenticated user's
id in the X-User-ID header.
"""
import logging
from typing import Callable, List

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from vacation_service.core.exceptions import Unauthorized
from vacation_service.database import get_db
from vacation_service.models.user import AppRole, User, UserRole
from vacation_service.services.vacation_workflow import VacationWorkflowService

logger = logging.getLogger(__name__)


def get_actor_id(
    x_user_id: int = Header(..., description="Id of the authenticated caller"),
    db: Session = Depends(get_db),
) -> int:
    user = db.get(User, x_user_id)
    if user is None or not user.is_active:
        logger.warning(f"Rejected request for unknown or inactive user {x_user_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown or inactive user",
        )
    return user.id


def get_workflow(db: Session = Depends(get_db)) -> VacationWorkflowService:
    return VacationWorkflowService(db)


ADMIN_ROLES = [AppRole.SUPER_ADMIN, AppRole.GENERAL_ADMIN, AppRole.ORGANIZATION_ADMIN]


def require_role(allowed_roles: List[AppRole]) -> Callable:
    """
    Dependency factory that checks the caller holds one of the allowed roles.

    Usage:
        @router.post("/types")
        def create_type(actor_id: int = Depends(require_role(ADMIN_ROLES))):
            ...
    """
    def role_checker(actor_id: int = Depends(get_actor_id), db: Session = Depends(get_db)) -> int:
        held = db.query(UserRole).filter(
            UserRole.user_id == actor_id,
            UserRole.role.in_(allowed_roles),
        ).first()
        if held is None:
            logger.warning(f"User {actor_id} lacks required roles {[r.value for r in allowed_roles]}")
            raise Unauthorized(f"Access denied. Required roles: {[r.value for r in allowed_roles]}")
        return actor_id
    return role_checker
