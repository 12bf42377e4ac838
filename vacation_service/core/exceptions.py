from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} {entity_id} not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id}
        )

class ValidationError(AppException):
    """Bad plan input (split count, zero days, unknown type). The requester fixes and resubmits."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_ERROR",
            details=details
        )

class OverlapConflict(AppException):
    """The staff member already holds an active plan covering some of the requested days."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="OVERLAP_CONFLICT",
            details=details
        )

class StaleTransition(AppException):
    """The plan is no longer in the status the caller expected. Reload and retry."""
    def __init__(self, message: str = "This request was already acted on", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="STALE_TRANSITION",
            details=details
        )

class Unauthorized(AppException):
    """Named after the workflow outcome; the actor is authenticated but not the routed approver."""
    def __init__(self, message: str = "You are not allowed to act on this vacation plan"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="UNAUTHORIZED_APPROVER"
        )

class NoApproverAssigned(AppException):
    def __init__(self, level: int, role: str, department_id: Optional[int]):
        super().__init__(
            message=f"No {role} is assigned for department {department_id} (approval level {level}). Contact an administrator.",
            status_code=409,
            error_code="NO_APPROVER_ASSIGNED",
            details={"level": level, "role": role, "department_id": department_id}
        )
        self.level = level
        self.role = role
