from fastapi import APIRouter
from vacation_service.routers import notifications, vacation, vacation_approvals

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(vacation.router, tags=["Vacation"])
api_router.include_router(vacation_approvals.router, tags=["Vacation Approvals"])
api_router.include_router(notifications.router, tags=["Notifications"])
