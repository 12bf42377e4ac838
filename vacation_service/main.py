"""
Vacation Approval Service - FastAPI Application

Routes live under settings.api_prefix; /docs, /health and /readiness stay at
the root. Every error leaves the service in one envelope:

    {"success": false, "request_id": "...", "errors": [{"msg": ..., "code": ...}]}
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Union

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

import vacation_service.models  # noqa: F401  Force model registration with SQLAlchemy
from vacation_service.core.config import settings
from vacation_service.core.exceptions import AppException
from vacation_service.core.logging import request_id_var, setup_logging
from vacation_service.core.middleware import CorrelationIdMiddleware, LoggingMiddleware
from vacation_service.database import SessionLocal, init_db
from vacation_service.routers.api_router import api_router

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")
    try:
        init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    logger.info("Vacation tables ready")

    yield

    logger.info("Shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Multi-level vacation approval with staffing conflict detection",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Last added runs first: CORS -> CorrelationId -> Logging
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.request_id_header, "X-Process-Time"],
)


def _error_response(status_code: int, errors: List[Dict[str, Any]]) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "request_id": request_id_var.get() or None, "errors": errors},
    )


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Workflow errors: validation, overlap, stale transition, routing."""
    logger.warning(
        f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}",
        extra={"code": exc.error_code},
    )
    error = {"msg": exc.message, "code": exc.error_code}
    if exc.details:
        error["details"] = exc.details
    return _error_response(exc.status_code, [error])


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # loc is ('body', 'splits', 0, 'start_date'); the last element names the field
    errors = [
        {"field": str(e["loc"][-1]) if e["loc"] else "unknown", "msg": e["msg"], "code": "REQUEST_INVALID"}
        for e in exc.errors()
    ]
    logger.warning(f"Rejected request body on {request.url.path}: {errors}")
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


@app.exception_handler(StarletteHTTPException)
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: Union[HTTPException, StarletteHTTPException]):
    msg = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error_response(exc.status_code, [{"msg": msg}])


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled server error", extra={"path": request.url.path})
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        [{"msg": "An unexpected server error occurred."}],
    )


app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/", tags=["Health"])
def root():
    return {
        "message": "Vacation Approval Service API",
        "version": settings.version,
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Liveness probe; does not touch the database."""
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment,
        "build": settings.build_id,
    }


@app.get("/readiness", tags=["Health"])
def readiness_check():
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    return {"status": "ready", "components": {"database": "connected"}}
