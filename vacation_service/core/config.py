import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()

class VacationRules(BaseModel):
    # Fallbacks used when a workspace row leaves a rule unset
    default_max_splits: int = Field(default=int(os.getenv("DEFAULT_MAX_VACATION_SPLITS", "6")))
    default_min_notice_days: int = Field(default=int(os.getenv("DEFAULT_MIN_NOTICE_DAYS", "14")))
    enforce_notice_period: bool = Field(default=os.getenv("ENFORCE_NOTICE_PERIOD", "true").lower() == "true")
    notification_type: str = "vacation"

class Config(BaseModel):
    app_name: str = "Vacation Approval Service"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./vacations.db")

    # Vacation workflow
    vacation: VacationRules = VacationRules()

    version: str = "1.0.0"
    build_id: str = os.getenv("BUILD_ID", "local")
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment == "production" and settings.database_url.startswith("sqlite"):
    _logger.warning("Running in production against SQLite; conditional status updates are serialized per process only.")
if settings.vacation.default_max_splits < 1:
    raise RuntimeError(
        f"FATAL: DEFAULT_MAX_VACATION_SPLITS must be at least 1, got {settings.vacation.default_max_splits}."
    )
