"""
Engine, session factory and declarative base.

PostgreSQL in deployed environments, SQLite for local runs and tests. SQLite
only enforces foreign keys when asked to, so the pragma is switched on for
every new connection.
"""
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from vacation_service.core.config import settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **kwargs) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, **kwargs)
    engine = create_engine(url, connect_args={"check_same_thread": False}, **kwargs)
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """One session per request; services own commit and rollback."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None):
    # Every table must be registered on Base.metadata before create_all
    from vacation_service.models import (  # noqa: F401
        organization, department, user, vacation_type, vacation_plan,
        vacation_approval, notification, audit_log
    )
    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info(f"Schema ready on {target.url.get_backend_name()}")
