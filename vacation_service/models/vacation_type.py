from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from vacation_service.database import Base

class VacationType(Base):
    __tablename__ = "vacation_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    max_days = Column(Integer, nullable=True) # None = no per-request limit
    requires_documentation = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
