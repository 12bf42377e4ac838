"""
Department Model.
Belongs to a facility and carries the minimum staffing level used by the
vacation conflict detector.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from vacation_service.database import Base


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=False, index=True)

    name = Column(String, nullable=False, index=True)

    # Staff that must stay present on any given day
    min_staffing = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    facility = relationship("Facility", back_populates="departments")
    staff = relationship("User", foreign_keys="User.department_id", back_populates="department")

    def __repr__(self):
        return f"<Department {self.id}: {self.name}>"
