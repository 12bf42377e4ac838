"""
Workspace and Facility Models.
Top of the org hierarchy: workspace > facility > department. Managed by the
administration module; this service only reads them.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from vacation_service.database import Base


class Workspace(Base):
    __tablename__ = "workspaces"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)

    # Vacation rules configured per workspace
    max_vacation_splits = Column(Integer, nullable=False, default=6)
    min_vacation_notice_days = Column(Integer, nullable=True, default=14)
    max_concurrent_vacations = Column(Integer, nullable=True, default=3)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    facilities = relationship("Facility", back_populates="workspace")

    def __repr__(self):
        return f"<Workspace {self.id}: {self.name}>"


class Facility(Base):
    __tablename__ = "facilities"

    id = Column(Integer, primary_key=True, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id"), nullable=False, index=True)
    name = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    workspace = relationship("Workspace", back_populates="facilities")
    departments = relationship("Department", back_populates="facility")

    def __repr__(self):
        return f"<Facility {self.id}: {self.name}>"
