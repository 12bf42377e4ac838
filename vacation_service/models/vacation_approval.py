from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from vacation_service.database import Base
import enum

class ApprovalLevel(int, enum.Enum):
    DEPARTMENT = 1
    FACILITY = 2
    WORKSPACE = 3

class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class VacationApproval(Base):
    """
    One decision slot per plan and level. Created pending when the plan reaches
    the level and written once by the routed approver.
    """
    __tablename__ = "vacation_approvals"
    __table_args__ = (
        UniqueConstraint("vacation_plan_id", "approval_level", name="uq_vacation_approval_plan_level"),
    )

    id = Column(Integer, primary_key=True, index=True)
    vacation_plan_id = Column(Integer, ForeignKey("vacation_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    approval_level = Column(Integer, nullable=False)
    approver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default=ApprovalStatus.PENDING.value)
    comments = Column(Text, nullable=True)
    has_conflict = Column(Boolean, nullable=False, default=False)
    conflict_reason = Column(Text, nullable=True)
    conflicting_plans = Column(JSON, nullable=True) # snapshot taken at decision time
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    decided_at = Column(DateTime(timezone=True), nullable=True)

    plan = relationship("VacationPlan", back_populates="approvals")
