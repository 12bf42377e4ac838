from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from vacation_service.database import Base
import enum

class VacationStatus(str, enum.Enum):
    DRAFT = "draft"
    DEPARTMENT_PENDING = "department_pending"
    FACILITY_PENDING = "facility_pending"
    WORKSPACE_PENDING = "workspace_pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_pending(self) -> bool:
        return self in PENDING_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in (VacationStatus.APPROVED, VacationStatus.REJECTED)


PENDING_STATUSES = (
    VacationStatus.DEPARTMENT_PENDING,
    VacationStatus.FACILITY_PENDING,
    VacationStatus.WORKSPACE_PENDING,
)

# Plans that hold days off: they count for self-overlap and staffing conflicts
ACTIVE_STATUSES = PENDING_STATUSES + (VacationStatus.APPROVED,)


class VacationPlan(Base):
    __tablename__ = "vacation_plans"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)
    vacation_type_id = Column(Integer, ForeignKey("vacation_types.id"), nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    total_days = Column(Integer, nullable=False, default=0)
    # String column holding VacationStatus values; writes go through the workflow service
    status = Column(String, nullable=False, default=VacationStatus.DRAFT.value, index=True)
    notes = Column(Text, nullable=True)
    documentation_url = Column(String, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    vacation_type = relationship("VacationType")
    staff = relationship("User", foreign_keys=[staff_id])
    splits = relationship(
        "VacationSplit",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="VacationSplit.start_date",
    )
    approvals = relationship(
        "VacationApproval",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="VacationApproval.approval_level",
    )

    @property
    def status_enum(self) -> VacationStatus:
        return VacationStatus(self.status)

    def __repr__(self):
        return f"<VacationPlan {self.id} staff={self.staff_id} {self.status}>"


class VacationSplit(Base):
    __tablename__ = "vacation_splits"

    id = Column(Integer, primary_key=True, index=True)
    vacation_plan_id = Column(Integer, ForeignKey("vacation_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(Integer, nullable=False)

    plan = relationship("VacationPlan", back_populates="splits")
