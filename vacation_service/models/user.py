"""
Staff and Role Assignment Models.
A user belongs to at most one department; approver roles are scoped
assignments held in user_roles.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from vacation_service.database import Base


class AppRole(str, enum.Enum):
    """
    Roles of the workforce application.

    Approver roles and the scope column each one is matched on:
    - DEPARTMENT_HEAD: department_id (level 1)
    - FACILITY_SUPERVISOR: facility_id (level 2)
    - WORKPLACE_SUPERVISOR: workspace_id (level 3)
    """
    SUPER_ADMIN = "super_admin"
    GENERAL_ADMIN = "general_admin"
    ORGANIZATION_ADMIN = "organization_admin"
    WORKPLACE_SUPERVISOR = "workplace_supervisor"
    FACILITY_SUPERVISOR = "facility_supervisor"
    DEPARTMENT_HEAD = "department_head"
    STAFF = "staff"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)

    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    department = relationship("Department", foreign_keys=[department_id], back_populates="staff")
    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email}>"

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(AppRole), nullable=False, index=True)

    # Only the column matching the role's scope is set
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=True, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="roles")
