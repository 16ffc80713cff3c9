# models.py — Database models for TaskHub
# - UUID string primary keys everywhere
# - 3-role system (admin, company, user)
# - Companies own users and tasks; deleting a company cascades in the store
# - Hard deletes only
# - Token revocation and audit trail tables

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, DateTime, JSON, Text, Index,
    Enum as SQLEnum, ForeignKey,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


def _enum(enum_cls, name):
    # Persist the enum values ("in-progress"), not the member names
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, PyEnum):
    ADMIN = "admin"
    COMPANY = "company"
    USER = "user"


class CompanyStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TaskStatus(str, PyEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(str, PyEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AuditEventType(str, PyEnum):
    # Auth events
    USER_LOGIN = "auth.user.login"
    USER_LOGOUT = "auth.user.logout"
    USER_REGISTER = "auth.user.register"
    TOKEN_REFRESHED = "auth.token.refreshed"
    # Company events
    COMPANY_CREATED = "company.created"
    COMPANY_UPDATED = "company.updated"
    COMPANY_DELETED = "company.deleted"
    # Company membership events
    MEMBER_CREATED = "company.member.created"
    MEMBER_UPDATED = "company.member.updated"
    MEMBER_DELETED = "company.member.deleted"
    # Task events
    TASK_CREATED = "task.created"
    TASK_UPDATED = "task.updated"
    TASK_STATUS_CHANGED = "task.status.changed"
    TASK_COMPLETED = "task.completed"
    TASK_NOTES_REPLACED = "task.notes.replaced"
    TASK_DELETED = "task.deleted"


# ============================================================
# COMPANIES
# ============================================================

class Company(Base):
    __tablename__ = "companies"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    website = Column(String, nullable=True)
    logo = Column(String, nullable=True)
    status = Column(_enum(CompanyStatus, "company_status"), default=CompanyStatus.ACTIVE, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships (rows are removed by ON DELETE CASCADE in the store)
    users = relationship(
        "User", back_populates="company", order_by="User.created_at",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    tasks = relationship(
        "Task", back_populates="company", order_by="Task.created_at",
        cascade="all, delete-orphan", passive_deletes=True,
    )


# ============================================================
# USERS
# ============================================================

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(_enum(UserRole, "user_role"), default=UserRole.USER, nullable=False, index=True)
    company_id = Column(String, ForeignKey("companies.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    company = relationship("Company", back_populates="users")

    __table_args__ = (
        Index("idx_user_company_role", "company_id", "role"),
    )


# ============================================================
# TOKEN REVOCATION
# ============================================================

class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    id = Column(String, primary_key=True, default=new_uuid)
    jti = Column(String, unique=True, nullable=False, index=True)  # JWT ID
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    revoked_at = Column(DateTime(timezone=True), default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False)  # When the token would have expired


# ============================================================
# TASKS
# ============================================================

class Task(Base):
    """A unit of work, scoped by creator, company and assignee"""
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)  # creator
    company_id = Column(String, ForeignKey("companies.id", ondelete="CASCADE"), nullable=True, index=True)
    assigned_to = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Core fields
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(_enum(TaskStatus, "task_status"), default=TaskStatus.PENDING, nullable=False, index=True)
    priority = Column(_enum(TaskPriority, "task_priority"), default=TaskPriority.MEDIUM, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    creator = relationship("User", foreign_keys=[user_id])
    assignee = relationship("User", foreign_keys=[assigned_to])
    company = relationship("Company", back_populates="tasks")

    __table_args__ = (
        Index("idx_task_company_created", "company_id", "created_at"),
        Index("idx_task_assignee_status", "assigned_to", "status"),
    )


# ============================================================
# AUDIT TRAIL
# ============================================================

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String, primary_key=True, default=new_uuid)
    timestamp = Column(DateTime(timezone=True), default=utcnow, index=True)
    event_type = Column(_enum(AuditEventType, "audit_event_type"), nullable=False, index=True)
    # Plain ids: the trail outlives the users and companies it mentions
    actor_id = Column(String, nullable=True, index=True)
    company_id = Column(String, nullable=True, index=True)
    resource_type = Column(String, nullable=True)
    resource_id = Column(String, nullable=True)
    details = Column(JSON, nullable=True)
    request_id = Column(String, index=True, unique=True)

    __table_args__ = (
        Index("idx_audit_company_timestamp", "company_id", "timestamp"),
        Index("idx_audit_event_timestamp", "event_type", "timestamp"),
    )
