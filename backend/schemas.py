# schemas.py — Request and response models shared by services and routers
#
# Request models are the single decoding step: enums, emails and dates are
# parsed here, so an invalid status or priority never reaches a service.
from datetime import datetime
from typing import Optional, List
from urllib.parse import urlparse

from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy import inspect

from models import (
    Company, User, Task,
    CompanyStatus, TaskStatus, TaskPriority, UserRole,
)

MIN_PASSWORD_LENGTH = 8


def _check_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("The website must be a valid URL")
    return value


# ============================================================
# COMPANIES
# ============================================================

class CompanyFields(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None
    status: CompanyStatus

    @field_validator("website")
    @classmethod
    def validate_website(cls, v: Optional[str]) -> Optional[str]:
        return _check_url(v)


class CompanyCreate(CompanyFields):
    admin_name: str = Field(..., min_length=1, max_length=255)
    admin_email: EmailStr
    admin_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class CompanyUpdate(CompanyFields):
    pass


# ============================================================
# COMPANY MEMBERS
# ============================================================

class MemberCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class MemberUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: Optional[str] = Field(default=None, min_length=MIN_PASSWORD_LENGTH)


# ============================================================
# TASKS
# ============================================================

class CompanyTaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to: str
    due_date: Optional[datetime] = None
    priority: Optional[TaskPriority] = None


class CompanyTaskUpdate(CompanyTaskCreate):
    pass


class SelfTaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[TaskPriority] = None


class SelfTaskUpdate(SelfTaskCreate):
    status: TaskStatus
    notes: Optional[str] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskNotesUpdate(BaseModel):
    notes: str = Field(..., min_length=1)


class LegacyTaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None


class LegacyTaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_not_null(cls, v: Optional[str]) -> str:
        # Runs only when the client sent a title; it may be omitted but not nulled
        if v is None:
            raise ValueError("The title field is required.")
        return v


# ============================================================
# RESPONSES
# ============================================================

class UserBrief(BaseModel):
    id: str
    name: str
    email: str


class UserOut(UserBrief):
    role: str
    company_id: Optional[str] = None
    created_at: str
    updated_at: Optional[str] = None


class MemberOut(UserBrief):
    created_at: str


class CompanyBrief(BaseModel):
    id: str
    name: str


class TaskOut(BaseModel):
    id: str
    user_id: str
    company_id: Optional[str] = None
    assigned_to: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[str] = None
    notes: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: str
    updated_at: Optional[str] = None
    creator: Optional[UserBrief] = None
    assignee: Optional[UserBrief] = None
    company: Optional[CompanyBrief] = None


class CompanyOut(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None
    status: str
    created_at: str
    updated_at: Optional[str] = None
    users: List[UserOut] = []


class CompanyDetailOut(CompanyOut):
    tasks: List[TaskOut] = []


# --- Converters ---

def _ts(dt) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat() if isinstance(dt, datetime) else str(dt)


def _loaded(obj, key: str) -> bool:
    # Only serialise relationships that were eagerly loaded; never lazy-load here
    return key not in inspect(obj).unloaded


def user_to_brief(u: Optional[User]) -> Optional[UserBrief]:
    if u is None:
        return None
    return UserBrief(id=u.id, name=u.name, email=u.email)


def user_to_out(u: User) -> UserOut:
    return UserOut(
        id=u.id,
        name=u.name,
        email=u.email,
        role=UserRole(u.role).value,
        company_id=u.company_id,
        created_at=_ts(u.created_at) or "",
        updated_at=_ts(u.updated_at),
    )


def member_to_out(u: User) -> MemberOut:
    return MemberOut(id=u.id, name=u.name, email=u.email, created_at=_ts(u.created_at) or "")


def task_to_out(t: Task) -> TaskOut:
    company = None
    if _loaded(t, "company") and t.company is not None:
        company = CompanyBrief(id=t.company.id, name=t.company.name)
    return TaskOut(
        id=t.id,
        user_id=t.user_id,
        company_id=t.company_id,
        assigned_to=t.assigned_to,
        title=t.title,
        description=t.description,
        status=TaskStatus(t.status).value,
        priority=TaskPriority(t.priority).value,
        due_date=_ts(t.due_date),
        notes=t.notes,
        completed_at=_ts(t.completed_at),
        created_at=_ts(t.created_at) or "",
        updated_at=_ts(t.updated_at),
        creator=user_to_brief(t.creator) if _loaded(t, "creator") else None,
        assignee=user_to_brief(t.assignee) if _loaded(t, "assignee") else None,
        company=company,
    )


def company_to_out(c: Company) -> CompanyOut:
    return CompanyOut(
        id=c.id,
        name=c.name,
        email=c.email,
        phone=c.phone,
        address=c.address,
        website=c.website,
        logo=c.logo,
        status=CompanyStatus(c.status).value,
        created_at=_ts(c.created_at) or "",
        updated_at=_ts(c.updated_at),
        users=[user_to_out(u) for u in c.users] if _loaded(c, "users") else [],
    )


def company_to_detail(c: Company) -> CompanyDetailOut:
    base = company_to_out(c)
    tasks = [task_to_out(t) for t in c.tasks] if _loaded(c, "tasks") else []
    return CompanyDetailOut(**base.model_dump(), tasks=tasks)
