# routers/company.py — Company admins: own tasks and own users
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_role, Principal
from database import get_db_session
from models import UserRole
from schemas import (
    CompanyTaskCreate, CompanyTaskUpdate, MemberCreate, MemberUpdate,
    TaskOut, UserBrief, MemberOut, UserOut,
    task_to_out, user_to_brief, member_to_out, user_to_out,
)
from services.company_users import CompanyUserService
from services.tasks import TaskService, TaskScope

router = APIRouter(prefix="/api/v1/company", tags=["Company"])

require_company = require_role(UserRole.COMPANY)


def _tasks(db: AsyncSession) -> TaskService:
    return TaskService(db, TaskScope.COMPANY)


# ============================================================
# TASKS
# ============================================================

@router.get("/tasks")
async def list_tasks(
    principal: Principal = Depends(require_company),
    db: AsyncSession = Depends(get_db_session),
    page: int = Query(default=1, ge=1),
):
    """List the company's tasks with creator and assignee, 10 per page"""
    result = await _tasks(db).list_tasks(principal, page=page)
    return result.to_dict(task_to_out)


@router.get("/tasks/assignees", response_model=List[UserBrief])
async def list_assignees(
    principal: Principal = Depends(require_company),
    db: AsyncSession = Depends(get_db_session),
):
    """Users a task can be assigned to"""
    users = await CompanyUserService(db).list_users(principal)
    return [user_to_brief(u) for u in users]


@router.post("/tasks", status_code=201)
async def create_task(
    data: CompanyTaskCreate,
    principal: Principal = Depends(require_company),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a task and assign it to one of the company's users"""
    task = await _tasks(db).create_task(principal, data)
    return {"message": "Task created successfully", "task": task_to_out(task)}


@router.get("/tasks/{task_id}", response_model=TaskOut)
async def get_task(
    task_id: str,
    principal: Principal = Depends(require_company),
    db: AsyncSession = Depends(get_db_session),
):
    task = await _tasks(db).get_task(principal, task_id)
    return task_to_out(task)


@router.put("/tasks/{task_id}")
async def update_task(
    task_id: str,
    data: CompanyTaskUpdate,
    principal: Principal = Depends(require_company),
    db: AsyncSession = Depends(get_db_session),
):
    task = await _tasks(db).update_task(principal, task_id, data)
    return {"message": "Task updated successfully", "task": task_to_out(task)}


@router.delete("/tasks/{task_id}")
async def delete_task(
    task_id: str,
    principal: Principal = Depends(require_company),
    db: AsyncSession = Depends(get_db_session),
):
    await _tasks(db).delete_task(principal, task_id)
    return {"message": "Task deleted successfully", "task_id": task_id}


# ============================================================
# USERS
# ============================================================

@router.get("/users", response_model=List[MemberOut])
async def list_users(
    principal: Principal = Depends(require_company),
    db: AsyncSession = Depends(get_db_session),
):
    """List the company's plain users"""
    users = await CompanyUserService(db).list_users(principal)
    return [member_to_out(u) for u in users]


@router.post("/users", status_code=201)
async def create_user(
    data: MemberCreate,
    principal: Principal = Depends(require_company),
    db: AsyncSession = Depends(get_db_session),
):
    member = await CompanyUserService(db).create_user(principal, data)
    return {"message": "User created successfully", "user": user_to_out(member)}


@router.get("/users/{user_id}", response_model=UserOut)
async def get_user(
    user_id: str,
    principal: Principal = Depends(require_company),
    db: AsyncSession = Depends(get_db_session),
):
    member = await CompanyUserService(db).get_user(principal, user_id)
    return user_to_out(member)


@router.put("/users/{user_id}")
async def update_user(
    user_id: str,
    data: MemberUpdate,
    principal: Principal = Depends(require_company),
    db: AsyncSession = Depends(get_db_session),
):
    """Update name and email; a password is only re-hashed when given"""
    member = await CompanyUserService(db).update_user(principal, user_id, data)
    return {"message": "User updated successfully", "user": user_to_out(member)}


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    principal: Principal = Depends(require_company),
    db: AsyncSession = Depends(get_db_session),
):
    await CompanyUserService(db).delete_user(principal, user_id)
    return {"message": "User deleted successfully", "user_id": user_id}
