# routers/user_tasks.py — Plain users: tasks assigned to them
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_role, Principal
from database import get_db_session
from models import UserRole
from schemas import (
    SelfTaskCreate, SelfTaskUpdate, TaskStatusUpdate, TaskNotesUpdate,
    TaskOut, task_to_out,
)
from services.tasks import TaskService, TaskScope

router = APIRouter(prefix="/api/v1/user", tags=["User Tasks"])

require_user = require_role(UserRole.USER)


def _tasks(db: AsyncSession) -> TaskService:
    return TaskService(db, TaskScope.ASSIGNEE)


@router.get("/tasks")
async def list_tasks(
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
    page: int = Query(default=1, ge=1),
):
    """List tasks assigned to the caller, with creator and company"""
    result = await _tasks(db).list_tasks(principal, page=page)
    return result.to_dict(task_to_out)


@router.post("/tasks", status_code=201)
async def create_task(
    data: SelfTaskCreate,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a task assigned to the caller"""
    task = await _tasks(db).create_task(principal, data)
    return {"message": "Task created successfully", "task": task_to_out(task)}


@router.get("/tasks/{task_id}", response_model=TaskOut)
async def get_task(
    task_id: str,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    task = await _tasks(db).get_task(principal, task_id)
    return task_to_out(task)


@router.put("/tasks/{task_id}")
async def update_task(
    task_id: str,
    data: SelfTaskUpdate,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    task = await _tasks(db).update_task(principal, task_id, data)
    return {"message": "Task updated successfully", "task": task_to_out(task)}


@router.delete("/tasks/{task_id}")
async def delete_task(
    task_id: str,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    await _tasks(db).delete_task(principal, task_id)
    return {"message": "Task deleted successfully", "task_id": task_id}


@router.patch("/tasks/{task_id}/status")
async def update_task_status(
    task_id: str,
    data: TaskStatusUpdate,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Change only the status; entering completed stamps completed_at once"""
    task = await _tasks(db).update_status(principal, task_id, data.status)
    return {"message": "Task status updated successfully", "task": task_to_out(task)}


@router.post("/tasks/{task_id}/notes")
async def replace_task_notes(
    task_id: str,
    data: TaskNotesUpdate,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Replace the task's notes with the given text"""
    task = await _tasks(db).replace_notes(principal, task_id, data.notes)
    return {"message": "Notes added successfully", "task": task_to_out(task)}
