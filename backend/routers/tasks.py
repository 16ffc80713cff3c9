# routers/tasks.py — Role-agnostic task endpoints kept for older clients
#
# Any authenticated principal may use these; a task is visible only to the
# user who created it.
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_principal, Principal
from database import get_db_session
from schemas import LegacyTaskCreate, LegacyTaskUpdate, TaskOut, task_to_out
from services.tasks import TaskService, TaskScope

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])


def _tasks(db: AsyncSession) -> TaskService:
    return TaskService(db, TaskScope.CREATOR)


@router.get("", response_model=List[TaskOut])
async def list_tasks(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    """All tasks created by the caller, newest first"""
    tasks = await _tasks(db).list_tasks(principal)
    return [task_to_out(t) for t in tasks]


@router.post("", response_model=TaskOut, status_code=201)
async def create_task(
    data: LegacyTaskCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    task = await _tasks(db).create_task(principal, data)
    return task_to_out(task)


@router.get("/{task_id}", response_model=TaskOut)
async def get_task(
    task_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    task = await _tasks(db).get_task(principal, task_id)
    return task_to_out(task)


@router.put("/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: str,
    data: LegacyTaskUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    """Partial update: only the fields sent are changed"""
    task = await _tasks(db).update_task(principal, task_id, data)
    return task_to_out(task)


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    await _tasks(db).delete_task(principal, task_id)
    return {"message": "Task deleted successfully", "task_id": task_id}
