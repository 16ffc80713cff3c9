# services/tasks.py — One task service, three scopes
"""
Every role sees tasks through a TaskScope:

  COMPANY   company admins manage the tasks of their own company and assign
            them to plain users of that company
  ASSIGNEE  plain users manage the tasks assigned to them and may create
            self-assigned tasks
  CREATOR   the role-agnostic endpoints kept for older clients; a task is
            visible only to the user who created it

The scope picks the access policy, the pre-filter applied to listings and the
rules for creating a task. Updates share one code path; status changes always
go through lifecycle.apply_status.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

import lifecycle
import policy
from auth import Principal
from database import transaction
from errors import AuthorizationError, NotFoundError, ValidationError
from models import Task, TaskPriority, TaskStatus, User, AuditEventType, utcnow
from schemas import CompanyTaskCreate, SelfTaskCreate, LegacyTaskCreate
from services.common import Page, PER_PAGE, paginate, record_audit

logger = logging.getLogger("taskhub.services.tasks")


class TaskScope(str, Enum):
    COMPANY = "company"
    ASSIGNEE = "assignee"
    CREATOR = "creator"


_POLICIES: Dict[TaskScope, Callable[[Principal, Task], policy.Decision]] = {
    TaskScope.COMPANY: policy.can_manage_company_scoped_task,
    TaskScope.ASSIGNEE: policy.can_manage_own_task,
    TaskScope.CREATOR: policy.can_manage_legacy_task,
}

# Related records returned with each task, per scope
_RELATIONS = {
    TaskScope.COMPANY: (Task.creator, Task.assignee),
    TaskScope.ASSIGNEE: (Task.creator, Task.company),
    TaskScope.CREATOR: (),
}


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def ensure_future(due_date: Optional[datetime], now: Optional[datetime] = None) -> None:
    if due_date is None:
        return
    if _aware(due_date) <= _aware(now or utcnow()):
        raise ValidationError({"due_date": "The due date must be a date after now."})


class TaskService:
    def __init__(self, db: AsyncSession, scope: TaskScope):
        self.db = db
        self.scope = TaskScope(scope)

    # --- scoping ---

    def _scope_clause(self, principal: Principal):
        """Listing pre-filter, so that page totals only count visible tasks"""
        if self.scope == TaskScope.COMPANY:
            policy.authorize(policy.can_manage_company_members(principal))
            return Task.company_id == principal.company_id
        if self.scope == TaskScope.ASSIGNEE:
            return Task.assigned_to == principal.id
        return Task.user_id == principal.id

    def _options(self) -> List:
        return [selectinload(rel) for rel in _RELATIONS[self.scope]]

    async def _load(self, task_id: str) -> Optional[Task]:
        stmt = select(Task).where(Task.id == task_id)
        options = self._options()
        if options:
            stmt = stmt.options(*options)
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def _get_authorized(self, principal: Principal, task_id: str) -> Task:
        task = await self._load(task_id)
        if task is None:
            logger.info(f"[{self.scope.value}] task {task_id} not found for {principal.id}")
            raise NotFoundError("task", task_id, concealed=True)
        decision = _POLICIES[self.scope](principal, task)
        if not decision:
            logger.warning(f"[{self.scope.value}] denied {principal.id} on task {task_id}: {decision.reason}")
            raise AuthorizationError(reason=decision.reason)
        return task

    async def _resolve_assignee(self, principal: Principal, user_id: str) -> User:
        # Existence first: a missing id is bad input, not a scope problem
        assignee = await self.db.get(User, user_id)
        if assignee is None:
            raise ValidationError({"assigned_to": "The selected assigned to is invalid."})
        decision = policy.can_manage_company_scoped_user(principal, assignee)
        if not decision:
            logger.warning(f"Rejected assignee {user_id} for {principal.id}: {decision.reason}")
            raise AuthorizationError(reason=decision.reason)
        return assignee

    # --- reads ---

    async def list_tasks(
        self, principal: Principal, page: int = 1, per_page: int = PER_PAGE,
    ) -> Union[Page, List[Task]]:
        clause = self._scope_clause(principal)
        if self.scope == TaskScope.CREATOR:
            # Unpaginated, newest first
            stmt = select(Task).where(clause).order_by(Task.created_at.desc(), Task.id)
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

        stmt = select(Task).where(clause).order_by(Task.created_at.desc(), Task.id)
        return await paginate(self.db, stmt, page, per_page, options=self._options())

    async def get_task(self, principal: Principal, task_id: str) -> Task:
        return await self._get_authorized(principal, task_id)

    # --- creation ---

    async def _build_company_task(self, principal: Principal, data: CompanyTaskCreate, now: datetime) -> Task:
        policy.authorize(policy.can_manage_company_members(principal))
        ensure_future(data.due_date, now)
        assignee = await self._resolve_assignee(principal, data.assigned_to)
        task = Task(
            user_id=principal.id,
            company_id=principal.company_id,
            assigned_to=assignee.id,
            title=data.title,
            description=data.description,
            due_date=data.due_date,
            priority=data.priority or TaskPriority.MEDIUM,
            created_at=now,
        )
        lifecycle.apply_status(task, lifecycle.initial_status(), now=now)
        return task

    async def _build_self_task(self, principal: Principal, data: SelfTaskCreate, now: datetime) -> Task:
        ensure_future(data.due_date, now)
        task = Task(
            user_id=principal.id,
            company_id=principal.company_id,
            assigned_to=principal.id,
            title=data.title,
            description=data.description,
            due_date=data.due_date,
            priority=data.priority or TaskPriority.MEDIUM,
            created_at=now,
        )
        lifecycle.apply_status(task, lifecycle.initial_status(), now=now)
        return task

    async def _build_legacy_task(self, principal: Principal, data: LegacyTaskCreate, now: datetime) -> Task:
        task = Task(
            user_id=principal.id,
            title=data.title,
            description=data.description,
            due_date=data.due_date,
            priority=TaskPriority.MEDIUM,
            created_at=now,
        )
        lifecycle.apply_status(task, lifecycle.initial_status(data.status), now=now)
        return task

    async def create_task(self, principal: Principal, data: BaseModel) -> Task:
        builders = {
            TaskScope.COMPANY: self._build_company_task,
            TaskScope.ASSIGNEE: self._build_self_task,
            TaskScope.CREATOR: self._build_legacy_task,
        }
        # One clock reading, so completed_at can never precede created_at
        task = await builders[self.scope](principal, data, utcnow())

        async with transaction(self.db):
            self.db.add(task)
            await self.db.flush()
            record_audit(
                self.db, AuditEventType.TASK_CREATED, principal, "task", task.id,
                company_id=task.company_id,
                details={"scope": self.scope.value, "assigned_to": task.assigned_to},
            )

        logger.info(f"[{self.scope.value}] task {task.id} created by {principal.id}")
        return await self._load(task.id)

    # --- mutations ---

    async def update_task(self, principal: Principal, task_id: str, data: BaseModel) -> Task:
        """Apply the fields present in ``data``; absent fields stay as they are."""
        task = await self._get_authorized(principal, task_id)
        changes = data.model_dump(exclude_unset=True)

        if "assigned_to" in changes:
            assignee = await self._resolve_assignee(principal, changes.pop("assigned_to"))
            task.assigned_to = assignee.id

        if "priority" in changes and changes["priority"] is None:
            # An explicit null keeps the stored priority
            del changes["priority"]

        new_status = changes.pop("status", None)
        for field, value in changes.items():
            setattr(task, field, value)

        completed = False
        if new_status is not None:
            completed = lifecycle.apply_status(task, TaskStatus(new_status))

        async with transaction(self.db):
            record_audit(
                self.db, AuditEventType.TASK_COMPLETED if completed else AuditEventType.TASK_UPDATED,
                principal, "task", task.id, company_id=task.company_id,
                details={"scope": self.scope.value, "fields": sorted(data.model_dump(exclude_unset=True))},
            )
        return await self._load(task.id)

    async def update_status(self, principal: Principal, task_id: str, status: TaskStatus) -> Task:
        task = await self._get_authorized(principal, task_id)
        previous = TaskStatus(task.status)
        completed = lifecycle.apply_status(task, TaskStatus(status))

        async with transaction(self.db):
            record_audit(
                self.db, AuditEventType.TASK_COMPLETED if completed else AuditEventType.TASK_STATUS_CHANGED,
                principal, "task", task.id, company_id=task.company_id,
                details={"from": previous.value, "to": TaskStatus(status).value},
            )
        return await self._load(task.id)

    async def replace_notes(self, principal: Principal, task_id: str, notes: str) -> Task:
        """Overwrites the notes field; earlier notes are not kept."""
        task = await self._get_authorized(principal, task_id)
        task.notes = notes

        async with transaction(self.db):
            record_audit(
                self.db, AuditEventType.TASK_NOTES_REPLACED, principal, "task", task.id,
                company_id=task.company_id,
            )
        return await self._load(task.id)

    async def delete_task(self, principal: Principal, task_id: str) -> None:
        task = await self._get_authorized(principal, task_id)

        async with transaction(self.db):
            await self.db.delete(task)
            record_audit(
                self.db, AuditEventType.TASK_DELETED, principal, "task", task_id,
                company_id=task.company_id, details={"title": task.title},
            )
        logger.info(f"[{self.scope.value}] task {task_id} deleted by {principal.id}")
