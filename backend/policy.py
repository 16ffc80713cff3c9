# policy.py — Access decisions for companies, company members and tasks
"""
Pure functions: no database access, no side effects. Each one looks at the
Principal and the scoping attributes of a record and returns a Decision.

Rules:
  - Companies: admin only.
  - Company-scoped tasks: company admins of the task's company.
  - Own tasks: plain users the task is assigned to.
  - Legacy tasks: whoever created the task, any role.
  - Company-scoped users: company admins, for plain users of their own company.

Services call ``authorize(decision)`` to turn a denial into an
AuthorizationError; the reason is for logs only.
"""
from dataclasses import dataclass
from typing import Optional

from auth import Principal
from errors import AuthorizationError
from models import Company, Task, User, UserRole


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.allowed


def _has_company(principal: Principal) -> bool:
    return principal.role == UserRole.COMPANY and principal.company_id is not None


def can_manage_company(principal: Principal, company: Optional[Company] = None) -> Decision:
    if principal.role != UserRole.ADMIN:
        return Decision.deny(f"role {principal.role.value} cannot manage companies")
    return Decision.allow()


def can_manage_company_members(principal: Principal) -> Decision:
    if not _has_company(principal):
        return Decision.deny(f"principal {principal.id} does not administer a company")
    return Decision.allow()


def can_manage_company_scoped_task(principal: Principal, task: Task) -> Decision:
    if not _has_company(principal):
        return Decision.deny(f"principal {principal.id} does not administer a company")
    if task.company_id != principal.company_id:
        return Decision.deny(f"task {task.id} belongs to company {task.company_id}")
    return Decision.allow()


def can_manage_own_task(principal: Principal, task: Task) -> Decision:
    if principal.role != UserRole.USER:
        return Decision.deny(f"role {principal.role.value} has no assigned tasks")
    if task.assigned_to != principal.id:
        return Decision.deny(f"task {task.id} is assigned to {task.assigned_to}")
    return Decision.allow()


def can_manage_legacy_task(principal: Principal, task: Task) -> Decision:
    if task.user_id != principal.id:
        return Decision.deny(f"task {task.id} was created by {task.user_id}")
    return Decision.allow()


def can_manage_company_scoped_user(principal: Principal, target: User) -> Decision:
    if not _has_company(principal):
        return Decision.deny(f"principal {principal.id} does not administer a company")
    if target.company_id != principal.company_id:
        return Decision.deny(f"user {target.id} belongs to company {target.company_id}")
    if UserRole(target.role) != UserRole.USER:
        return Decision.deny(f"user {target.id} has role {UserRole(target.role).value}")
    return Decision.allow()


def authorize(decision: Decision) -> None:
    if not decision:
        raise AuthorizationError(reason=decision.reason)
