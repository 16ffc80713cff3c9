# services/common.py — Helpers shared by the role-scoped services
import math
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from auth import Principal
from models import AuditLog, AuditEventType

PER_PAGE = 10


@dataclass
class Page:
    """One page of a scope-filtered listing"""
    items: Sequence[Any]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    def to_dict(self, convert: Callable[[Any], Any]) -> Dict[str, Any]:
        return {
            "data": [convert(item) for item in self.items],
            "current_page": self.page,
            "per_page": self.per_page,
            "total": self.total,
            "last_page": self.last_page,
        }


async def paginate(
    db: AsyncSession,
    stmt,
    page: int = 1,
    per_page: int = PER_PAGE,
    options: Sequence = (),
) -> Page:
    """Count and slice ``stmt``. The where clause must already carry the scope."""
    page = max(page, 1)
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar() or 0

    page_stmt = stmt.offset((page - 1) * per_page).limit(per_page)
    if options:
        page_stmt = page_stmt.options(*options)
    result = await db.execute(page_stmt)
    return Page(items=result.scalars().unique().all(), total=total, page=page, per_page=per_page)


async def email_in_use(db: AsyncSession, model, email: str, exclude_id: Optional[str] = None) -> bool:
    """Emails are unique per table; ``exclude_id`` lets a record keep its own"""
    stmt = select(model.id).where(func.lower(model.email) == email.lower())
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


def record_audit(
    db: AsyncSession,
    event: AuditEventType,
    principal: Optional[Principal],
    resource_type: str,
    resource_id: Optional[str],
    company_id: Optional[str] = None,
    details: Optional[dict] = None,
) -> AuditLog:
    """Queue an audit row; it is committed with the change it describes"""
    entry = AuditLog(
        event_type=event,
        actor_id=principal.id if principal else None,
        company_id=company_id,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details or {},
        request_id=str(uuid.uuid4()),
    )
    db.add(entry)
    return entry
