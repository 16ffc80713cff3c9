# services/company_users.py — Company admins managing their own plain users
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

import policy
from auth import AuthService, Principal
from database import transaction
from errors import ConflictError, NotFoundError
from models import User, UserRole, AuditEventType
from schemas import MemberCreate, MemberUpdate
from services.common import email_in_use, record_audit

logger = logging.getLogger("taskhub.services.company_users")

EMAIL_TAKEN = "The email has already been taken."


class CompanyUserService:
    """A company admin sees and edits only the `user`-role members of its company"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_authorized(self, principal: Principal, user_id: str) -> User:
        target = await self.db.get(User, user_id, populate_existing=True)
        if target is None:
            raise NotFoundError("user", user_id, concealed=True)
        decision = policy.can_manage_company_scoped_user(principal, target)
        if not decision:
            logger.warning(f"Denied {principal.id} on user {user_id}: {decision.reason}")
        policy.authorize(decision)
        return target

    async def list_users(self, principal: Principal) -> List[User]:
        policy.authorize(policy.can_manage_company_members(principal))
        stmt = (
            select(User)
            .where(User.company_id == principal.company_id, User.role == UserRole.USER)
            .order_by(User.name.asc(), User.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_user(self, principal: Principal, user_id: str) -> User:
        return await self._get_authorized(principal, user_id)

    async def create_user(self, principal: Principal, data: MemberCreate) -> User:
        policy.authorize(policy.can_manage_company_members(principal))
        if await email_in_use(self.db, User, data.email):
            raise ConflictError("email", EMAIL_TAKEN)

        member = User(
            name=data.name,
            email=data.email,
            password_hash=AuthService.hash_password(data.password),
            role=UserRole.USER,
            company_id=principal.company_id,
        )
        try:
            async with transaction(self.db):
                self.db.add(member)
                await self.db.flush()
                record_audit(
                    self.db, AuditEventType.MEMBER_CREATED, principal, "user", member.id,
                    company_id=principal.company_id,
                )
        except IntegrityError:
            raise ConflictError("email", EMAIL_TAKEN)

        logger.info(f"Member {member.id} added to company {principal.company_id}")
        await self.db.refresh(member)
        return member

    async def update_user(self, principal: Principal, user_id: str, data: MemberUpdate) -> User:
        member = await self._get_authorized(principal, user_id)
        if await email_in_use(self.db, User, data.email, exclude_id=member.id):
            raise ConflictError("email", EMAIL_TAKEN)

        member.name = data.name
        member.email = data.email
        if data.password:
            member.password_hash = AuthService.hash_password(data.password)

        try:
            async with transaction(self.db):
                record_audit(
                    self.db, AuditEventType.MEMBER_UPDATED, principal, "user", member.id,
                    company_id=principal.company_id,
                    details={"password_changed": bool(data.password)},
                )
        except IntegrityError:
            raise ConflictError("email", EMAIL_TAKEN)

        await self.db.refresh(member)
        return member

    async def delete_user(self, principal: Principal, user_id: str) -> None:
        """Tasks assigned to the member stay, unassigned; tasks it created go with it."""
        member = await self._get_authorized(principal, user_id)

        async with transaction(self.db):
            await self.db.delete(member)
            record_audit(
                self.db, AuditEventType.MEMBER_DELETED, principal, "user", user_id,
                company_id=principal.company_id, details={"email": member.email},
            )
        logger.info(f"Member {user_id} removed from company {principal.company_id}")
