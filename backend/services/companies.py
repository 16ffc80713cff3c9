# services/companies.py — Platform-admin management of companies
import logging
from typing import Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

import policy
from auth import AuthService, Principal
from database import transaction
from errors import ConflictError, NotFoundError
from models import Company, Task, User, UserRole, AuditEventType
from schemas import CompanyCreate, CompanyUpdate
from services.common import Page, PER_PAGE, paginate, email_in_use, record_audit

logger = logging.getLogger("taskhub.services.companies")

COMPANY_FIELDS = ("name", "email", "phone", "address", "website", "logo", "status")


class CompanyService:
    """Company CRUD and customer listing. Every operation is admin-only."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get(self, company_id: str, *options) -> Company:
        stmt = select(Company).where(Company.id == company_id)
        if options:
            stmt = stmt.options(*options).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        company = result.scalar_one_or_none()
        if company is None:
            raise NotFoundError("company", company_id)
        return company

    async def list_companies(self, principal: Principal, page: int = 1, per_page: int = PER_PAGE) -> Page:
        policy.authorize(policy.can_manage_company(principal))
        stmt = select(Company).order_by(Company.created_at.desc(), Company.id)
        return await paginate(self.db, stmt, page, per_page, options=(selectinload(Company.users),))

    async def _provision_admin(self, company: Company, data: CompanyCreate) -> User:
        admin = User(
            name=data.admin_name,
            email=data.admin_email,
            password_hash=AuthService.hash_password(data.admin_password),
            role=UserRole.COMPANY,
            company_id=company.id,
        )
        self.db.add(admin)
        await self.db.flush()
        return admin

    async def create_company(self, principal: Principal, data: CompanyCreate) -> Tuple[Company, User]:
        """Create the company and its single company-role admin, or neither."""
        policy.authorize(policy.can_manage_company(principal))

        if await email_in_use(self.db, Company, data.email):
            raise ConflictError("email", "The email has already been taken.")
        if await email_in_use(self.db, User, data.admin_email):
            raise ConflictError("admin_email", "The admin email has already been taken.")

        try:
            async with transaction(self.db):
                company = Company(**data.model_dump(include=set(COMPANY_FIELDS)))
                self.db.add(company)
                await self.db.flush()

                admin = await self._provision_admin(company, data)
                record_audit(
                    self.db, AuditEventType.COMPANY_CREATED, principal, "company", company.id,
                    company_id=company.id, details={"admin_user_id": admin.id},
                )
        except IntegrityError:
            # A concurrent request claimed one of the emails between check and insert
            logger.warning(f"Company provisioning for {data.email} lost a uniqueness race")
            if await email_in_use(self.db, User, data.admin_email):
                raise ConflictError("admin_email", "The admin email has already been taken.")
            raise ConflictError("email", "The email has already been taken.")

        logger.info(f"Company {company.id} created with admin {admin.id} by {principal.id}")
        return await self._get(company.id, selectinload(Company.users)), admin

    async def get_company(self, principal: Principal, company_id: str) -> Company:
        policy.authorize(policy.can_manage_company(principal))
        return await self._get(
            company_id,
            selectinload(Company.users),
            selectinload(Company.tasks).selectinload(Task.creator),
            selectinload(Company.tasks).selectinload(Task.assignee),
        )

    async def update_company(self, principal: Principal, company_id: str, data: CompanyUpdate) -> Company:
        policy.authorize(policy.can_manage_company(principal))
        company = await self._get(company_id)

        if await email_in_use(self.db, Company, data.email, exclude_id=company.id):
            raise ConflictError("email", "The email has already been taken.")

        for field in COMPANY_FIELDS:
            setattr(company, field, getattr(data, field))

        async with transaction(self.db):
            record_audit(
                self.db, AuditEventType.COMPANY_UPDATED, principal, "company", company.id,
                company_id=company.id,
            )
        return await self._get(company.id, selectinload(Company.users))

    async def delete_company(self, principal: Principal, company_id: str) -> None:
        """Hard delete. The store cascades to the company's users and tasks."""
        policy.authorize(policy.can_manage_company(principal))
        company = await self._get(company_id)

        async with transaction(self.db):
            await self.db.delete(company)
            record_audit(
                self.db, AuditEventType.COMPANY_DELETED, principal, "company", company_id,
                company_id=company_id, details={"name": company.name},
            )
        logger.info(f"Company {company_id} deleted by {principal.id}")

    async def list_customers(
        self, principal: Principal, company_id: str, page: int = 1, per_page: int = PER_PAGE,
    ) -> Page:
        policy.authorize(policy.can_manage_company(principal))
        await self._get(company_id)
        stmt = (
            select(User)
            .where(User.company_id == company_id, User.role == UserRole.USER)
            .order_by(User.created_at.asc(), User.id)
        )
        return await paginate(self.db, stmt, page, per_page)
