# routers/admin.py — Platform admin: company management
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_role, Principal
from database import get_db_session
from models import UserRole
from schemas import (
    CompanyCreate, CompanyUpdate, CompanyDetailOut,
    company_to_out, company_to_detail, user_to_out,
)
from services.companies import CompanyService

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])

require_admin = require_role(UserRole.ADMIN)


@router.get("/companies")
async def list_companies(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    page: int = Query(default=1, ge=1),
):
    """List companies with their users, 10 per page"""
    result = await CompanyService(db).list_companies(principal, page=page)
    return result.to_dict(company_to_out)


@router.post("/companies", status_code=201)
async def create_company(
    data: CompanyCreate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a company together with its company-admin account"""
    company, admin = await CompanyService(db).create_company(principal, data)
    return {
        "message": "Company created successfully",
        "company": company_to_out(company),
        "admin": user_to_out(admin),
    }


@router.get("/companies/{company_id}", response_model=CompanyDetailOut)
async def get_company(
    company_id: str,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Get a company with its users and tasks"""
    company = await CompanyService(db).get_company(principal, company_id)
    return company_to_detail(company)


@router.put("/companies/{company_id}")
async def update_company(
    company_id: str,
    data: CompanyUpdate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Replace a company's details"""
    company = await CompanyService(db).update_company(principal, company_id, data)
    return {"message": "Company updated successfully", "company": company_to_out(company)}


@router.delete("/companies/{company_id}")
async def delete_company(
    company_id: str,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a company, its users and its tasks"""
    await CompanyService(db).delete_company(principal, company_id)
    return {"message": "Company deleted successfully", "company_id": company_id}


@router.get("/companies/{company_id}/customers")
async def list_customers(
    company_id: str,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    page: int = Query(default=1, ge=1),
):
    """List the plain users of a company, 10 per page"""
    result = await CompanyService(db).list_customers(principal, company_id, page=page)
    return result.to_dict(user_to_out)

