# routers/auth.py — Authentication endpoints with token revocation
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import (
    AuthService, UserRegister, UserLogin, TokenResponse, RefreshRequest, Principal,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    get_current_principal, get_token_payload,
)
from database import get_db_session
from errors import AuthenticationError
from models import AuditLog, AuditEventType, User, UserRole

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _build_token_response(user_obj: User) -> TokenResponse:
    """Build token response from a user ORM instance"""
    access_token, refresh_token = AuthService.create_token_pair(AuthService.token_claims(user_obj))
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user={
            "id": user_obj.id,
            "name": user_obj.name,
            "email": user_obj.email,
            "role": UserRole(user_obj.role).value,
            "company_id": user_obj.company_id,
        },
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db_session),
):
    """Register a new user account"""
    user = await AuthService.register_user(user_data, db)
    return _build_token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db_session),
):
    """Authenticate and receive tokens"""
    user = await AuthService.authenticate_user(credentials.email, credentials.password, db)
    return _build_token_response(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    refresh_req: RefreshRequest,
    db: AsyncSession = Depends(get_db_session),
):
    """Exchange a refresh token for a new pair. The presented refresh token is spent."""
    payload = AuthService.verify_token(refresh_req.refresh_token)

    if payload.get("type") != "refresh":
        raise AuthenticationError("Invalid token type. Expected refresh token.")

    jti = payload.get("jti")
    if jti and await AuthService.is_token_revoked(jti, db):
        raise AuthenticationError("Refresh token has been revoked")

    principal = await AuthService.load_principal(payload.get("sub"), db)
    user = await db.get(User, principal.id)

    db.add(AuditLog(
        event_type=AuditEventType.TOKEN_REFRESHED,
        actor_id=user.id,
        company_id=user.company_id,
        request_id=str(uuid.uuid4()),
    ))
    if jti:
        await AuthService.revoke_token(
            jti, user.id, datetime.fromtimestamp(payload["exp"], tz=timezone.utc), db,
        )
    else:
        await db.commit()
    return _build_token_response(user)


@router.post("/logout")
async def logout(
    payload: Dict[str, Any] = Depends(get_token_payload),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    """Logout: revoke the presented access token and its paired refresh token"""
    db.add(AuditLog(
        event_type=AuditEventType.USER_LOGOUT,
        actor_id=principal.id,
        company_id=principal.company_id,
        request_id=str(uuid.uuid4()),
    ))
    await AuthService.revoke_session(payload, principal.id, db)
    return {"status": "logged_out", "message": "Logged out successfully"}


@router.get("/me")
async def get_current_user_info(principal: Principal = Depends(get_current_principal)):
    """Get current authenticated user information"""
    return {
        "id": principal.id,
        "name": principal.name,
        "email": principal.email,
        "role": principal.role.value,
        "company_id": principal.company_id,
    }
