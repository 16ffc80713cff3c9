# auth.py — Authentication for TaskHub
# Features:
# - JWT access/refresh tokens with JTI for revocation
# - 3 fixed roles (admin, company, user) with route-group gating
# - bcrypt password hashing
# - Explicit Principal handed to every service call

import os
import uuid
import secrets
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple

import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db_session
from errors import AuthenticationError, AuthorizationError, ConflictError
from models import User, AuditLog, AuditEventType, UserRole, RevokedToken

logger = logging.getLogger("taskhub.auth")

# ============================================================
# CONFIGURATION
# ============================================================

SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
if not SECRET_KEY or SECRET_KEY == "generate-a-64-char-random-string-here":
    SECRET_KEY = secrets.token_urlsafe(64)
    logger.warning(
        "⚠️  JWT_SECRET_KEY not set or insecure. Generated ephemeral key. "
        "Set JWT_SECRET_KEY in production!"
    )

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))
MIN_PASSWORD_LENGTH = 8
REFRESH_JTI_CLAIM = "rjti"

security = HTTPBearer()


# ============================================================
# PYDANTIC SCHEMAS
# ============================================================

class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    password_confirmation: str

    @model_validator(mode="after")
    def passwords_match(self) -> "UserRegister":
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match")
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: Dict[str, Any]


class RefreshRequest(BaseModel):
    refresh_token: str


class Principal(BaseModel):
    """The authenticated caller. Immutable for the whole request."""
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    role: UserRole
    company_id: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=UserRole(user.role),
            company_id=user.company_id,
        )


# ============================================================
# AUTH SERVICE
# ============================================================

class AuthService:
    """Credential checks, token issuance and revocation"""

    @staticmethod
    def hash_password(password: str) -> str:
        salt = bcrypt.gensalt(rounds=12)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))

    @staticmethod
    def _create_token(
        data: Dict[str, Any], token_type: str, expires_delta: timedelta, jti: Optional[str] = None,
    ) -> str:
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        to_encode.update({
            "exp": now + expires_delta,
            "iat": now,
            "type": token_type,
            "jti": jti or str(uuid.uuid4()),
        })
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def token_claims(user: User) -> Dict[str, Any]:
        return {
            "sub": user.id,
            "email": user.email,
            "role": UserRole(user.role).value,
            "company_id": user.company_id,
        }

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        delta = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        return AuthService._create_token(data, "access", delta)

    @staticmethod
    def create_refresh_token(data: Dict[str, Any], jti: Optional[str] = None) -> str:
        return AuthService._create_token(data, "refresh", timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS), jti)

    @staticmethod
    def create_token_pair(data: Dict[str, Any]) -> Tuple[str, str]:
        """Issue access + refresh tokens; the access token carries its refresh jti for logout"""
        refresh_jti = str(uuid.uuid4())
        refresh_token = AuthService.create_refresh_token(data, jti=refresh_jti)
        access_token = AuthService.create_access_token({**data, REFRESH_JTI_CLAIM: refresh_jti})
        return access_token, refresh_token

    @staticmethod
    def verify_token(token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except JWTError:
            raise AuthenticationError("Invalid token")

    @staticmethod
    async def register_user(user_data: UserRegister, db: AsyncSession) -> User:
        stmt = select(User.id).where(func.lower(User.email) == user_data.email.lower()).limit(1)
        result = await db.execute(stmt)
        if result.scalar_one_or_none():
            raise ConflictError("email", "The email has already been taken.")

        new_user = User(
            name=user_data.name,
            email=user_data.email,
            password_hash=AuthService.hash_password(user_data.password),
            role=UserRole.USER,
        )
        db.add(new_user)
        await db.flush()

        db.add(AuditLog(
            event_type=AuditEventType.USER_REGISTER,
            actor_id=new_user.id,
            resource_type="user",
            resource_id=new_user.id,
            request_id=str(uuid.uuid4()),
        ))
        await db.commit()
        await db.refresh(new_user)
        logger.info(f"Registered user {new_user.id}")
        return new_user

    @staticmethod
    async def authenticate_user(email: str, password: str, db: AsyncSession) -> User:
        # Emails are unique regardless of case
        stmt = select(User).where(func.lower(User.email) == email.lower()).limit(1)
        result = await db.execute(stmt)
        user = result.scalar_one_or_none()

        if not user or not AuthService.verify_password(password, user.password_hash):
            logger.info(f"Failed login for {email}")
            raise AuthenticationError("Invalid credentials")

        db.add(AuditLog(
            event_type=AuditEventType.USER_LOGIN,
            actor_id=user.id,
            company_id=user.company_id,
            request_id=str(uuid.uuid4()),
        ))
        await db.commit()
        return user

    @staticmethod
    async def is_token_revoked(jti: str, db: AsyncSession) -> bool:
        stmt = select(RevokedToken.id).where(RevokedToken.jti == jti)
        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def revoke_token(jti: str, user_id: str, expires_at: datetime, db: AsyncSession) -> None:
        db.add(RevokedToken(jti=jti, user_id=user_id, expires_at=expires_at))
        await db.commit()

    @staticmethod
    async def revoke_session(payload: Dict[str, Any], user_id: str, db: AsyncSession) -> None:
        """Revoke the presented access token and the refresh token issued alongside it"""
        issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
        refresh_jti = payload.get(REFRESH_JTI_CLAIM)
        if refresh_jti and not await AuthService.is_token_revoked(refresh_jti, db):
            db.add(RevokedToken(
                jti=refresh_jti,
                user_id=user_id,
                expires_at=issued_at + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
            ))
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        await AuthService.revoke_token(payload["jti"], user_id, expires_at, db)

    @staticmethod
    async def load_principal(user_id: Optional[str], db: AsyncSession) -> Principal:
        if not user_id:
            raise AuthenticationError("Invalid token")
        stmt = select(User).where(User.id == user_id)
        result = await db.execute(stmt)
        user = result.scalar_one_or_none()
        if not user:
            raise AuthenticationError("User not found")
        return Principal.from_user(user)


# ============================================================
# FASTAPI DEPENDENCIES
# ============================================================

async def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    payload = AuthService.verify_token(credentials.credentials)

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    jti = payload.get("jti")
    if jti and await AuthService.is_token_revoked(jti, db):
        raise AuthenticationError("Token has been revoked")

    return payload


async def get_current_principal(
    payload: Dict[str, Any] = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db_session),
) -> Principal:
    # Role and company come from the stored user, not the token claims
    return await AuthService.load_principal(payload.get("sub"), db)


def require_role(*roles: UserRole):
    """Dependency factory: the route group is only open to these roles"""
    async def _check(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise AuthorizationError(
                reason=f"role {principal.role.value} outside route group {[r.value for r in roles]}"
            )
        return principal
    return _check
