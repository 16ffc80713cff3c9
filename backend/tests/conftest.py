# tests/conftest.py — Shared test fixtures
import os
import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Use SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-unit-tests-only-min-32-chars"
os.environ["ENVIRONMENT"] = "test"

from models import Base, User, Company, Task, UserRole, CompanyStatus, TaskStatus, TaskPriority
from auth import AuthService, Principal
from database import get_db_session, enable_sqlite_foreign_keys
from main import app

PASSWORD = "12345678"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_engine):
    """HTTP test client with overridden DB dependency"""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _add(db_session, obj):
    db_session.add(obj)
    await db_session.commit()
    await db_session.refresh(obj)
    return obj


def _user(name, email, role, company_id=None) -> User:
    return User(
        id=str(uuid.uuid4()),
        name=name,
        email=email,
        password_hash=AuthService.hash_password(PASSWORD),
        role=role,
        company_id=company_id,
    )


def _company(name, email) -> Company:
    return Company(
        id=str(uuid.uuid4()),
        name=name,
        email=email,
        status=CompanyStatus.ACTIVE,
    )


@pytest_asyncio.fixture
async def admin_user(db_session):
    """Platform admin"""
    return await _add(db_session, _user("Admin", "admin@taskhub.dev", UserRole.ADMIN))


@pytest_asyncio.fixture
async def plain_user(db_session):
    """Self-registered user without a company"""
    return await _add(db_session, _user("Solo User", "solo@taskhub.dev", UserRole.USER))


@pytest_asyncio.fixture
async def acme(db_session):
    return await _add(db_session, _company("Acme", "info@acme.com"))


@pytest_asyncio.fixture
async def company_admin(db_session, acme):
    return await _add(db_session, _user("Acme Admin", "boss@acme.com", UserRole.COMPANY, acme.id))


@pytest_asyncio.fixture
async def member(db_session, acme):
    return await _add(db_session, _user("Alice", "alice@acme.com", UserRole.USER, acme.id))


@pytest_asyncio.fixture
async def second_member(db_session, acme):
    return await _add(db_session, _user("Bob", "bob@acme.com", UserRole.USER, acme.id))


@pytest_asyncio.fixture
async def other_company(db_session):
    return await _add(db_session, _company("Globex", "info@globex.com"))


@pytest_asyncio.fixture
async def other_admin(db_session, other_company):
    return await _add(db_session, _user("Globex Admin", "boss@globex.com", UserRole.COMPANY, other_company.id))


@pytest_asyncio.fixture
async def other_member(db_session, other_company):
    return await _add(db_session, _user("Carol", "carol@globex.com", UserRole.USER, other_company.id))


@pytest_asyncio.fixture
async def company_task(db_session, acme, company_admin, member):
    """A pending task created by the Acme admin for Alice"""
    task = Task(
        id=str(uuid.uuid4()),
        user_id=company_admin.id,
        company_id=acme.id,
        assigned_to=member.id,
        title="Prepare quarterly report",
        status=TaskStatus.PENDING,
        priority=TaskPriority.MEDIUM,
    )
    return await _add(db_session, task)


def future(days: int = 7) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def principal_for(user: User) -> Principal:
    return Principal.from_user(user)


def get_auth_headers(user: User) -> dict:
    """Generate auth headers for a user"""
    token = AuthService.create_access_token(AuthService.token_claims(user))
    return {"Authorization": f"Bearer {token}"}
