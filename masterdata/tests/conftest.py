"""Async test fixtures for masterdata tests using SQLite."""

from __future__ import annotations

import uuid
from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from masterdata.auth import SessionUser, issue_session_token
from masterdata.database import get_db
from masterdata.models.base import Base
from masterdata.models.employee import Employee
from masterdata.models.user import User
from masterdata.roles import Role
from masterdata.services import column_svc


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(db: AsyncSession):
    """Built-in masterdata columns."""
    await column_svc.seed_masterdata_columns(db)
    return await column_svc.list_columns(db)


@pytest_asyncio.fixture
async def employee(db: AsyncSession):
    emp = Employee(
        first_name="Anna",
        surname="Svensson",
        ssn="19850101-1234",
        email="anna@example.com",
        mobile="0701234567",
        rank="Chef",
        hire_date=date(2020, 1, 15),
    )
    db.add(emp)
    await db.commit()
    await db.refresh(emp)
    return emp


@pytest_asyncio.fixture
async def make_user(db: AsyncSession):
    """Factory: persist a user for ``role`` and return ``(user, auth headers)``."""

    async def _make(role: Role, *, email: str | None = None, is_active: bool = True):
        user = User(
            email=email or f"{role.value}-{uuid.uuid4().hex[:6]}@example.com",
            password_hash="unused",
            role=role.value,
            is_active=is_active,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        token = issue_session_token(SessionUser(str(user.id), user.email, role))
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest_asyncio.fixture
async def client(engine):
    """HTTPX async test client against the masterdata app."""
    from masterdata.app import app

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
