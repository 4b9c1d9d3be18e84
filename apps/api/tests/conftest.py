"""
Pytest fixtures for testing.

Provides:
- Async database session on a shared in-memory SQLite engine
- Audit logger and decision engine wired to that engine
- Test client with dependency overrides and token helpers
- Factory fixtures for tenants, users, resources and grants
"""

import os

# Must be set before anything imports gatekeeper.core.config
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")

from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from jose import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from gatekeeper.main import app
from gatekeeper.api.dependencies.database import get_db
from gatekeeper.core.auth.dependencies import get_audit_logger, get_engine
from gatekeeper.core.auth.engine import PermissionDecisionEngine
from gatekeeper.core.auth.interfaces import Principal
from gatekeeper.core.config import settings
from gatekeeper.models import (
    AuditLog,
    Base,
    Client,
    Company,
    Invoice,
    Payment,
    PermissionGrant,
    Project,
    Task,
    User,
)
from gatekeeper.models.enums import Action, ResourceType, Role
from gatekeeper.services.audit import AuditLogger, DatabaseAuditSink
from gatekeeper.services.permission import PermissionTable


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory on the test engine (used by the audit sink)."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Database session for one test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def audit(session_factory) -> AuditLogger:
    """Audit logger writing straight to the test database."""
    return AuditLogger(
        sink=DatabaseAuditSink(session_factory),
        session_factory=session_factory,
    )


@pytest_asyncio.fixture
async def decision_engine(audit: AuditLogger) -> PermissionDecisionEngine:
    return PermissionDecisionEngine(PermissionTable, audit)


@pytest_asyncio.fixture(scope="function")
async def client(
    db: AsyncSession,
    decision_engine: PermissionDecisionEngine,
    audit: AuditLogger,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client with database, engine and audit overrides.
    """

    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_engine] = lambda: decision_engine
    app.dependency_overrides[get_audit_logger] = lambda: audit

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ============ Factory Fixtures ============


class Factory:
    """Creates tenants, users, resources and grants."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def company(self, name: str | None = None) -> Company:
        return await self._save(Company(name=name or f"Company {uuid4().hex[:6]}"))

    async def user(
        self,
        company: Company | None = None,
        role: Role = Role.MEMBER,
        email: str | None = None,
        name: str = "Test User",
    ) -> User:
        return await self._save(User(
            email=email or f"user-{uuid4().hex[:8]}@acme.io",
            name=name,
            role=role,
            company_id=company.id if company else None,
        ))

    async def client(self, company: Company | None, name: str = "Client") -> Client:
        return await self._save(Client(name=name, company_id=company.id if company else None))

    async def project(self, company: Company | None, name: str = "Project") -> Project:
        return await self._save(Project(name=name, company_id=company.id if company else None))

    async def task(self, project: Project, title: str = "Task") -> Task:
        return await self._save(Task(title=title, project_id=project.id))

    async def payment(self, company: Company, amount: str = "100.00") -> Payment:
        return await self._save(Payment(amount=Decimal(amount), currency="XAF", company_id=company.id))

    async def invoice(self, company: Company, number: str = "INV-001") -> Invoice:
        return await self._save(Invoice(invoice_number=number, total=Decimal("250.00"), company_id=company.id))

    async def grant(self, action: Action, resource_type: ResourceType, role: Role) -> PermissionGrant:
        return await self._save(PermissionGrant(action=action, resource_type=resource_type, role=role))


@pytest_asyncio.fixture
async def factory(db: AsyncSession) -> Factory:
    """Fixture that provides Factory."""
    return Factory(db)


@pytest_asyncio.fixture
async def company_a(factory: Factory) -> Company:
    return await factory.company("T1")


@pytest_asyncio.fixture
async def company_b(factory: Factory) -> Company:
    return await factory.company("T2")


# ============ Principal Helpers ============


def principal_for(user: User) -> Principal:
    """Principal as the session layer would hand it over."""
    return Principal(id=user.id, role=user.role, tenant_id=user.company_id)


def make_token(principal: Principal, **claims) -> str:
    payload = {
        "sub": principal.id,
        settings.auth.role_claim: principal.role.value,
        settings.auth.tenant_claim: principal.tenant_id,
        **claims,
    }
    return jwt.encode(payload, settings.auth.secret_key, algorithm=settings.auth.algorithm)


def auth_headers(principal: Principal) -> dict[str, str]:
    """Bearer headers for any principal."""
    return {"Authorization": f"Bearer {make_token(principal)}"}


@pytest.fixture
def super_admin() -> Principal:
    # Platform operators belong to no tenant
    return Principal(id="root", role=Role.SUPER_ADMIN)


@pytest.fixture
def super_admin_headers(super_admin: Principal) -> dict[str, str]:
    return auth_headers(super_admin)


async def audit_rows(db: AsyncSession, **filters) -> list[AuditLog]:
    """Audit rows, oldest first, optionally filtered by column."""
    stmt = select(AuditLog)
    for column, value in filters.items():
        stmt = stmt.where(getattr(AuditLog, column) == value)
    result = await db.execute(stmt.order_by(AuditLog.created_at, AuditLog.id))
    return list(result.scalars().all())
