"""Pytest fixtures for BuildConnect service and router tests."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.app import app, limiter
from src.database.base import Base
from src.database.session import get_db
from src.models import Company, Professional
from src.modules.bidding.quote_service import QuoteService
from src.modules.bidding.requirement_service import RequirementService
from src.modules.identity.actors import Admin, CompanyAdmin, Homeowner
from src.modules.identity.actors import Professional as ProfessionalActor
from src.modules.identity.auth import get_current_actor

from tests.factories import quote_fields, requirement_fields

# Use SQLite for lightweight in-process testing; one shared connection
TEST_DATABASE_URL = "sqlite+aiosqlite://"


def _enable_savepoints(engine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINTs work on pysqlite/aiosqlite."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture
async def async_test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    _enable_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        async_test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Actors and profiles
# ---------------------------------------------------------------------------


@pytest.fixture
def homeowner() -> Homeowner:
    return Homeowner(user_id=uuid.uuid4())


@pytest.fixture
def admin() -> Admin:
    return Admin(user_id=uuid.uuid4())


@pytest.fixture
def make_company(db_session):
    async def _make(name: str = "Skyline Builders", is_active: bool = True) -> tuple[Company, CompanyAdmin]:
        company = Company(
            name=name,
            admin_user_id=uuid.uuid4(),
            location="Pune",
            rating=Decimal("4.50"),
            is_verified=True,
            is_active=is_active,
        )
        db_session.add(company)
        await db_session.commit()
        return company, CompanyAdmin(user_id=company.admin_user_id)

    return _make


@pytest.fixture
def make_professional(db_session):
    async def _make(
        name: str = "Asha Architect", is_verified: bool = True
    ) -> tuple[Professional, ProfessionalActor]:
        professional = Professional(
            name=name,
            email=f"{uuid.uuid4().hex[:8]}@studio.in",
            user_id=uuid.uuid4(),
            rating=Decimal("4.80"),
            is_verified=is_verified,
        )
        db_session.add(professional)
        await db_session.commit()
        return professional, ProfessionalActor(user_id=professional.user_id)

    return _make


# ---------------------------------------------------------------------------
# Requirements and quotes
# ---------------------------------------------------------------------------


@pytest.fixture
def make_requirement(db_session):
    async def _make(owner: Homeowner, **overrides):
        requirement = await RequirementService(db_session).create_requirement(
            owner, **requirement_fields(**overrides)
        )
        await db_session.commit()
        return requirement

    return _make


@pytest.fixture
def make_quote(db_session):
    async def _make(actor, requirement_id: uuid.UUID, **overrides):
        quote = await QuoteService(db_session).submit_quote(
            requirement_id, actor, **quote_fields(**overrides)
        )
        await db_session.commit()
        return quote

    return _make


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest.fixture
def act_as():
    """Switch the actor that the app sees as the caller."""

    def _act_as(actor) -> None:
        async def _override_get_current_actor():
            return actor

        app.dependency_overrides[get_current_actor] = _override_get_current_actor

    return _act_as


@pytest_asyncio.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Yield an httpx AsyncClient wired to the FastAPI app with the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    limiter.enabled = True
    app.dependency_overrides.clear()
