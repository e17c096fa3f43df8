"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database seeded with two
categories, a handful of users and two SLA tiers, plus a clock frozen at
``T0``. Work is done in short transactions through ``scope()``, the same
way request handlers and the escalation scan use the database.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from helpdesk.config import Role
from helpdesk.escalation.application import EscalationService
from helpdesk.escalation.domain import ClearAssigneePolicy
from helpdesk.infrastructure.database import create_tables, enable_sqlite_savepoints, session_scope_for
from helpdesk.reporting.application import ReportingService
from helpdesk.shared.domain import Actor, FixedClock
from helpdesk.sla.application import SLACatalogService
from helpdesk.sla.infrastructure import SLATierModel, SQLAlchemySLATierRepository
from helpdesk.tickets.application import ThreadService, TicketService
from helpdesk.tickets.infrastructure import (
    CategoryModel,
    LocalBlobStore,
    SQLAlchemyCommentRepository,
    SQLAlchemyLookupRepository,
    SQLAlchemyTicketRepository,
    SubcategoryModel,
    UserModel,
)

T0 = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)

SYSTEM_ID = 0
ADMIN_ID = 1
AGENT_ID = 2
USER_ID = 3
OTHER_AGENT_ID = 4
IDLE_AGENT_ID = 5

HARDWARE = 1
SOFTWARE = 2
LAPTOP = 1   # subcategory of HARDWARE
EMAIL = 2    # subcategory of SOFTWARE

STANDARD_TIER = 1      # 4h response / 24h resolution
FRACTIONAL_TIER = 2    # 1.5h response / 2.5h resolution

ADMIN = Actor(ADMIN_ID, Role.ADMIN)
AGENT = Actor(AGENT_ID, Role.AGENT)
USER = Actor(USER_ID, Role.USER)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    await create_tables(engine)

    async with engine.begin() as conn:
        await conn.execute(insert(CategoryModel), [
            {"id": HARDWARE, "name": "Hardware"},
            {"id": SOFTWARE, "name": "Software"},
        ])
        await conn.execute(insert(SubcategoryModel), [
            {"id": LAPTOP, "category_id": HARDWARE, "name": "Laptop"},
            {"id": EMAIL, "category_id": SOFTWARE, "name": "Email"},
        ])
        await conn.execute(insert(UserModel), [
            {"id": SYSTEM_ID, "username": "system", "role": Role.ADMIN.value},
            {"id": ADMIN_ID, "username": "alice", "role": Role.ADMIN.value},
            {"id": AGENT_ID, "username": "bob", "role": Role.AGENT.value},
            {"id": USER_ID, "username": "carol", "role": Role.USER.value},
            {"id": OTHER_AGENT_ID, "username": "dave", "role": Role.AGENT.value},
            {"id": IDLE_AGENT_ID, "username": "erin", "role": Role.AGENT.value},
        ])
        await conn.execute(insert(SLATierModel), [
            {"id": STANDARD_TIER, "name": "Standard",
             "response_time_hours": 4.0, "resolution_time_hours": 24.0},
            {"id": FRACTIONAL_TIER, "name": "Fractional",
             "response_time_hours": 1.5, "resolution_time_hours": 2.5},
        ])

    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def scope(session_maker):
    """``async with scope() as session:`` commits on exit, rolls back on error."""
    return session_scope_for(session_maker)


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(tmp_path / "uploads")


@pytest.fixture
def ticket_service(clock):
    def build(session: AsyncSession) -> TicketService:
        return TicketService(
            ticket_repository=SQLAlchemyTicketRepository(session),
            lookup_repository=SQLAlchemyLookupRepository(session),
            sla_catalog=SLACatalogService(SQLAlchemySLATierRepository(session)),
            clock=clock,
        )
    return build


@pytest.fixture
def thread_service(clock, blob_store):
    def build(session: AsyncSession, store=None) -> ThreadService:
        return ThreadService(
            ticket_repository=SQLAlchemyTicketRepository(session),
            comment_repository=SQLAlchemyCommentRepository(session),
            blob_store=store or blob_store,
            clock=clock,
        )
    return build


@pytest.fixture
def escalation_service(clock):
    def build(session: AsyncSession, policy=None) -> EscalationService:
        return EscalationService(
            ticket_repository=SQLAlchemyTicketRepository(session),
            comment_repository=SQLAlchemyCommentRepository(session),
            clock=clock,
            policy=policy or ClearAssigneePolicy(),
            system_user_id=SYSTEM_ID,
        )
    return build


@pytest.fixture
def reporting_service(clock):
    def build(session: AsyncSession) -> ReportingService:
        return ReportingService(
            ticket_repository=SQLAlchemyTicketRepository(session),
            lookup_repository=SQLAlchemyLookupRepository(session),
            tier_repository=SQLAlchemySLATierRepository(session),
            clock=clock,
        )
    return build


@pytest.fixture
def open_ticket(scope, ticket_service):
    """Create a ticket at the current clock time and return it."""
    async def create(
        title="Printer on fire",
        category_id=HARDWARE,
        subcategory_id=LAPTOP,
        priority="High",
        sla_tier_id=STANDARD_TIER,
        actor=USER,
    ):
        async with scope() as session:
            return await ticket_service(session).create_ticket(
                actor,
                title=title,
                description="Smoke coming out of tray 2",
                category_id=category_id,
                subcategory_id=subcategory_id,
                priority=priority,
                sla_tier_id=sla_tier_id,
            )
    return create
