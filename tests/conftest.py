"""
Pytest fixtures for testing
"""
from datetime import date

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from components.core.database import DatabaseManager
from components.plan.enums import CurrencyCode, LanguageCode, PeriodType
from components.plan.models import BudgetGoal, Plan, SavingsGoal
from components.plan.periods import next_period_start, resolve_time_zone
from components.plan.repository import PlanRepository
from components.user.models import User

AUTO = object()


@pytest.fixture
async def db_engine():
    """Create in-memory SQLite engine for tests, with SAVEPOINT support."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    await DatabaseManager(engine).create_all()
    yield engine
    await engine.dispose()


@pytest.fixture
def db_manager(db_engine):
    return DatabaseManager(db_engine)


@pytest.fixture
async def db_session(db_manager):
    """Create database session for tests"""
    async with db_manager.get_db() as session:
        yield session


@pytest.fixture
def repo(db_session):
    return PlanRepository(db_session)


@pytest.fixture
def make_user(db_session):
    async def factory(login="alice", time_zone=None, currency=CurrencyCode.USD, language=LanguageCode.EN):
        user = User(
            login=login,
            registration_date=date(2025, 1, 1),
            time_zone=time_zone,
            currency=currency,
            language=language,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return factory


@pytest.fixture
def make_plan(db_session):
    async def factory(
        user,
        period_start,
        period_type=PeriodType.MONTHLY,
        period_end=AUTO,
        currency=CurrencyCode.USD,
        total=0,
        budget_goals=None,
        savings_goals=None,
        anchor=None,
        activate=True,
    ):
        if period_end is AUTO:
            period_end = next_period_start(period_start, period_type, resolve_time_zone(user.time_zone), anchor)
        plan = Plan(
            user_id=user.id,
            period_type=period_type,
            period_anchor=anchor,
            period_start=period_start,
            period_end=period_end,
            currency=currency,
            language=user.language,
            total_budget_limit_minor=total,
            budget_goals=[
                BudgetGoal(category=category, limit_minor=limit)
                for category, limit in (budget_goals or {}).items()
            ],
            savings_goals=[
                SavingsGoal(name=name, target_minor=target)
                for name, target in (savings_goals or {}).items()
            ],
        )
        db_session.add(plan)
        await db_session.flush()
        if activate:
            user.active_plan_id = plan.id
        await db_session.commit()
        return plan

    return factory


@pytest.fixture
def count_rows(db_session):
    async def counter(model, *criteria):
        result = await db_session.execute(select(func.count()).select_from(model).where(*criteria))
        return result.scalar_one()

    return counter
