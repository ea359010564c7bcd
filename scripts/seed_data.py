"""Script to seed demo data into the database.

Creates a demo user whose active monthly plan ended a few months ago, so the
first rollover call has periods to fill in.
"""

from datetime import date, datetime, timezone
import asyncio
import logging

from sqlalchemy import delete

from components.core.init_db import get_db_manager
from components.core.logging import setup_logging
from components.plan.enums import CurrencyCode, LanguageCode, PeriodType
from components.plan.models import BudgetGoal, Plan, SavingsGoal
from components.plan.periods import next_period_start, period_start_of, previous_period_starts, resolve_time_zone
from components.user.models import User
from components.user.repository import UserRepository

logger = logging.getLogger(__name__)

DEMO_LOGIN = "demo"
DEMO_TIME_ZONE = "Asia/Seoul"
MONTHS_BEHIND = 3


async def seed_data():
    """Seed demo data into the database."""
    manager = get_db_manager()
    await manager.create_all()

    async with manager.get_db() as db:
        # Clear existing data; plans and goals go with the user row
        existing = await UserRepository(db).get_by_login(DEMO_LOGIN)
        if existing is not None:
            existing_id = existing.id
            await db.execute(delete(User).where(User.id == existing_id))
            await db.commit()
            logger.info("Removed previous demo user %s", existing_id)

        user = User(
            login=DEMO_LOGIN,
            registration_date=date.today(),
            time_zone=DEMO_TIME_ZONE,
            currency=CurrencyCode.USD,
            language=LanguageCode.EN,
        )
        db.add(user)
        await db.flush()

        tz = resolve_time_zone(DEMO_TIME_ZONE)
        current = period_start_of(datetime.now(timezone.utc), PeriodType.MONTHLY, tz)
        start = previous_period_starts(current, PeriodType.MONTHLY, tz, MONTHS_BEHIND + 1)[-1]

        plan = Plan(
            user_id=user.id,
            period_type=PeriodType.MONTHLY,
            period_start=start,
            period_end=next_period_start(start, PeriodType.MONTHLY, tz),
            currency=CurrencyCode.USD,
            language=LanguageCode.EN,
            total_budget_limit_minor=250000,
            budget_goals=[
                BudgetGoal(category="food", limit_minor=60000),
                BudgetGoal(category="transport", limit_minor=15000),
            ],
            savings_goals=[SavingsGoal(name="Emergency fund", target_minor=100000)],
        )
        db.add(plan)
        await db.flush()

        user.active_plan_id = plan.id
        await db.commit()
        logger.info("Seeded user %s with stale plan %s starting %s", user.id, plan.id, start.isoformat())


if __name__ == "__main__":
    setup_logging()
    asyncio.run(seed_data())
