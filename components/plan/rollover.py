"""Rollover engine: advance a user's active plan to the period containing ``now``.

Each elapsed period boundary is visited once, in order. A plan row is created
only when none exists for ``(user_id, period_type, period_start)``; goals are
copied from the plan being rolled over, and only onto rows this call created.
Re-running with the same ``now`` finds the rows instead of duplicating them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, AsyncContextManager, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from components.core.config import get_settings
from components.plan.exceptions import ActivePlanNotFound
from components.plan.goals_policy import BudgetGoalValue, SavingsGoalValue
from components.plan.models import Plan
from components.plan.periods import as_utc, ensure_period_end, next_period_start, resolve_time_zone
from components.plan.ports import PlanStore
from components.plan.repository import PlanRepository
from components.user.models import User

logger = logging.getLogger(__name__)

STILL_ACTIVE = "Plan is still active"


@dataclass(frozen=True)
class RolloverResult:
    rolled: bool
    created_count: int
    active_plan: Optional[Plan]
    reason: Optional[str] = None
    limit_reached: bool = False


async def roll_over(
    store: PlanStore,
    user: User,
    plan: Plan,
    now: datetime,
    max_periods: Optional[int] = None,
) -> RolloverResult:
    """
    Roll ``plan`` forward through every elapsed period up to ``now``.

    The whole advance runs in one transaction. When ``max_periods`` steps do
    not reach ``now`` the engine stops, points the user at the furthest plan
    it reached and reports ``limit_reached``.
    """
    now = as_utc(now)
    if max_periods is None:
        max_periods = get_settings().ROLLOVER_MAX_PERIODS
    max_periods = max(1, max_periods)
    tz = resolve_time_zone(user.time_zone)
    period_type = plan.period_type
    anchor = plan.period_anchor

    current_end = ensure_period_end(plan.period_start, plan.period_end, period_type, tz, anchor)
    if current_end > now:
        return RolloverResult(rolled=False, created_count=0, active_plan=plan, reason=STILL_ACTIVE)

    # Snapshot before any write so every new period copies the same source.
    source = {
        "user_id": user.id,
        "plan_id": plan.id,
        "currency": plan.currency,
        "language": plan.language,
        "total_budget_limit_minor": plan.total_budget_limit_minor,
    }

    async def advance(tx: PlanStore) -> RolloverResult:
        budget_goals = [
            BudgetGoalValue(category=goal.category, limit_minor=goal.limit_minor)
            for goal in await tx.list_budget_goals(source["plan_id"])
        ]
        savings_goals = [
            SavingsGoalValue(name=goal.name, target_minor=goal.target_minor)
            for goal in await tx.list_savings_goals(source["plan_id"])
        ]

        next_start = current_end
        created_count = 0
        last_plan_id = None
        reached_now = False

        for _ in range(max_periods):
            next_end = next_period_start(next_start, period_type, tz, anchor)
            current = await tx.find_plan(source["user_id"], period_type, next_start)
            created = False
            if current is None:
                outcome = await tx.create_if_absent({
                    "user_id": source["user_id"],
                    "period_type": period_type,
                    "period_anchor": anchor,
                    "period_start": next_start,
                    "period_end": next_end,
                    "currency": source["currency"],
                    "language": source["language"],
                    "total_budget_limit_minor": source["total_budget_limit_minor"],
                })
                current, created = outcome.plan, outcome.created

            if created:
                created_count += 1
                await tx.create_goals(current.id, budget_goals, savings_goals)
                logger.info(
                    "Created %s plan %s for user %s starting %s",
                    period_type.value, current.id, source["user_id"], next_start.isoformat(),
                )

            last_plan_id = current.id
            next_start = as_utc(current.period_end) if current.period_end is not None else next_end
            if next_start > now:
                reached_now = True
                break

        await tx.update_user_active_plan(source["user_id"], last_plan_id)
        active_plan = await tx.get_plan(last_plan_id)

        if not reached_now:
            logger.warning(
                "Rollover for user %s stopped after %s periods before reaching %s",
                source["user_id"], max_periods, now.isoformat(),
            )
            return RolloverResult(
                rolled=True,
                created_count=created_count,
                active_plan=active_plan,
                reason=f"Rollover stopped after {max_periods} periods",
                limit_reached=True,
            )
        return RolloverResult(rolled=True, created_count=created_count, active_plan=active_plan)

    return await store.run_in_transaction(advance)


async def roll_over_user(store: PlanStore, user_id: int, now: datetime) -> RolloverResult:
    """Load the user's active plan and roll it over."""
    user = await store.get_user(user_id)
    if user is None or user.active_plan_id is None:
        raise ActivePlanNotFound(f"No active plan found for user {user_id}")
    plan = await store.get_plan(user.active_plan_id)
    if plan is None:
        raise ActivePlanNotFound(f"No active plan found for user {user_id}")
    return await roll_over(store, user, plan, now)


async def roll_over_all(
    session_factory: Callable[[], AsyncContextManager[AsyncSession]],
    now: datetime,
) -> int:
    """
    Roll over every user with an active plan, one session per user.

    A failing user is logged and skipped. Returns how many users rolled.
    """
    async with session_factory() as session:
        user_ids = await PlanRepository(session).list_users_with_active_plan()

    rolled = 0
    for user_id in user_ids:
        async with session_factory() as session:
            try:
                result = await roll_over_user(PlanRepository(session), user_id, now)
            except Exception:
                logger.exception("Rollover failed for user_id=%s", user_id)
                continue
        if result.rolled:
            rolled += 1
    logger.info("Scheduled rollover finished: %s of %s users rolled", rolled, len(user_ids))
    return rolled
