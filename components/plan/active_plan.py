"""Active plan lookup and goal editing on a single plan."""

import logging
from datetime import datetime
from typing import Iterable, Mapping, Optional, Tuple, Union

from components.core.config import get_settings
from components.plan.currency import Number, to_minor_int
from components.plan.enums import CurrencyCode, LanguageCode, PeriodType
from components.plan.exceptions import PlanNotFound, PlanValidationError
from components.plan.goals_policy import canonical_category
from components.plan.models import Plan
from components.plan.periods import as_utc, compute_period_window, resolve_time_zone
from components.plan.ports import PlanStore
from components.user.models import User

logger = logging.getLogger(__name__)

BudgetGoalInput = Union[Mapping[str, Number], Iterable[Tuple[str, Number]]]


async def ensure_active_plan(store: PlanStore, user: User, now: datetime) -> Plan:
    """
    Return the plan the user points at, creating the plan for ``now`` if needed.

    The created plan uses the default period type and the user's currency and
    language. An existing row for the same period only gets its end repaired.
    """
    if user.active_plan_id is not None:
        plan = await store.get_plan(user.active_plan_id)
        if plan is not None:
            return plan

    settings = get_settings()
    tz = resolve_time_zone(user.time_zone)
    window = compute_period_window(PeriodType(settings.DEFAULT_PERIOD_TYPE), tz, as_utc(now))

    async def create(tx: PlanStore) -> Plan:
        plan = await tx.upsert_plan(
            user.id,
            window.period_type,
            window.period_start,
            create_fields={
                "period_anchor": window.period_anchor,
                "period_end": window.period_end,
                "currency": user.currency or CurrencyCode(settings.DEFAULT_CURRENCY),
                "language": user.language or LanguageCode(settings.DEFAULT_LANGUAGE),
                "total_budget_limit_minor": 0,
            },
            update_fields={"period_end": window.period_end},
        )
        await tx.update_user_active_plan(user.id, plan.id)
        logger.info(
            "Activated %s plan %s for user %s (%s to %s, %s)",
            window.period_type.value, plan.id, user.id,
            window.period_start.isoformat(), window.period_end.isoformat(), tz.key,
        )
        return await tx.get_plan(plan.id)

    return await store.run_in_transaction(create)


async def get_owned_plan(store: PlanStore, user_id: int, plan_id: int) -> Plan:
    """Plan ``plan_id`` if it belongs to ``user_id``."""
    plan = await store.get_plan(plan_id)
    if plan is None or plan.user_id != user_id:
        raise PlanNotFound(f"Plan {plan_id} not found")
    return plan


async def set_active_plan(store: PlanStore, user_id: int, plan_id: int) -> Plan:
    plan = await get_owned_plan(store, user_id, plan_id)

    async def point(tx: PlanStore) -> Plan:
        await tx.update_user_active_plan(user_id, plan.id)
        return plan

    return await store.run_in_transaction(point)


def _budget_items(goals: BudgetGoalInput) -> Iterable[Tuple[str, Number]]:
    if isinstance(goals, Mapping):
        return goals.items()
    return goals


async def set_budget_goals(
    store: PlanStore,
    plan: Plan,
    goals: BudgetGoalInput,
    total_limit_minor: Optional[Number] = None,
) -> Plan:
    """
    Upsert budget goals by canonical category; a limit <= 0 removes the goal.

    Duplicate categories collapse to the last value given.
    """
    limits = {}
    for category, limit in _budget_items(goals):
        key = canonical_category(category)
        if key:
            limits[key] = max(0, to_minor_int(limit))

    async def apply(tx: PlanStore) -> Plan:
        if total_limit_minor is not None:
            await tx.update_plan(plan, total_budget_limit_minor=max(0, to_minor_int(total_limit_minor)))
        for category, limit in limits.items():
            if limit <= 0:
                await tx.delete_budget_goal(plan.id, category)
            else:
                await tx.upsert_budget_goal(plan.id, category, limit)
        return await tx.get_plan(plan.id)

    return await store.run_in_transaction(apply)


async def set_savings_goal(store: PlanStore, plan: Plan, name: str, target_minor: Number) -> Plan:
    name = str(name or "").strip()
    if not name:
        raise PlanValidationError("Savings goal name is required")
    target = max(0, to_minor_int(target_minor))

    async def apply(tx: PlanStore) -> Plan:
        await tx.upsert_savings_goal(plan.id, name, target)
        return await tx.get_plan(plan.id)

    return await store.run_in_transaction(apply)


async def remove_savings_goal(store: PlanStore, plan: Plan, name: str) -> Plan:
    name = str(name or "").strip()

    async def apply(tx: PlanStore) -> Plan:
        if not await tx.delete_savings_goal(plan.id, name):
            raise PlanNotFound(f"Savings goal {name!r} not found")
        return await tx.get_plan(plan.id)

    return await store.run_in_transaction(apply)
