"""Switch engine: move a user to a plan with a new period type and/or currency."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from components.plan.active_plan import ensure_active_plan
from components.plan.currency import Number, to_minor_int
from components.plan.enums import CurrencyCode, GoalsMode, PeriodType, SwitchMode
from components.plan.exceptions import ActivePlanNotFound
from components.plan.goals_policy import plan_goals_payload
from components.plan.models import Plan
from components.plan.periods import as_utc, compute_period_window, resolve_time_zone
from components.plan.ports import PlanStore
from components.user.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwitchRequest:
    period_type: Optional[PeriodType] = None
    currency: Optional[CurrencyCode] = None
    switch_mode: SwitchMode = SwitchMode.PERIOD_AND_CURRENCY
    goals_mode: GoalsMode = GoalsMode.COPY_AS_IS
    fx_rate: Number = None
    time_zone: Optional[str] = None


def resolve_targets(active_plan: Plan, request: SwitchRequest) -> Tuple[PeriodType, CurrencyCode]:
    """Period type and currency the switched plan ends up with."""
    switch_mode = SwitchMode(request.switch_mode)
    period_type = PeriodType(active_plan.period_type)
    currency = CurrencyCode(active_plan.currency)

    if switch_mode != SwitchMode.CURRENCY_ONLY and request.period_type is not None:
        period_type = PeriodType(request.period_type)
    if switch_mode != SwitchMode.PERIOD_ONLY and request.currency is not None:
        currency = CurrencyCode(request.currency)
    return period_type, currency


async def switch_plan(
    store: PlanStore,
    user: User,
    active_plan: Plan,
    request: SwitchRequest,
    now: datetime,
) -> Plan:
    """
    Upsert the plan for ``now`` under the requested period type and currency,
    carry goals into it according to ``request.goals_mode`` and make it active.

    The active plan's anchor is kept so weekly and biweekly phases survive the
    switch. With RESET_EMPTY the target plan is left with a zero total and no goals.
    """
    target_type, target_currency = resolve_targets(active_plan, request)
    goals_mode = GoalsMode(request.goals_mode)
    tz = resolve_time_zone(request.time_zone, default=user.time_zone)
    window = compute_period_window(target_type, tz, as_utc(now), active_plan.period_anchor)

    # Computed before any write: the target row may be the active plan itself.
    payload = plan_goals_payload(
        active_plan, active_plan.currency, target_currency, request.fx_rate, goals_mode
    )
    seed_total = 0 if goals_mode == GoalsMode.RESET_EMPTY else to_minor_int(active_plan.total_budget_limit_minor)

    async def apply(tx: PlanStore) -> Plan:
        plan = await tx.upsert_plan(
            user.id,
            target_type,
            window.period_start,
            create_fields={
                "period_anchor": window.period_anchor,
                "period_end": window.period_end,
                "currency": target_currency,
                "language": active_plan.language,
                "total_budget_limit_minor": seed_total,
            },
            update_fields={
                "currency": target_currency,
                "period_anchor": window.period_anchor,
                "period_end": window.period_end,
            },
        )

        if goals_mode == GoalsMode.RESET_EMPTY:
            await tx.update_plan(plan, total_budget_limit_minor=0)
            await tx.clear_goals(plan.id)
        else:
            await tx.update_plan(plan, total_budget_limit_minor=payload.total_limit_minor)
            for goal in payload.budget_goals:
                if not goal.category:
                    continue
                if goal.limit_minor <= 0:
                    await tx.delete_budget_goal(plan.id, goal.category)
                else:
                    await tx.upsert_budget_goal(plan.id, goal.category, goal.limit_minor)
            for goal in payload.savings_goals:
                await tx.upsert_savings_goal(plan.id, goal.name, goal.target_minor)

        await tx.update_user_active_plan(user.id, plan.id)
        logger.info(
            "Switched user %s to %s/%s plan %s (goals %s)",
            user.id, target_type.value, target_currency.value, plan.id, goals_mode.value,
        )
        return await tx.get_plan(plan.id)

    return await store.run_in_transaction(apply)


async def switch_user_plan(store: PlanStore, user_id: int, request: SwitchRequest, now: datetime) -> Plan:
    """Ensure the user has an active plan, then switch from it."""
    user = await store.get_user(user_id)
    if user is None:
        raise ActivePlanNotFound(f"User {user_id} not found")
    active_plan = await ensure_active_plan(store, user, now)
    return await switch_plan(store, user, active_plan, request, now)
