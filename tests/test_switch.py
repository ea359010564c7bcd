from datetime import datetime, timezone

import pytest

from components.plan.enums import CurrencyCode, GoalsMode, PeriodType, SwitchMode
from components.plan.exceptions import ActivePlanNotFound, PlanValidationError
from components.plan.models import Plan
from components.plan.switch import SwitchRequest, resolve_targets, switch_plan, switch_user_plan

NOW = datetime(2025, 3, 15, 12, tzinfo=timezone.utc)


def utc(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def budget(plan):
    return {goal.category: goal.limit_minor for goal in plan.budget_goals}


def savings(plan):
    return {goal.name: goal.target_minor for goal in plan.savings_goals}


@pytest.fixture
async def user_with_plan(make_user, make_plan):
    user = await make_user()
    plan = await make_plan(
        user,
        utc(2025, 3, 1),
        total=10000,
        budget_goals={"food": 5000},
        savings_goals={"Trip": 20000},
    )
    return user, plan


def test_resolve_targets_by_switch_mode():
    plan = Plan(period_type=PeriodType.MONTHLY, currency=CurrencyCode.USD)
    both = dict(period_type=PeriodType.WEEKLY, currency=CurrencyCode.KRW)

    assert resolve_targets(plan, SwitchRequest(**both)) == (PeriodType.WEEKLY, CurrencyCode.KRW)
    assert resolve_targets(plan, SwitchRequest(switch_mode=SwitchMode.PERIOD_ONLY, **both)) == (
        PeriodType.WEEKLY,
        CurrencyCode.USD,
    )
    assert resolve_targets(plan, SwitchRequest(switch_mode=SwitchMode.CURRENCY_ONLY, **both)) == (
        PeriodType.MONTHLY,
        CurrencyCode.KRW,
    )
    assert resolve_targets(plan, SwitchRequest()) == (PeriodType.MONTHLY, CurrencyCode.USD)


async def test_currency_only_switch_converts_in_place(repo, count_rows, user_with_plan):
    user, plan = user_with_plan
    request = SwitchRequest(
        currency=CurrencyCode.KRW,
        switch_mode=SwitchMode.CURRENCY_ONLY,
        goals_mode=GoalsMode.CONVERT_USING_FX,
        fx_rate=1300,
    )

    switched = await switch_user_plan(repo, user.id, request, NOW)

    assert switched.id == plan.id
    assert switched.currency == CurrencyCode.KRW
    assert switched.period_type == PeriodType.MONTHLY
    assert switched.period_start == utc(2025, 3, 1)
    assert switched.period_end == utc(2025, 4, 1)
    assert switched.period_anchor is None
    assert switched.total_budget_limit_minor == 130000
    assert budget(switched) == {"food": 65000}
    assert savings(switched) == {"Trip": 260000}
    assert await count_rows(Plan) == 1


async def test_currency_only_switch_keeps_biweekly_window_and_anchor(repo, count_rows, make_user, make_plan):
    user = await make_user()
    plan = await make_plan(
        user, utc(2025, 3, 10), period_type=PeriodType.BIWEEKLY, anchor=utc(2025, 1, 13), total=5000
    )
    request = SwitchRequest(
        currency=CurrencyCode.KRW,
        switch_mode=SwitchMode.CURRENCY_ONLY,
        goals_mode=GoalsMode.CONVERT_USING_FX,
        fx_rate=1300,
    )

    switched = await switch_user_plan(repo, user.id, request, NOW)

    assert switched.id == plan.id
    assert switched.period_type == PeriodType.BIWEEKLY
    assert switched.period_anchor == utc(2025, 1, 13)
    assert switched.period_start == utc(2025, 3, 10)
    assert switched.period_end == utc(2025, 3, 24)
    assert switched.currency == CurrencyCode.KRW
    assert switched.total_budget_limit_minor == 65000
    assert await count_rows(Plan) == 1


async def test_period_only_switch_creates_weekly_plan(repo, count_rows, user_with_plan):
    user, plan = user_with_plan
    request = SwitchRequest(
        period_type=PeriodType.WEEKLY,
        currency=CurrencyCode.KRW,
        switch_mode=SwitchMode.PERIOD_ONLY,
    )

    switched = await switch_user_plan(repo, user.id, request, NOW)

    assert switched.id != plan.id
    assert switched.period_type == PeriodType.WEEKLY
    assert switched.currency == CurrencyCode.USD
    assert switched.period_start == utc(2025, 3, 10)
    assert switched.period_end == utc(2025, 3, 17)
    assert switched.total_budget_limit_minor == 10000
    assert budget(switched) == {"food": 5000}
    assert savings(switched) == {"Trip": 20000}
    assert user.active_plan_id == switched.id
    assert await count_rows(Plan) == 2


async def test_switch_back_reuses_existing_row(repo, count_rows, user_with_plan):
    user, plan = user_with_plan
    await switch_user_plan(repo, user.id, SwitchRequest(period_type=PeriodType.WEEKLY), NOW)

    back = await switch_user_plan(repo, user.id, SwitchRequest(period_type=PeriodType.MONTHLY), NOW)

    assert back.id == plan.id
    assert user.active_plan_id == plan.id
    assert await count_rows(Plan) == 2


async def test_reset_empty_biweekly_switch(repo, user_with_plan):
    user, _ = user_with_plan
    request = SwitchRequest(period_type=PeriodType.BIWEEKLY, goals_mode=GoalsMode.RESET_EMPTY)

    switched = await switch_user_plan(repo, user.id, request, NOW)

    assert switched.period_type == PeriodType.BIWEEKLY
    assert switched.period_anchor == utc(2025, 1, 6)
    assert switched.period_start == utc(2025, 3, 3)
    assert switched.period_end == utc(2025, 3, 17)
    assert switched.total_budget_limit_minor == 0
    assert switched.budget_goals == []
    assert switched.savings_goals == []


async def test_reset_empty_clears_goals_of_existing_target(repo, user_with_plan):
    user, plan = user_with_plan
    request = SwitchRequest(switch_mode=SwitchMode.CURRENCY_ONLY, goals_mode=GoalsMode.RESET_EMPTY)

    switched = await switch_user_plan(repo, user.id, request, NOW)

    assert switched.id == plan.id
    assert switched.total_budget_limit_minor == 0
    assert switched.budget_goals == []
    assert switched.savings_goals == []


async def test_converted_budget_goal_of_zero_is_removed(repo, make_user, make_plan):
    user = await make_user()
    await make_plan(
        user,
        utc(2025, 3, 1),
        currency=CurrencyCode.KRW,
        total=1300000,
        budget_goals={"food": 3, "rent": 1300000},
    )
    request = SwitchRequest(
        currency=CurrencyCode.USD,
        switch_mode=SwitchMode.CURRENCY_ONLY,
        goals_mode=GoalsMode.CONVERT_USING_FX,
        fx_rate=1300,
    )

    switched = await switch_user_plan(repo, user.id, request, NOW)

    assert switched.currency == CurrencyCode.USD
    assert switched.total_budget_limit_minor == 100000
    assert budget(switched) == {"rent": 100000}


async def test_switch_time_zone_override(repo, user_with_plan):
    user, _ = user_with_plan
    request = SwitchRequest(period_type=PeriodType.WEEKLY, time_zone="Asia/Seoul")

    switched = await switch_user_plan(repo, user.id, request, NOW)

    # Monday 2025-03-10 00:00 KST
    assert switched.period_start == utc(2025, 3, 9, 15)
    assert switched.period_end == utc(2025, 3, 16, 15)


async def test_unknown_time_zone_changes_nothing(repo, count_rows, user_with_plan):
    user, plan = user_with_plan
    request = SwitchRequest(period_type=PeriodType.WEEKLY, time_zone="Nowhere/Special")

    with pytest.raises(PlanValidationError):
        await switch_plan(repo, user, plan, request, NOW)

    assert user.active_plan_id == plan.id
    assert await count_rows(Plan) == 1


async def test_switch_without_active_plan_creates_one_first(repo, count_rows, make_user):
    user = await make_user(currency=CurrencyCode.KRW)

    switched = await switch_user_plan(repo, user.id, SwitchRequest(period_type=PeriodType.WEEKLY), NOW)

    assert switched.period_type == PeriodType.WEEKLY
    assert switched.currency == CurrencyCode.KRW
    assert user.active_plan_id == switched.id
    assert await count_rows(Plan) == 2


async def test_switch_for_unknown_user(repo):
    with pytest.raises(ActivePlanNotFound):
        await switch_user_plan(repo, 999, SwitchRequest(), NOW)
