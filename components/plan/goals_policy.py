"""Goals transfer policy: the goal values a new or switched plan should carry.

Nothing here writes to the database; callers persist the returned payload.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Protocol

from components.plan.currency import Number, convert_minor, to_minor_int
from components.plan.enums import CurrencyCode, GoalsMode


class _BudgetGoalLike(Protocol):
    category: str
    limit_minor: Number


class _SavingsGoalLike(Protocol):
    name: str
    target_minor: Number


class PlanWithGoals(Protocol):
    total_budget_limit_minor: Number
    budget_goals: Iterable[_BudgetGoalLike]
    savings_goals: Iterable[_SavingsGoalLike]


@dataclass(frozen=True)
class BudgetGoalValue:
    category: str
    limit_minor: int


@dataclass(frozen=True)
class SavingsGoalValue:
    name: str
    target_minor: int


@dataclass(frozen=True)
class GoalsPayload:
    total_limit_minor: int = 0
    budget_goals: List[BudgetGoalValue] = field(default_factory=list)
    savings_goals: List[SavingsGoalValue] = field(default_factory=list)


def canonical_category(value) -> str:
    """Budget categories are keyed case- and whitespace-insensitively."""
    return str(value or "").strip().lower()


def plan_goals_payload(
    active_plan: PlanWithGoals,
    from_currency: CurrencyCode,
    to_currency: CurrencyCode,
    fx_rate: Number,
    mode: GoalsMode,
) -> GoalsPayload:
    """
    Build the total and goals for a plan derived from ``active_plan``.

    - RESET_EMPTY: zero total, no goals.
    - COPY_AS_IS: amounts truncated, never converted.
    - CONVERT_USING_FX: amounts converted with :func:`convert_minor`.
    """
    mode = GoalsMode(mode)
    if mode == GoalsMode.RESET_EMPTY:
        return GoalsPayload()

    def carry(amount: Number) -> int:
        value = to_minor_int(amount)
        if mode == GoalsMode.CONVERT_USING_FX:
            return convert_minor(value, from_currency, to_currency, fx_rate)
        return value

    budget_goals = [
        BudgetGoalValue(category=canonical_category(goal.category), limit_minor=carry(goal.limit_minor))
        for goal in (active_plan.budget_goals or [])
    ]
    savings_goals = [
        SavingsGoalValue(name=goal.name, target_minor=carry(goal.target_minor))
        for goal in (active_plan.savings_goals or [])
    ]
    return GoalsPayload(
        total_limit_minor=carry(active_plan.total_budget_limit_minor),
        budget_goals=budget_goals,
        savings_goals=savings_goals,
    )
