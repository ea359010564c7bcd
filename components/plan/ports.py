"""Storage port consumed by the rollover and switch engines."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Protocol, TypeVar

from components.plan.enums import PeriodType
from components.plan.goals_policy import BudgetGoalValue, SavingsGoalValue
from components.plan.models import BudgetGoal, Plan, SavingsGoal
from components.user.models import User

T = TypeVar("T")


@dataclass(frozen=True)
class CreateResult:
    """Outcome of ``create_if_absent``: the row for the key and whether this call inserted it."""
    plan: Plan
    created: bool


class PlanStore(Protocol):
    async def get_user(self, user_id: int) -> Optional[User]: ...

    async def get_plan(self, plan_id: int) -> Optional[Plan]: ...

    async def find_plan(self, user_id: int, period_type: PeriodType, period_start: datetime) -> Optional[Plan]: ...

    async def create_if_absent(self, fields: dict) -> CreateResult: ...

    async def upsert_plan(
        self,
        user_id: int,
        period_type: PeriodType,
        period_start: datetime,
        create_fields: dict,
        update_fields: dict,
    ) -> Plan: ...

    async def update_plan(self, plan: Plan, **fields: Any) -> Plan: ...

    async def update_user_active_plan(self, user_id: int, plan_id: int) -> None: ...

    async def list_budget_goals(self, plan_id: int) -> List[BudgetGoal]: ...

    async def list_savings_goals(self, plan_id: int) -> List[SavingsGoal]: ...

    async def create_goals(
        self,
        plan_id: int,
        budget_goals: Iterable[BudgetGoalValue],
        savings_goals: Iterable[SavingsGoalValue],
    ) -> None: ...

    async def upsert_budget_goal(self, plan_id: int, category: str, limit_minor: int) -> BudgetGoal: ...

    async def delete_budget_goal(self, plan_id: int, category: str) -> None: ...

    async def upsert_savings_goal(self, plan_id: int, name: str, target_minor: int) -> SavingsGoal: ...

    async def delete_savings_goal(self, plan_id: int, name: str) -> bool: ...

    async def clear_goals(self, plan_id: int) -> None: ...

    async def run_in_transaction(self, fn: Callable[["PlanStore"], Awaitable[T]]) -> T: ...
