"""Repository for plan operations."""

from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from components.plan.enums import PeriodType
from components.plan.goals_policy import BudgetGoalValue, SavingsGoalValue
from components.plan.models import BudgetGoal, Plan, SavingsGoal
from components.plan.ports import CreateResult
from components.plan.periods import as_utc
from components.user.models import User

T = TypeVar("T")


class PlanRepository:
    """SQLAlchemy implementation of the plan storage port.

    Methods only flush; ``run_in_transaction`` owns commit and rollback.
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def run_in_transaction(self, fn: Callable[["PlanRepository"], Awaitable[T]]) -> T:
        """Run ``fn(self)`` and commit; any error rolls everything back and propagates."""
        try:
            result = await fn(self)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_plan(self, plan_id: int) -> Optional[Plan]:
        """Get plan by ID with freshly loaded goals."""
        result = await self.session.execute(
            select(Plan)
            .where(Plan.id == plan_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_plan(
        self, user_id: int, period_type: PeriodType, period_start: datetime
    ) -> Optional[Plan]:
        """Look a plan up by its natural key."""
        result = await self.session.execute(
            select(Plan).where(
                Plan.user_id == user_id,
                Plan.period_type == PeriodType(period_type),
                Plan.period_start == as_utc(period_start),
            )
        )
        return result.scalar_one_or_none()

    async def list_plans(
        self,
        user_id: int,
        period_type: Optional[PeriodType] = None,
        limit: int = 12,
    ) -> List[Plan]:
        """Newest plans of a user first."""
        query = select(Plan).where(Plan.user_id == user_id)
        if period_type is not None:
            query = query.where(Plan.period_type == PeriodType(period_type))
        query = query.order_by(Plan.period_start.desc()).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def create_if_absent(self, fields: dict) -> CreateResult:
        """
        Insert a plan unless its ``(user_id, period_type, period_start)`` exists.

        The insert runs in a SAVEPOINT; on a uniqueness conflict the savepoint is
        rolled back and the row that won is returned with ``created=False``.
        """
        plan = Plan(**fields)
        try:
            async with self.session.begin_nested():
                self.session.add(plan)
                await self.session.flush()
        except IntegrityError:
            existing = await self.find_plan(fields["user_id"], fields["period_type"], fields["period_start"])
            if existing is None:
                raise
            return CreateResult(plan=existing, created=False)
        return CreateResult(plan=plan, created=True)

    async def upsert_plan(
        self,
        user_id: int,
        period_type: PeriodType,
        period_start: datetime,
        create_fields: dict,
        update_fields: dict,
    ) -> Plan:
        """Create the plan for the key, or apply ``update_fields`` to the existing one."""
        fields = dict(create_fields, user_id=user_id, period_type=PeriodType(period_type), period_start=period_start)
        result = await self.create_if_absent(fields)
        if result.created or not update_fields:
            return result.plan
        return await self.update_plan(result.plan, **update_fields)

    async def update_plan(self, plan: Plan, **fields: Any) -> Plan:
        fields.pop("period_start", None)  # identity key, never updated
        for name, value in fields.items():
            setattr(plan, name, value)
        await self.session.flush()
        return plan

    async def update_user_active_plan(self, user_id: int, plan_id: int) -> None:
        user = await self.get_user(user_id)
        if user is None:
            raise LookupError(f"User {user_id} does not exist")
        user.active_plan_id = plan_id
        await self.session.flush()

    async def list_users_with_active_plan(self) -> List[int]:
        result = await self.session.execute(
            select(User.id).where(User.active_plan_id.is_not(None)).order_by(User.id)
        )
        return list(result.scalars().all())

    async def list_budget_goals(self, plan_id: int) -> List[BudgetGoal]:
        result = await self.session.execute(
            select(BudgetGoal).where(BudgetGoal.plan_id == plan_id).order_by(BudgetGoal.id)
        )
        return list(result.scalars().all())

    async def list_savings_goals(self, plan_id: int) -> List[SavingsGoal]:
        result = await self.session.execute(
            select(SavingsGoal).where(SavingsGoal.plan_id == plan_id).order_by(SavingsGoal.id)
        )
        return list(result.scalars().all())

    async def create_goals(
        self,
        plan_id: int,
        budget_goals: Iterable[BudgetGoalValue],
        savings_goals: Iterable[SavingsGoalValue],
    ) -> None:
        self.session.add_all(
            BudgetGoal(plan_id=plan_id, category=goal.category, limit_minor=goal.limit_minor)
            for goal in budget_goals
        )
        self.session.add_all(
            SavingsGoal(plan_id=plan_id, name=goal.name, target_minor=goal.target_minor)
            for goal in savings_goals
        )
        await self.session.flush()

    async def upsert_budget_goal(self, plan_id: int, category: str, limit_minor: int) -> BudgetGoal:
        result = await self.session.execute(
            select(BudgetGoal).where(BudgetGoal.plan_id == plan_id, BudgetGoal.category == category)
        )
        goal = result.scalar_one_or_none()
        if goal is None:
            goal = BudgetGoal(plan_id=plan_id, category=category, limit_minor=limit_minor)
            self.session.add(goal)
        else:
            goal.limit_minor = limit_minor
        await self.session.flush()
        return goal

    async def delete_budget_goal(self, plan_id: int, category: str) -> None:
        await self.session.execute(
            delete(BudgetGoal).where(BudgetGoal.plan_id == plan_id, BudgetGoal.category == category)
        )

    async def upsert_savings_goal(self, plan_id: int, name: str, target_minor: int) -> SavingsGoal:
        result = await self.session.execute(
            select(SavingsGoal).where(SavingsGoal.plan_id == plan_id, SavingsGoal.name == name)
        )
        goal = result.scalar_one_or_none()
        if goal is None:
            goal = SavingsGoal(plan_id=plan_id, name=name, target_minor=target_minor)
            self.session.add(goal)
        else:
            goal.target_minor = target_minor
        await self.session.flush()
        return goal

    async def delete_savings_goal(self, plan_id: int, name: str) -> bool:
        result = await self.session.execute(
            delete(SavingsGoal).where(SavingsGoal.plan_id == plan_id, SavingsGoal.name == name)
        )
        return result.rowcount > 0

    async def clear_goals(self, plan_id: int) -> None:
        await self.session.execute(delete(BudgetGoal).where(BudgetGoal.plan_id == plan_id))
        await self.session.execute(delete(SavingsGoal).where(SavingsGoal.plan_id == plan_id))
