"""Plan endpoints for the API."""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.init_db import get_db
from components.plan import active_plan, schemas
from components.plan.enums import PeriodType
from components.plan.periods import MAX_HISTORY_PERIODS
from components.plan.repository import PlanRepository
from components.plan.rollover import roll_over_user
from components.plan.switch import SwitchRequest, switch_user_plan
from components.user.models import User
from restapi.endpoints.auth import get_current_user

router = APIRouter(
    prefix="/plans",
    tags=["plans"],
    responses={404: {"description": "Not found"}},
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@router.get("/current", response_model=schemas.Plan)
async def get_current_plan(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get the active plan, creating the plan for the current period if there is none."""
    return await active_plan.ensure_active_plan(PlanRepository(db), current_user, utc_now())


@router.get("", response_model=List[schemas.Plan])
async def list_plans(
    period_type: Optional[PeriodType] = Query(None, description="Only plans of this period type"),
    limit: int = Query(12, ge=1, le=MAX_HISTORY_PERIODS, description="Number of plans to return"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get the plan history of the calling user, newest first."""
    return await PlanRepository(db).list_plans(current_user.id, period_type=period_type, limit=limit)


@router.get("/{plan_id}", response_model=schemas.Plan)
async def get_plan(
    plan_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a specific plan of the calling user."""
    return await active_plan.get_owned_plan(PlanRepository(db), current_user.id, plan_id)


@router.post("/{plan_id}/activate", response_model=schemas.Plan)
async def activate_plan(
    plan_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Point the calling user at one of their plans."""
    return await active_plan.set_active_plan(PlanRepository(db), current_user.id, plan_id)


@router.post("/actions/rollover", response_model=schemas.RolloverResponse)
async def rollover(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Advance the active plan to the period containing now.

    Missing periods are created with the active plan's total and goals.
    Re-running it creates nothing new.
    """
    result = await roll_over_user(PlanRepository(db), current_user.id, utc_now())
    return schemas.RolloverResponse(
        rolled=result.rolled,
        created_count=result.created_count,
        reason=result.reason,
        limit_reached=result.limit_reached,
        active_plan=schemas.Plan.model_validate(result.active_plan) if result.active_plan is not None else None,
    )


@router.post("/switch", response_model=schemas.Plan)
async def switch_plan(
    payload: schemas.PlanSwitch,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Switch the active plan to another period type and/or currency.

    - switch_mode: which of period_type / currency is applied
    - goals_mode: COPY_AS_IS, CONVERT_USING_FX (with fx_rate KRW per USD) or RESET_EMPTY
    - time_zone: overrides the user's zone for this switch only
    """
    request = SwitchRequest(**payload.model_dump())
    return await switch_user_plan(PlanRepository(db), current_user.id, request, utc_now())


@router.patch("/{plan_id}/goals/budget", response_model=schemas.Plan)
async def update_budget_goals(
    plan_id: int,
    payload: schemas.BudgetGoalsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Set budget limits by category; a limit of 0 removes the category."""
    repo = PlanRepository(db)
    plan = await active_plan.get_owned_plan(repo, current_user.id, plan_id)
    return await active_plan.set_budget_goals(
        repo, plan, payload.goals, total_limit_minor=payload.total_budget_limit_minor
    )


@router.put("/{plan_id}/goals/savings", response_model=schemas.Plan)
async def put_savings_goal(
    plan_id: int,
    payload: schemas.SavingsGoalUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create or update a savings goal by name."""
    repo = PlanRepository(db)
    plan = await active_plan.get_owned_plan(repo, current_user.id, plan_id)
    return await active_plan.set_savings_goal(repo, plan, payload.name, payload.target_minor)


@router.delete("/{plan_id}/goals/savings/{name}", response_model=schemas.Plan)
async def delete_savings_goal(
    plan_id: int,
    name: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a savings goal by name."""
    repo = PlanRepository(db)
    plan = await active_plan.get_owned_plan(repo, current_user.id, plan_id)
    return await active_plan.remove_savings_goal(repo, plan, name)
