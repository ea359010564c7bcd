"""Pydantic schemas for plan data validation."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from components.plan.enums import CurrencyCode, GoalsMode, LanguageCode, PeriodType, SwitchMode


class BudgetGoal(BaseModel):
    """Schema for budget goal response."""
    category: str
    limit_minor: int

    class Config:
        from_attributes = True


class SavingsGoal(BaseModel):
    """Schema for savings goal response."""
    name: str
    target_minor: int

    class Config:
        from_attributes = True


class Plan(BaseModel):
    """Schema for plan response."""
    id: int
    user_id: int
    period_type: PeriodType
    period_anchor: Optional[datetime] = None
    period_start: datetime
    period_end: Optional[datetime] = None
    currency: CurrencyCode
    language: LanguageCode
    total_budget_limit_minor: int
    budget_goals: List[BudgetGoal] = []
    savings_goals: List[SavingsGoal] = []

    class Config:
        from_attributes = True


class RolloverResponse(BaseModel):
    """Schema for rollover response."""
    rolled: bool
    created_count: int
    reason: Optional[str] = None
    limit_reached: bool = False
    active_plan: Optional[Plan] = None


class PlanSwitch(BaseModel):
    """Schema for switching the active plan."""
    period_type: Optional[PeriodType] = None
    currency: Optional[CurrencyCode] = None
    switch_mode: SwitchMode = SwitchMode.PERIOD_AND_CURRENCY
    goals_mode: GoalsMode = GoalsMode.COPY_AS_IS
    fx_rate: Optional[float] = Field(None, description="KRW per 1 USD")
    time_zone: Optional[str] = None


class BudgetGoalsUpdate(BaseModel):
    """Schema for budget goals update; a limit of 0 removes the category."""
    goals: Dict[str, int] = {}
    total_budget_limit_minor: Optional[int] = None


class SavingsGoalUpdate(BaseModel):
    """Schema for savings goal upsert."""
    name: str = Field(..., min_length=1, max_length=100)
    target_minor: int = Field(..., ge=0)
