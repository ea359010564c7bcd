"""Plan and goal models for the database."""

from sqlalchemy import Column, Integer, String, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from components.core.database import Base, UTCDateTime
from components.plan.enums import CurrencyCode, LanguageCode, PeriodType


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Plan(Base):
    """One concrete period instance of a user's budget plan."""
    __tablename__ = "plans"
    __table_args__ = (
        UniqueConstraint("user_id", "period_type", "period_start", name="uq_plans_user_period_start"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    period_type = Column(
        Enum(PeriodType, name="period_type", native_enum=False, values_callable=_enum_values),
        nullable=False,
    )
    period_anchor = Column(UTCDateTime, nullable=True)
    period_start = Column(UTCDateTime, nullable=False)
    period_end = Column(UTCDateTime, nullable=True)  # NULL on legacy rows
    currency = Column(
        Enum(CurrencyCode, name="currency_code", native_enum=False, values_callable=_enum_values),
        nullable=False,
    )
    language = Column(
        Enum(LanguageCode, name="language_code", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=LanguageCode.EN,
    )
    total_budget_limit_minor = Column(Integer, nullable=False, default=0)

    budget_goals = relationship(
        "BudgetGoal",
        back_populates="plan",
        cascade="all",
        passive_deletes=True,
        lazy="selectin",
        order_by="BudgetGoal.id",
    )
    savings_goals = relationship(
        "SavingsGoal",
        back_populates="plan",
        cascade="all",
        passive_deletes=True,
        lazy="selectin",
        order_by="SavingsGoal.id",
    )


class BudgetGoal(Base):
    """Spending limit for one category of a plan."""
    __tablename__ = "budget_goals"
    __table_args__ = (
        UniqueConstraint("plan_id", "category", name="uq_budget_goals_plan_category"),
    )

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(64), nullable=False)  # trimmed, lower-cased
    limit_minor = Column(Integer, nullable=False)

    plan = relationship("Plan", back_populates="budget_goals")


class SavingsGoal(Base):
    """Named savings target of a plan."""
    __tablename__ = "savings_goals"
    __table_args__ = (
        UniqueConstraint("plan_id", "name", name="uq_savings_goals_plan_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    target_minor = Column(Integer, nullable=False)

    plan = relationship("Plan", back_populates="savings_goals")
