"""Pydantic schemas for user data validation."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from components.plan.enums import CurrencyCode, LanguageCode


class User(BaseModel):
    """Schema for user response."""
    id: int
    login: str
    registration_date: date
    time_zone: Optional[str] = None
    currency: CurrencyCode
    language: LanguageCode
    active_plan_id: Optional[int] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    """Schema for user preferences update."""
    time_zone: Optional[str] = Field(None, max_length=64)
    currency: Optional[CurrencyCode] = None
    language: Optional[LanguageCode] = None
