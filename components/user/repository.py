"""Repository for user operations."""

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from components.plan.enums import CurrencyCode, LanguageCode
from components.plan.periods import resolve_time_zone
from components.user.models import User
from components.user.schemas import UserUpdate


class UserRepository:
    """Repository for user operations."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def create(
        self,
        login: str,
        time_zone: Optional[str] = None,
        currency: CurrencyCode = CurrencyCode.USD,
        language: LanguageCode = LanguageCode.EN,
        registration_date: Optional[date] = None,
    ) -> User:
        """Create a new user."""
        if time_zone:
            time_zone = resolve_time_zone(time_zone).key
        db_user = User(
            login=login,
            time_zone=time_zone,
            currency=currency,
            language=language,
            registration_date=registration_date or date.today(),
        )
        self.session.add(db_user)
        await self.session.commit()
        await self.session.refresh(db_user)
        return db_user

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        result = await self.session.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_login(self, login: str) -> Optional[User]:
        """Get user by login."""
        result = await self.session.execute(
            select(User).where(User.login == login)
        )
        return result.scalar_one_or_none()

    async def update(self, user_id: int, user: UserUpdate) -> Optional[User]:
        """
        Update user preferences by ID.

        A blank time zone clears it so the configured default applies.
        Raises PlanValidationError for an unknown zone.
        """
        db_user = await self.get_by_id(user_id)
        if not db_user:
            return None

        fields = user.model_dump(exclude_unset=True)
        if "time_zone" in fields:
            name = (fields["time_zone"] or "").strip()
            db_user.time_zone = resolve_time_zone(name).key if name else None
        if fields.get("currency") is not None:
            db_user.currency = fields["currency"]
        if fields.get("language") is not None:
            db_user.language = fields["language"]

        await self.session.commit()
        await self.session.refresh(db_user)
        return db_user
