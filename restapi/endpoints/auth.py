"""Caller identification for the API."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.init_db import get_db
from components.user.models import User
from components.user.repository import UserRepository


async def get_current_user(
    x_user_id: Optional[int] = Header(None, description="Authenticated user id set by the gateway"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current user from the X-User-Id header."""
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )

    user = await UserRepository(db).get_by_id(x_user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user
