"""User endpoints for the API."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.init_db import get_db
from components.user import schemas
from components.user.models import User
from components.user.repository import UserRepository
from restapi.endpoints.auth import get_current_user

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "Not found"}},
)


@router.get("/me", response_model=schemas.User)
async def read_current_user(current_user: User = Depends(get_current_user)):
    """Get the calling user."""
    return current_user


@router.patch("/me", response_model=schemas.User)
async def update_current_user(
    user: schemas.UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update time zone, currency or language of the calling user."""
    repo = UserRepository(db)
    updated_user = await repo.update(current_user.id, user)
    if not updated_user:
        raise HTTPException(status_code=404, detail="User not found")
    return updated_user
