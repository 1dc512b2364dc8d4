"""User profile endpoints (public projection only)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from verser.models import User
from verser.schemas.user import UserPublic

from ..dependencies import CurrentUserDep, StorageDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserPublic)
async def get_me(current_user: CurrentUserDep) -> User:
    """Return the authenticated caller."""
    return current_user


@router.get("/{user_id}", response_model=UserPublic)
async def get_user(user_id: int, storage: StorageDep) -> User:
    """Return a user's public profile."""
    user = await storage.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
