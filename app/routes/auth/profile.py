from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.dependencies.auth import get_current_user
from app.core.database import get_db
from app.models.user.user import User
from app.schemas.user.user import UserUpdate, UserOut
from app.services.auth.profile_service import ProfileService
from app.services.users.directory import list_users, search_users

router = APIRouter(prefix="/me", tags=["Profile"])
users_router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=UserOut)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ProfileService.get_user_by_id(current_user.id, db)


@router.put("", response_model=UserOut)
async def update_my_profile(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ProfileService.update_user_profile(current_user.id, data, db)


@users_router.get("", response_model=List[UserOut])
async def list_other_users(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await list_users(db, exclude_user_id=current_user.id)


@users_router.get("/search", response_model=List[UserOut])
async def search_other_users(
    query: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await search_users(db, query, exclude_user_id=current_user.id)


@users_router.get("/{user_id}", response_model=UserOut)
async def get_user_profile(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ProfileService.get_user_by_id(user_id, db)
