from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from app.core.database import get_db
from app.core.redis_lifecyle import get_cache
from app.dependencies.auth import get_current_user
from app.models.user.user import User
from app.schemas.activities.activity import ActivityCreate, ActivityResponse, ActivityUpdate, VoteCreate
from app.services.activities.activity_service import ActivityService
from app.services.activities import vote_service

router = APIRouter(prefix="/trips/{trip_id}/activities", tags=["Activities"])


async def get_activity_service(
    cache=Depends(get_cache)
) -> ActivityService:
    return ActivityService(cache)


@router.get("", response_model=List[ActivityResponse])
async def list_activities(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    activity_service: ActivityService = Depends(get_activity_service)
):
    return await activity_service.list_activities(db, trip_id, current_user)


@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
    trip_id: int,
    data: ActivityCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    activity_service: ActivityService = Depends(get_activity_service)
):
    return await activity_service.create_activity(db, trip_id, data, current_user)


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(
    trip_id: int,
    activity_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    activity_service: ActivityService = Depends(get_activity_service)
):
    return await activity_service.get_activity(db, trip_id, activity_id, current_user)


@router.put("/{activity_id}", response_model=ActivityResponse)
async def update_activity(
    trip_id: int,
    activity_id: int,
    data: ActivityUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    activity_service: ActivityService = Depends(get_activity_service)
):
    return await activity_service.update_activity(db, trip_id, activity_id, data, current_user)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity(
    trip_id: int,
    activity_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    activity_service: ActivityService = Depends(get_activity_service)
):
    await activity_service.delete_activity(db, trip_id, activity_id, current_user)


# 🔹 Votes
@router.post("/{activity_id}/votes", response_model=ActivityResponse)
async def vote_on_activity(
    trip_id: int,
    activity_id: int,
    vote: VoteCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    activity_service: ActivityService = Depends(get_activity_service)
):
    return await vote_service.cast_vote(db, activity_service, trip_id, activity_id, vote, current_user)


@router.delete("/{activity_id}/votes", response_model=ActivityResponse)
async def remove_vote(
    trip_id: int,
    activity_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    activity_service: ActivityService = Depends(get_activity_service)
):
    return await vote_service.remove_vote(db, activity_service, trip_id, activity_id, current_user)
