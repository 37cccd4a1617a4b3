from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from app.schemas.trip.trip_schema import TripCreate, TripUpdate, TripResponse, TripJoin
from app.models.user.user import User
from app.core.database import get_db
from app.core.redis_lifecyle import get_cache
from app.dependencies.auth import get_current_user
from app.services.trips.trip_service import TripService

router = APIRouter(prefix="/trips", tags=['Trips'])


async def get_trip_service(
    cache=Depends(get_cache)
) -> TripService:
    return TripService(cache)


@router.get("", response_model=List[TripResponse])
async def get_my_trips(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.list_for_user(db, current_user.id)


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip_route(
    trip: TripCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.create_trip(db, trip, current_user)


@router.post("/join", response_model=TripResponse)
async def join_trip_route(
    payload: TripJoin,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.join_by_code(db, payload.trip_code, current_user)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.get_trip_for_participant(db, trip_id, current_user)


@router.put("/{trip_id}", response_model=TripResponse)
async def update_trip_route(
    trip_id: int,
    trip_update: TripUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.update_trip(db, trip_id, trip_update, current_user)


@router.delete("/{trip_id}")
async def delete_trip_route(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.delete_trip(db, trip_id, current_user)
