from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies.auth import get_current_user
from app.core.database import get_db
from app.schemas.trip.trip_member import TripMemberResponse
from app.services.trips.trip_service import TripService
from app.routes.trip.trip_routes import get_trip_service
from app.models.user.user import User

router = APIRouter(prefix="/trips/{trip_id}/participants", tags=["Trip Participants"])


@router.get("", response_model=TripMemberResponse)
async def list_trip_participants(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    return await trip_service.list_members(db, trip_id, current_user)


@router.delete("/{user_id}")
async def remove_trip_participant(
    trip_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    trip_service: TripService = Depends(get_trip_service)
):
    await trip_service.remove_participant(db, trip_id, user_id, current_user)
    return {"detail": "Participant removed"}
