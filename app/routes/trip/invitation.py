from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from app.schemas.trip.invite import InvitationCreate, InvitationDecline, InvitationResponse
from app.services.trips.invite_service import InvitationService
from app.dependencies.auth import get_current_user
from app.models.user.user import User
from app.core.database import get_db
from app.core.redis_lifecyle import get_cache

router = APIRouter(tags=["Invitations"])


async def get_invitation_service(
    cache=Depends(get_cache)
) -> InvitationService:
    return InvitationService(cache)


@router.get("/invitations", response_model=List[InvitationResponse])
async def view_my_invitations(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    invitation_service: InvitationService = Depends(get_invitation_service)
):
    return await invitation_service.list_for_user(db, current_user.id)


@router.get("/trips/{trip_id}/invitations", response_model=List[InvitationResponse])
async def view_trip_invitations(
    trip_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    invitation_service: InvitationService = Depends(get_invitation_service)
):
    return await invitation_service.list_for_trip(db, trip_id, current_user.id)


@router.post(
    "/trips/{trip_id}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_invitation(
    trip_id: int,
    invite_data: InvitationCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    invitation_service: InvitationService = Depends(get_invitation_service)
):
    return await invitation_service.create_invitation(
        db, trip_id, invite_data, current_user, background_tasks
    )


@router.put("/invitations/{invitation_id}/accept")
async def accept_invitation(
    invitation_id: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    invitation_service: InvitationService = Depends(get_invitation_service)
):
    await invitation_service.accept_invitation(
        db, invitation_id, current_user.email, background_tasks
    )
    return {"detail": "Invitation accepted"}


@router.put("/invitations/{invitation_id}/decline")
async def decline_invitation(
    invitation_id: int,
    background_tasks: BackgroundTasks,
    payload: Optional[InvitationDecline] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    invitation_service: InvitationService = Depends(get_invitation_service)
):
    await invitation_service.decline_invitation(
        db,
        invitation_id,
        current_user.email,
        reason=payload.reason if payload else None,
        background_tasks=background_tasks,
    )
    return {"detail": "Invitation declined"}
