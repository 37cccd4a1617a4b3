from datetime import datetime
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from app.models.trips.trip_member import TripMember, TripRole
from app.models.trips.trip_invite import Invitation, InviteStatus
from app.schemas.trip.trip_member import TripMemberOut, TripMemberResponse
from app.services.users.directory import normalize_email


async def is_participant(db: AsyncSession, trip_id: int, user_id: int) -> bool:
    result = await db.execute(select(TripMember.id).where(
        TripMember.trip_id == trip_id,
        TripMember.user_id == user_id
    ))
    return result.scalar_one_or_none() is not None


async def stage_participant(
    db: AsyncSession,
    trip_id: int,
    user_id: int,
    role: TripRole = TripRole.MEMBER,
) -> bool:
    """Add a membership row to the session without committing.

    Returns False when the user is already a participant. The
    ``uq_trip_user`` constraint still rejects a concurrent insert at commit.
    """
    if await is_participant(db, trip_id, user_id):
        return False

    db.add(TripMember(
        trip_id=trip_id,
        user_id=user_id,
        role=role,
        joined_at=datetime.utcnow()
    ))
    return True


async def resolve_pending_invitations(db: AsyncSession, trip_id: int, email: str) -> int:
    """Mark pending invitations for ``email`` on a trip as accepted.

    Used when someone joins by code so no invitation stays pending for a
    participant. Not committed here.
    """
    result = await db.execute(
        update(Invitation)
        .where(
            Invitation.trip_id == trip_id,
            func.lower(Invitation.email) == normalize_email(email),
            Invitation.status == InviteStatus.pending,
        )
        .values(status=InviteStatus.accepted, updated_at=datetime.utcnow())
    )
    return result.rowcount or 0


async def get_membership(db: AsyncSession, trip_id: int, user_id: int):
    result = await db.execute(select(TripMember).where(
        TripMember.trip_id == trip_id,
        TripMember.user_id == user_id
    ))
    return result.scalar_one_or_none()


async def get_trip_members(db: AsyncSession, trip_id: int) -> TripMemberResponse:
    result = await db.execute(
        select(TripMember)
        .where(TripMember.trip_id == trip_id)
        .options(selectinload(TripMember.user))
        .order_by(TripMember.joined_at, TripMember.id)
    )
    members = result.scalars().all()
    return TripMemberResponse(
        trip_id=trip_id,
        members=[
            TripMemberOut(
                user_id=member.user_id,
                username=member.user.username,
                name=member.user.name,
                email=member.user.email,
                role=member.role.value if isinstance(member.role, TripRole) else member.role,
                joined_at=member.joined_at,
            )
            for member in members
        ]
    )
