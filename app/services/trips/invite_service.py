from datetime import datetime
from typing import List, Optional
from fastapi import BackgroundTasks
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from app.core.cache import RedisCache
from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.logger import logger
from app.models.trips.trip_invite import Invitation, InviteStatus
from app.models.user.user import User
from app.schemas.trip.invite import InvitationCreate, InvitationResponse
from app.services.dashboard.dashboard_service import invalidate_dashboards
from app.services.trips import email_invite
from app.services.trips.trip_member_service import stage_participant
from app.services.trips.trip_service import TripService
from app.services.users.directory import get_user_by_email, get_user_by_id, normalize_email


def to_response(
    invitation: Invitation,
    trip_name: Optional[str] = None,
    sender_name: Optional[str] = None,
) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        trip_id=invitation.trip_id,
        email=invitation.email,
        status=InviteStatus(invitation.status).value,
        sender_id=invitation.sender_id,
        decline_reason=invitation.decline_reason,
        created_at=invitation.created_at,
        updated_at=invitation.updated_at,
        trip_name=trip_name,
        sender_name=sender_name,
    )


class InvitationService:
    """Invitation lifecycle: pending -> accepted | declined, both terminal.

    State transitions are conditional updates on ``status = 'pending'`` so a
    concurrent accept/decline of the same invitation applies at most once.
    Emails go out through ``BackgroundTasks`` after the commit.
    """

    def __init__(self, cache: RedisCache):
        self.cache = cache
        self.trips = TripService(cache)

    @staticmethod
    def _notify(background_tasks: Optional[BackgroundTasks], func, *args) -> None:
        if background_tasks is None:
            func(*args)
        else:
            background_tasks.add_task(func, *args)

    async def get_invitation(self, db: AsyncSession, invitation_id: int) -> Invitation:
        result = await db.execute(
            select(Invitation)
            .where(Invitation.id == invitation_id)
            .execution_options(populate_existing=True)
        )
        invitation = result.scalar_one_or_none()
        if not invitation:
            raise NotFoundError(f"Invitation with ID {invitation_id} not found")
        return invitation

    async def _get_pending_for_caller(self, db: AsyncSession, invitation_id: int, caller_email: str) -> Invitation:
        invitation = await self.get_invitation(db, invitation_id)

        if invitation.email != normalize_email(caller_email):
            logger.warning(f"{caller_email} tried to process invitation {invitation_id} addressed to someone else")
            raise ForbiddenError("This invitation is not addressed to you")

        if invitation.status != InviteStatus.pending:
            raise ConflictError("This invitation has already been processed")

        return invitation

    async def _transition(
        self,
        db: AsyncSession,
        invitation_id: int,
        new_status: InviteStatus,
        reason: Optional[str] = None,
    ) -> bool:
        values = {"status": new_status, "updated_at": datetime.utcnow()}
        if reason:
            values["decline_reason"] = reason
        result = await db.execute(
            update(Invitation)
            .where(Invitation.id == invitation_id, Invitation.status == InviteStatus.pending)
            .values(**values)
        )
        return result.rowcount == 1

    async def create_invitation(
        self,
        db: AsyncSession,
        trip_id: int,
        invite_data: InvitationCreate,
        current_user: User,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> InvitationResponse:
        email = normalize_email(invite_data.email)
        logger.info(f"Creating invitation for trip {trip_id} to {email} from user {current_user.id}")

        trip = await self.trips.get_by_id(db, trip_id)
        participant_ids = trip.participant_ids()

        if current_user.id not in participant_ids:
            logger.warning(f"User {current_user.id} is not a participant in trip {trip_id}")
            raise ForbiddenError("Only trip participants can send invitations")

        if email == normalize_email(current_user.email):
            logger.warning(f"User {current_user.id} tried to invite themselves to trip {trip_id}")
            raise ConflictError("You cannot invite yourself to the trip")

        existing = await db.execute(
            select(Invitation.id).where(
                Invitation.trip_id == trip_id,
                Invitation.email == email,
                Invitation.status == InviteStatus.pending,
            )
        )
        if existing.scalar_one_or_none() is not None:
            logger.warning(f"{email} already has a pending invitation for trip {trip_id}")
            raise ConflictError("This email has already been invited to the trip")

        invited_user = await get_user_by_email(db, email)
        if invited_user and invited_user.id in participant_ids:
            logger.warning(f"{email} is already a participant in trip {trip_id}")
            raise ConflictError("This user is already a participant in the trip")

        invitation = Invitation(
            trip_id=trip_id,
            email=email,
            status=InviteStatus.pending,
            sender_id=current_user.id,
        )
        db.add(invitation)
        try:
            await db.commit()
        except IntegrityError:
            # Lost the race against a concurrent invite for the same email
            await db.rollback()
            raise ConflictError("This email has already been invited to the trip")

        logger.info(f"Invitation {invitation.id} created for trip {trip_id}")
        if invited_user:
            await invalidate_dashboards(self.cache, [invited_user.id])

        self._notify(
            background_tasks,
            email_invite.send_invitation,
            email,
            current_user.display_name,
            trip.name,
            trip.start_date,
            trip.end_date,
        )
        return to_response(invitation, trip_name=trip.name, sender_name=current_user.display_name)

    async def accept_invitation(
        self,
        db: AsyncSession,
        invitation_id: int,
        caller_email: str,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> None:
        invitation = await self._get_pending_for_caller(db, invitation_id, caller_email)
        trip_id = invitation.trip_id

        if not await self._transition(db, invitation_id, InviteStatus.accepted):
            await db.rollback()
            raise ConflictError("This invitation has already been processed")

        user = await get_user_by_email(db, caller_email)
        if not user:
            await db.commit()
            logger.warning(f"Invitation {invitation_id} accepted but no user is registered as {caller_email}")
            return
        user_id, user_name = user.id, user.display_name

        # Status and membership are committed together
        await stage_participant(db, trip_id, user_id)
        try:
            await db.commit()
        except IntegrityError:
            # Membership landed concurrently (e.g. join by code); keep the transition
            await db.rollback()
            if not await self._transition(db, invitation_id, InviteStatus.accepted):
                await db.rollback()
                raise ConflictError("This invitation has already been processed")
            await db.commit()

        logger.info(f"User {user_id} accepted invitation {invitation_id} to trip {trip_id}")

        trip = await self.trips.get_by_id(db, trip_id)
        await invalidate_dashboards(self.cache, trip.participant_ids())

        recipients = [p.email for p in trip.participants if p.id != user_id]
        if recipients:
            self._notify(
                background_tasks,
                email_invite.send_accepted,
                recipients,
                user_name,
                trip.name,
                trip.id,
            )

    async def decline_invitation(
        self,
        db: AsyncSession,
        invitation_id: int,
        caller_email: str,
        reason: Optional[str] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> None:
        invitation = await self._get_pending_for_caller(db, invitation_id, caller_email)
        trip_id = invitation.trip_id
        reason = reason.strip() if reason else None

        if not await self._transition(db, invitation_id, InviteStatus.declined, reason=reason):
            await db.rollback()
            raise ConflictError("This invitation has already been processed")
        await db.commit()

        logger.info(
            f"{caller_email} declined invitation {invitation_id}"
            f"{f' with reason: {reason}' if reason else ''}"
        )

        user = await get_user_by_email(db, caller_email)
        if not user:
            logger.warning(f"No user registered as {caller_email}; skipping decline notification")
            return
        await invalidate_dashboards(self.cache, [user.id])

        trip = await self.trips.get_by_id(db, trip_id)
        recipients = [p.email for p in trip.participants]
        if recipients:
            self._notify(
                background_tasks,
                email_invite.send_declined,
                recipients,
                user.display_name,
                trip.name,
                trip.id,
                reason,
            )

    async def list_for_user(self, db: AsyncSession, user_id: int) -> List[InvitationResponse]:
        user = await get_user_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")

        result = await db.execute(
            select(Invitation)
            .options(selectinload(Invitation.trip), selectinload(Invitation.sender))
            .where(func.lower(Invitation.email) == normalize_email(user.email))
            .order_by(Invitation.created_at.desc(), Invitation.id.desc())
        )
        return [
            to_response(
                invitation,
                trip_name=invitation.trip.name if invitation.trip else None,
                sender_name=invitation.sender.display_name if invitation.sender else None,
            )
            for invitation in result.scalars().all()
        ]

    async def list_for_trip(self, db: AsyncSession, trip_id: int, caller_id: int) -> List[InvitationResponse]:
        trip = await self.trips.get_by_id(db, trip_id)
        if trip.creator_id != caller_id:
            raise ForbiddenError("Only the trip creator can view invitations")

        result = await db.execute(
            select(Invitation)
            .options(selectinload(Invitation.sender))
            .where(Invitation.trip_id == trip_id)
            .order_by(Invitation.created_at.desc(), Invitation.id.desc())
        )
        return [
            to_response(
                invitation,
                trip_name=trip.name,
                sender_name=invitation.sender.display_name if invitation.sender else None,
            )
            for invitation in result.scalars().all()
        ]
