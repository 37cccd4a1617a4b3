from uuid import uuid4
from typing import List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from app.core.cache import RedisCache
from app.core.config import settings
from app.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from app.core.logger import logger
from app.models.trips.trip_member import TripMember, TripRole
from app.models.trips.trip_model import Trip
from app.models.user.user import User
from app.schemas.trip.trip_member import TripMemberResponse
from app.schemas.trip.trip_schema import TripCreate, TripUpdate
from app.services.dashboard.dashboard_service import invalidate_dashboards
from app.services.trips.trip_member_service import (
    get_membership,
    get_trip_members,
    is_participant,
    resolve_pending_invitations,
    stage_participant,
)

CODE_ATTEMPTS = 5
REQUIRED_FIELDS = ("name", "start_date", "end_date")


def generate_trip_code(length: int = None) -> str:
    length = length or settings.TRIP_CODE_LENGTH
    return uuid4().hex.upper()[:length]


class TripService:
    def __init__(self, cache: RedisCache):
        self.cache = cache

    @staticmethod
    def _trip_query():
        return (
            select(Trip)
            .options(selectinload(Trip.participants))
            .execution_options(populate_existing=True)
        )

    async def _unused_trip_code(self, db: AsyncSession) -> str:
        for _ in range(CODE_ATTEMPTS):
            code = generate_trip_code()
            result = await db.execute(select(Trip.id).where(Trip.trip_code == code))
            if result.scalar_one_or_none() is None:
                return code
        raise ConflictError("Could not allocate a join code, please retry")

    async def get_by_id(self, db: AsyncSession, trip_id: int) -> Trip:
        result = await db.execute(self._trip_query().where(Trip.id == trip_id))
        trip = result.scalar_one_or_none()
        if not trip:
            logger.warning(f"Trip not found: ID {trip_id}")
            raise NotFoundError(f"Trip with ID {trip_id} not found")
        return trip

    async def get_by_code(self, db: AsyncSession, trip_code: str) -> Trip:
        result = await db.execute(self._trip_query().where(Trip.trip_code == trip_code.strip().upper()))
        trip = result.scalar_one_or_none()
        if not trip:
            logger.warning(f"Trip with code {trip_code} not found")
            raise NotFoundError(f"Trip with code {trip_code} not found")
        return trip

    async def is_participant(self, db: AsyncSession, trip_id: int, user_id: int) -> bool:
        return await is_participant(db, trip_id, user_id)

    async def get_trip_for_participant(self, db: AsyncSession, trip_id: int, user: User) -> Trip:
        trip = await self.get_by_id(db, trip_id)
        if user.id not in trip.participant_ids():
            logger.warning(f"User {user.id} denied access to trip {trip_id}")
            raise ForbiddenError("You do not have access to this trip")
        return trip

    async def list_for_user(self, db: AsyncSession, user_id: int) -> List[Trip]:
        result = await db.execute(
            self._trip_query()
            .join(TripMember, TripMember.trip_id == Trip.id)
            .where(TripMember.user_id == user_id)
            .order_by(Trip.start_date, Trip.id)
        )
        trips = result.scalars().unique().all()
        logger.info(f"Retrieved {len(trips)} trips for user {user_id}")
        return trips

    async def create_trip(self, db: AsyncSession, trip_data: TripCreate, user: User) -> Trip:
        trip_code = await self._unused_trip_code(db)
        new_trip = Trip(**trip_data.model_dump(), creator_id=user.id, trip_code=trip_code)
        db.add(new_trip)
        await db.flush()

        # The creator is a permanent participant
        db.add(TripMember(trip_id=new_trip.id, user_id=user.id, role=TripRole.OWNER))

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Could not allocate a join code, please retry")

        await invalidate_dashboards(self.cache, [user.id])
        logger.info(f"Trip {new_trip.id} created by user {user.id} with trip_code {trip_code}")
        return await self.get_by_id(db, new_trip.id)

    async def update_trip(self, db: AsyncSession, trip_id: int, trip_data: TripUpdate, user: User) -> Trip:
        trip = await self.get_by_id(db, trip_id)
        if trip.creator_id != user.id:
            logger.warning(f"Unauthorized update attempt: trip {trip_id}, user {user.id}")
            raise ForbiddenError("Only the trip creator can update this trip")

        # null on a required column means "leave as is"
        update_data = {
            key: value
            for key, value in trip_data.model_dump(exclude_unset=True).items()
            if value is not None or key not in REQUIRED_FIELDS
        }
        start = update_data.get("start_date") or trip.start_date
        end = update_data.get("end_date") or trip.end_date
        if start > end:
            raise BadRequestError("start_date must be on or before end_date")
        if "name" in update_data and not update_data["name"]:
            raise BadRequestError("Trip name cannot be empty")

        for key, value in update_data.items():
            setattr(trip, key, value)

        await db.commit()
        await invalidate_dashboards(self.cache, trip.participant_ids())
        logger.info(f"Trip {trip_id} updated by user {user.id}")
        return await self.get_by_id(db, trip_id)

    async def delete_trip(self, db: AsyncSession, trip_id: int, user: User) -> dict:
        trip = await self.get_by_id(db, trip_id)
        if trip.creator_id != user.id:
            logger.warning(f"Unauthorized delete attempt: trip {trip_id}, user {user.id}")
            raise ForbiddenError("Only the trip creator can delete this trip")

        participant_ids = trip.participant_ids()
        # Cascades to memberships, invitations, activities and votes
        await db.delete(trip)
        await db.commit()

        await invalidate_dashboards(self.cache, participant_ids)
        logger.info(f"Trip {trip_id} deleted by user {user.id}")
        return {"detail": "Trip deleted successfully"}

    async def add_participant(self, db: AsyncSession, trip_id: int, user: User) -> Trip:
        """Idempotently add ``user`` to the trip's participant set."""
        trip = await self.get_by_id(db, trip_id)

        if await stage_participant(db, trip.id, user.id):
            resolved = await resolve_pending_invitations(db, trip.id, user.email)
            try:
                await db.commit()
            except IntegrityError:
                # A concurrent request added the same membership first
                await db.rollback()
                logger.info(f"User {user.id} was concurrently added to trip {trip_id}")
            else:
                await invalidate_dashboards(self.cache, trip.participant_ids() | {user.id})
                logger.info(
                    f"User {user.id} added to trip {trip_id}"
                    f"{f' ({resolved} pending invitation(s) resolved)' if resolved else ''}"
                )

        return await self.get_by_id(db, trip_id)

    async def join_by_code(self, db: AsyncSession, trip_code: str, user: User) -> Trip:
        trip = await self.get_by_code(db, trip_code)
        return await self.add_participant(db, trip.id, user)

    async def list_members(self, db: AsyncSession, trip_id: int, user: User) -> TripMemberResponse:
        trip = await self.get_trip_for_participant(db, trip_id, user)
        return await get_trip_members(db, trip.id)

    async def remove_participant(self, db: AsyncSession, trip_id: int, user_id: int, current_user: User) -> None:
        trip = await self.get_by_id(db, trip_id)

        # Only the trip creator or the participant themselves can remove a participant
        if trip.creator_id != current_user.id and user_id != current_user.id:
            raise ForbiddenError("You do not have permission to remove this participant")

        if user_id == trip.creator_id:
            raise ForbiddenError("Cannot remove the trip creator")

        member = await get_membership(db, trip_id, user_id)
        if not member:
            raise NotFoundError("Participant not found")

        participant_ids = trip.participant_ids()
        await db.delete(member)
        await db.commit()

        await invalidate_dashboards(self.cache, participant_ids)
        logger.info(f"User {user_id} removed from trip {trip_id} by user {current_user.id}")
