from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from app.core.cache import RedisCache
from app.core.errors import ForbiddenError, NotFoundError
from app.core.logger import logger
from app.models.activities.activity import Activity
from app.models.user.user import User
from app.schemas.activities.activity import ActivityCreate, ActivityUpdate
from app.services.dashboard.dashboard_service import invalidate_dashboards
from app.services.trips.trip_service import TripService


REQUIRED_FIELDS = ("title", "date", "category")


class ActivityService:
    def __init__(self, cache: RedisCache):
        self.cache = cache
        self.trips = TripService(cache)

    @staticmethod
    def _activity_query():
        return (
            select(Activity)
            .options(
                selectinload(Activity.votes),
                selectinload(Activity.creator),
            )
            .execution_options(populate_existing=True)
        )

    async def invalidate_trip_dashboards(self, db: AsyncSession, trip_id: int) -> None:
        trip = await self.trips.get_by_id(db, trip_id)
        await invalidate_dashboards(self.cache, trip.participant_ids())

    async def list_activities(self, db: AsyncSession, trip_id: int, user: User) -> List[Activity]:
        await self.trips.get_trip_for_participant(db, trip_id, user)
        result = await db.execute(
            self._activity_query()
            .where(Activity.trip_id == trip_id)
            .order_by(Activity.date, Activity.time, Activity.id)
        )
        return result.scalars().all()

    async def get_activity(self, db: AsyncSession, trip_id: int, activity_id: int, user: User) -> Activity:
        await self.trips.get_trip_for_participant(db, trip_id, user)
        result = await db.execute(
            self._activity_query().where(Activity.id == activity_id, Activity.trip_id == trip_id)
        )
        activity = result.scalar_one_or_none()
        if not activity:
            raise NotFoundError(f"Activity with ID {activity_id} not found")
        return activity

    async def create_activity(self, db: AsyncSession, trip_id: int, data: ActivityCreate, user: User) -> Activity:
        trip = await self.trips.get_trip_for_participant(db, trip_id, user)

        payload = data.model_dump()
        payload["category"] = data.category.value
        activity = Activity(**payload, trip_id=trip_id, creator_id=user.id)
        db.add(activity)
        await db.commit()

        await invalidate_dashboards(self.cache, trip.participant_ids())
        logger.info(f"Activity {activity.id} created in trip {trip_id} by user {user.id}")
        return await self.get_activity(db, trip_id, activity.id, user)

    async def update_activity(
        self,
        db: AsyncSession,
        trip_id: int,
        activity_id: int,
        data: ActivityUpdate,
        user: User,
    ) -> Activity:
        activity = await self.get_activity(db, trip_id, activity_id, user)
        if activity.creator_id != user.id:
            raise ForbiddenError("Only the activity creator can update this activity")

        update_data = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key not in REQUIRED_FIELDS
        }
        if "category" in update_data:
            update_data["category"] = data.category.value
        for key, value in update_data.items():
            setattr(activity, key, value)

        await db.commit()
        await self.invalidate_trip_dashboards(db, trip_id)
        logger.info(f"Activity {activity_id} updated by user {user.id}")
        return await self.get_activity(db, trip_id, activity_id, user)

    async def delete_activity(self, db: AsyncSession, trip_id: int, activity_id: int, user: User) -> None:
        activity = await self.get_activity(db, trip_id, activity_id, user)
        if activity.creator_id != user.id:
            raise ForbiddenError("Only the activity creator can delete this activity")

        await db.delete(activity)
        await db.commit()

        await self.invalidate_trip_dashboards(db, trip_id)
        logger.info(f"Activity {activity_id} deleted by user {user.id}")
