from datetime import date
from typing import Iterable, Optional
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from app.core.cache import RedisCache
from app.core.config import settings
from app.core.logger import logger
from app.models.activities.activity import Activity
from app.models.trips.trip_invite import Invitation, InviteStatus
from app.models.trips.trip_member import TripMember
from app.models.trips.trip_model import Trip
from app.models.user.user import User
from app.schemas.dashboard.dashboard import (
    DashboardActivity,
    DashboardResponse,
    DashboardStats,
    DashboardTrip,
)
from app.services.users.directory import normalize_email
from app.utils.dates import ONGOING, PAST, UPCOMING, trip_status

RECENT_TRIPS_LIMIT = 6
UPCOMING_ACTIVITIES_LIMIT = 10


def dashboard_cache_key(user_id: int) -> str:
    return RedisCache.build_key("dashboard", "user", user_id)


async def invalidate_dashboards(cache: RedisCache, user_ids: Iterable[int]) -> None:
    keys = [dashboard_cache_key(user_id) for user_id in set(user_ids) if user_id is not None]
    if keys:
        await cache.delete(*keys)


class DashboardService:
    def __init__(self, cache: RedisCache):
        self.cache = cache

    async def get_dashboard(self, db: AsyncSession, user: User, today: Optional[date] = None) -> DashboardResponse:
        cache_key = dashboard_cache_key(user.id)
        cached = await self.cache.get(cache_key)
        if cached:
            logger.info(f"Dashboard for user {user.id} served from cache")
            return DashboardResponse.model_validate(cached)

        today = today or date.today()

        result = await db.execute(
            select(Trip)
            .join(TripMember, TripMember.trip_id == Trip.id)
            .where(TripMember.user_id == user.id)
            .options(selectinload(Trip.participants))
        )
        trips = result.scalars().unique().all()
        trips_by_id = {trip.id: trip for trip in trips}

        activities = []
        if trips_by_id:
            result = await db.execute(
                select(Activity)
                .where(Activity.trip_id.in_(list(trips_by_id)))
                .options(selectinload(Activity.votes))
            )
            activities = result.scalars().all()

        pending = await db.scalar(
            select(func.count(Invitation.id)).where(
                func.lower(Invitation.email) == normalize_email(user.email),
                Invitation.status == InviteStatus.pending,
            )
        )

        statuses = {trip.id: trip_status(trip.start_date, trip.end_date, today) for trip in trips}
        counts = {UPCOMING: 0, ONGOING: 0, PAST: 0}
        for value in statuses.values():
            counts[value] += 1

        recent = sorted(trips, key=lambda t: t.start_date, reverse=True)[:RECENT_TRIPS_LIMIT]
        upcoming_activities = sorted(
            (a for a in activities if a.date >= today),
            key=lambda a: (a.date, a.time or ""),
        )[:UPCOMING_ACTIVITIES_LIMIT]

        response = DashboardResponse(
            stats=DashboardStats(
                total_trips=len(trips),
                upcoming_trips=counts[UPCOMING],
                ongoing_trips=counts[ONGOING],
                past_trips=counts[PAST],
                total_activities=len(activities),
                pending_invitations=pending or 0,
            ),
            recent_trips=[
                DashboardTrip(
                    id=trip.id,
                    name=trip.name,
                    start_date=trip.start_date,
                    end_date=trip.end_date,
                    status=statuses[trip.id],
                    participant_count=len(trip.participants),
                )
                for trip in recent
            ],
            upcoming_activities=[
                DashboardActivity(
                    id=activity.id,
                    trip_id=activity.trip_id,
                    trip_name=trips_by_id[activity.trip_id].name,
                    title=activity.title,
                    date=activity.date,
                    time=activity.time,
                    category=activity.category,
                    upvotes=activity.upvotes,
                    downvotes=activity.downvotes,
                )
                for activity in upcoming_activities
            ],
        )

        await self.cache.set(
            cache_key,
            response.model_dump(mode="json"),
            expire=settings.DASHBOARD_CACHE_TTL_SECONDS,
        )
        logger.info(f"Dashboard for user {user.id} built from database")
        return response
