from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.core.errors import NotFoundError
from app.core.logger import logger
from app.models.activities.activity import Activity
from app.models.activities.vote import Vote
from app.models.user.user import User
from app.schemas.activities.activity import VoteCreate
from app.services.activities.activity_service import ActivityService


async def _get_vote(db: AsyncSession, activity_id: int, user_id: int):
    result = await db.execute(
        select(Vote).where(Vote.activity_id == activity_id, Vote.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def cast_vote(
    db: AsyncSession,
    activity_service: ActivityService,
    trip_id: int,
    activity_id: int,
    vote_data: VoteCreate,
    user: User,
) -> Activity:
    """Create the user's vote or flip an existing one."""
    await activity_service.get_activity(db, trip_id, activity_id, user)
    user_id = user.id

    vote = await _get_vote(db, activity_id, user_id)
    if vote:
        vote.is_upvote = vote_data.is_upvote
    else:
        db.add(Vote(activity_id=activity_id, user_id=user_id, is_upvote=vote_data.is_upvote))

    try:
        await db.commit()
    except IntegrityError:
        # Concurrent first vote from the same user; apply ours on top of it
        await db.rollback()
        await db.refresh(user)
        vote = await _get_vote(db, activity_id, user_id)
        vote.is_upvote = vote_data.is_upvote
        await db.commit()

    await activity_service.invalidate_trip_dashboards(db, trip_id)
    logger.info(f"User {user_id} voted {'up' if vote_data.is_upvote else 'down'} on activity {activity_id}")
    return await activity_service.get_activity(db, trip_id, activity_id, user)


async def remove_vote(
    db: AsyncSession,
    activity_service: ActivityService,
    trip_id: int,
    activity_id: int,
    user: User,
) -> Activity:
    await activity_service.get_activity(db, trip_id, activity_id, user)

    vote = await _get_vote(db, activity_id, user.id)
    if not vote:
        raise NotFoundError("Vote not found")

    await db.delete(vote)
    await db.commit()
    await activity_service.invalidate_trip_dashboards(db, trip_id)
    logger.info(f"User {user.id} removed vote on activity {activity_id}")
    return await activity_service.get_activity(db, trip_id, activity_id, user)
