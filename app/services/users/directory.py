from typing import List, Optional
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.user.user import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(func.lower(User.email) == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession, exclude_user_id: Optional[int] = None, limit: int = 30) -> List[User]:
    stmt = select(User).order_by(User.username).limit(limit)
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    result = await db.execute(stmt)
    return result.scalars().all()


async def search_users(
    db: AsyncSession,
    query: str,
    exclude_user_id: Optional[int] = None,
    limit: int = 30,
) -> List[User]:
    pattern = f"%{query.strip().lower()}%"
    stmt = (
        select(User)
        .where(
            or_(
                func.lower(User.username).like(pattern),
                func.lower(User.email).like(pattern),
                func.lower(User.name).like(pattern),
            )
        )
        .order_by(User.username)
        .limit(limit)
    )
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    result = await db.execute(stmt)
    return result.scalars().all()
