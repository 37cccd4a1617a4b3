from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from app.models.user.user import User
from app.schemas.user.user import UserCreate
from app.core.security import hash_password, verify_password, create_access_token
from app.core.config import settings
from app.core.errors import BadRequestError, ConflictError
from app.core.logger import logger
from app.services.users.directory import get_user_by_email, normalize_email


def validate_password(password: str) -> None:
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise BadRequestError(
            f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long"
        )


async def register_user(user_data: UserCreate, db: AsyncSession) -> User:
    email = normalize_email(user_data.email)
    if await get_user_by_email(db, email):
        raise ConflictError("Email already registered")

    # Check for duplicate username
    result = await db.execute(select(User).where(User.username == user_data.username))
    if result.scalar():
        raise ConflictError("Username already taken")

    validate_password(user_data.password)

    new_user = User(
        email=email,
        username=user_data.username,
        name=user_data.name,
        hashed_password=hash_password(user_data.password),
    )

    db.add(new_user)
    try:
        await db.commit()
        await db.refresh(new_user)
    except IntegrityError:
        # Fallback in case of race condition between the two queries above
        await db.rollback()
        raise ConflictError("Email or username already exists")

    logger.info(f"User {new_user.id} registered")
    return new_user


async def login_user(email: str, password: str, db: AsyncSession) -> dict:
    user = await get_user_by_email(db, email)

    if not user or not verify_password(password, user.hashed_password):
        logger.warning(f"Failed login attempt for {email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = create_access_token(data={"sub": str(user.id)})
    return {"access_token": token, "token_type": "bearer"}
