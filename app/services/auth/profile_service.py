from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from app.models.user.user import User
from app.schemas.user.user import UserUpdate
from app.core.errors import BadRequestError, ConflictError, NotFoundError
from app.core.security import hash_password
from app.services.auth.auth import validate_password
from app.services.users.directory import get_user_by_email, get_user_by_id, normalize_email


REQUIRED_FIELDS = ("username", "email", "password")


class ProfileService:
    @staticmethod
    async def get_user_by_id(user_id: int, db: AsyncSession) -> User:
        user = await get_user_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def update_user_profile(user_id: int, update_data: UserUpdate, db: AsyncSession) -> User:
        user = await ProfileService.get_user_by_id(user_id, db)

        update_fields = {
            key: value
            for key, value in update_data.model_dump(exclude_unset=True).items()
            if value is not None or key not in REQUIRED_FIELDS
        }

        if not update_fields:
            raise BadRequestError("No fields to update.")

        if update_fields.get("email"):
            update_fields["email"] = normalize_email(update_fields["email"])
            other = await get_user_by_email(db, update_fields["email"])
            if other and other.id != user.id:
                raise ConflictError("Email already registered")

        if update_fields.get("username"):
            result = await db.execute(
                select(User).where(User.username == update_fields["username"], User.id != user.id)
            )
            if result.scalar():
                raise ConflictError("Username already taken")

        if 'password' in update_fields:
            validate_password(update_fields['password'])
            update_fields['hashed_password'] = hash_password(update_fields.pop('password'))

        for key, value in update_fields.items():
            setattr(user, key, value)

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Email or username already exists")
        await db.refresh(user)
        return user
