"""Authentication business logic."""
import logging
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialsphere.core.exceptions import AuthenticationError, ConflictError
from socialsphere.core.security import create_access_token, get_password_hash, verify_password
from socialsphere.models.user import User
from socialsphere.schemas.user import UserCreate, UserResponse, UserSummary

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_identifier(db: AsyncSession, identifier: str) -> User | None:
    """Look a user up by email or username, case-insensitively."""
    identifier = identifier.strip().lower()
    result = await db.execute(
        select(User).where(or_(User.email == identifier, User.username == identifier))
    )
    return result.scalars().first()


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    username = data.username.lower()
    email = data.email.lower()
    existing = await db.execute(
        select(User.id).where(or_(User.email == email, User.username == username))
    )
    if existing.first() is not None:
        raise ConflictError("Email or username already in use")
    user = User(
        name=data.name,
        username=username,
        email=email,
        password_hash=get_password_hash(data.password),
        bio=data.bio or "",
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def authenticate_user(db: AsyncSession, identifier: str, password: str) -> User:
    user = await get_user_by_identifier(db, identifier)
    if not user or not verify_password(password, user.password_hash):
        logger.info("Login failed for identifier %s", identifier)
        raise AuthenticationError(INVALID_CREDENTIALS)
    return user


def user_to_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        name=user.name,
        username=user.username,
        profile_picture=user.profile_picture or "",
    )


def user_to_response(user: User, include_email: bool = False) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        username=user.username,
        email=user.email if include_email else None,
        bio=user.bio or "",
        profile_picture=user.profile_picture or "",
        followers_count=user.followers_count or 0,
        following_count=user.following_count or 0,
        created_at=user.created_at,
    )


def create_token_for_user(user: User) -> str:
    return create_access_token(user.id)
