"""User profile, follow graph and discovery logic."""
import logging
from uuid import UUID

from sqlalchemy import delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from socialsphere.core.config import settings
from socialsphere.core.exceptions import NotFoundError, ValidationError
from socialsphere.models.engagement import Follow
from socialsphere.models.post import Post
from socialsphere.models.user import User
from socialsphere.schemas.user import FollowResult, UserCard, UserProfile, UserUpdate
from socialsphere.services.auth_service import user_to_summary
from socialsphere.services.storage_service import StorageBackend

logger = logging.getLogger(__name__)


async def _followers_of(db: AsyncSession, user_id: UUID) -> list[User]:
    result = await db.execute(
        select(User)
        .join(Follow, Follow.follower_id == User.id)
        .where(Follow.following_id == user_id)
        .order_by(desc(Follow.created_at))
    )
    return list(result.scalars().all())


async def _followed_by(db: AsyncSession, user_id: UUID) -> list[User]:
    result = await db.execute(
        select(User)
        .join(Follow, Follow.following_id == User.id)
        .where(Follow.follower_id == user_id)
        .order_by(desc(Follow.created_at))
    )
    return list(result.scalars().all())


async def get_profile(db: AsyncSession, username: str, viewer_id: UUID | None = None) -> UserProfile:
    result = await db.execute(select(User).where(User.username == username.lower()))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    followers = await _followers_of(db, user.id)
    following = await _followed_by(db, user.id)
    posts_count = await db.scalar(select(func.count(Post.id)).where(Post.user_id == user.id))
    return UserProfile(
        id=user.id,
        name=user.name,
        username=user.username,
        email=user.email if viewer_id == user.id else None,
        bio=user.bio or "",
        profile_picture=user.profile_picture or "",
        followers_count=len(followers),
        following_count=len(following),
        created_at=user.created_at,
        followers=[user_to_summary(u) for u in followers],
        following=[user_to_summary(u) for u in following],
        posts_count=posts_count or 0,
        is_following=any(u.id == viewer_id for u in followers) if viewer_id else False,
    )


async def update_profile(db: AsyncSession, user: User, data: UserUpdate, storage: StorageBackend) -> User:
    if data.name is not None:
        name = data.name.strip()
        if not name:
            raise ValidationError("name: Name cannot be empty")
        user.name = name
    if data.bio is not None:
        user.bio = data.bio.strip()
    if data.profile_picture is not None:
        picture = data.profile_picture.strip()
        # Stored files only arrive through the upload endpoint
        if picture != user.profile_picture and storage.is_local(picture):
            raise ValidationError("profilePicture: Use the upload endpoint for stored images")
        user.profile_picture = picture
    await db.flush()
    await db.refresh(user)
    return user


async def toggle_follow(db: AsyncSession, current_user: User, target_id: UUID) -> FollowResult:
    """Follow target if not yet followed, otherwise unfollow.

    The edge row and both users' counters change in one transaction; counters
    are adjusted in SQL so concurrent toggles on the same user do not lose
    updates.
    """
    if target_id == current_user.id:
        raise ValidationError("You cannot follow yourself")
    target = await db.get(User, target_id)
    if not target:
        raise NotFoundError("User not found")

    removed = await db.execute(
        delete(Follow).where(
            Follow.follower_id == current_user.id,
            Follow.following_id == target_id,
        )
    )
    if removed.rowcount:
        step = -1
    else:
        db.add(Follow(follower_id=current_user.id, following_id=target_id))
        await db.flush()
        step = 1

    await db.execute(
        update(User).where(User.id == target_id).values(followers_count=User.followers_count + step)
    )
    await db.execute(
        update(User).where(User.id == current_user.id).values(following_count=User.following_count + step)
    )
    await db.flush()
    await db.refresh(target)
    await db.refresh(current_user)
    logger.info("%s %s %s", current_user.username, "followed" if step > 0 else "unfollowed", target.username)
    return FollowResult(
        following=step > 0,
        follower_count=target.followers_count,
        following_count=current_user.following_count,
    )


async def search_users(db: AsyncSession, query: str, limit: int | None = None) -> list[UserCard]:
    query = query.strip()
    if not query:
        raise ValidationError("Search query is required")
    result = await db.execute(
        select(User)
        .where(
            or_(
                User.name.icontains(query, autoescape=True),
                User.username.icontains(query, autoescape=True),
            )
        )
        .order_by(User.username)
        .limit(limit or settings.SEARCH_LIMIT)
    )
    return [UserCard.model_validate(u) for u in result.scalars().all()]


async def explore_users(db: AsyncSession, current_user: User, limit: int | None = None) -> list[UserCard]:
    """Newest users the current user does not follow yet, excluding themselves."""
    following = select(Follow.following_id).where(Follow.follower_id == current_user.id)
    result = await db.execute(
        select(User)
        .where(User.id != current_user.id, User.id.not_in(following))
        .order_by(desc(User.created_at))
        .limit(limit or settings.EXPLORE_LIMIT)
    )
    return [UserCard.model_validate(u) for u in result.scalars().all()]

