"""User profile endpoints."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from socialsphere.api.deps import StorageBackend, get_current_user, get_current_user_optional, get_db, get_storage
from socialsphere.core.config import settings
from socialsphere.core.exceptions import NotFoundError
from socialsphere.models.user import User
from socialsphere.schemas.user import (
    AvatarUploadResponse,
    FollowResult,
    UserCard,
    UserProfile,
    UserResponse,
    UserUpdate,
)
from socialsphere.services import user_service
from socialsphere.services.auth_service import get_user_by_id, user_to_response
from socialsphere.services.storage_service import AVATARS, stored_category, store_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=list[UserCard])
async def search_users(
    q: str = Query(..., min_length=1, max_length=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Case-insensitive match on name or username."""
    return await user_service.search_users(db, q)


@router.get("/explore", response_model=list[UserCard])
async def explore_users(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Newest users the current user is not following yet."""
    return await user_service.explore_users(db, current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    user = await user_service.update_profile(db, current_user, data, storage)
    await db.commit()
    return user_to_response(user, include_email=True)


@router.post("/upload-profile-picture", response_model=AvatarUploadResponse)
async def upload_profile_picture(
    avatar: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    """Upload avatar image. Replaces (and removes) a previously uploaded one."""
    path = await store_upload(storage, avatar, AVATARS, settings.AVATAR_MAX_MB)
    old_path = current_user.profile_picture
    current_user.profile_picture = path
    await db.commit()
    if old_path and old_path != path and stored_category(old_path) == AVATARS:
        storage.delete(old_path)
    logger.info("Profile picture updated for %s", current_user.username)
    return AvatarUploadResponse(profile_picture=path)


@router.get("/id/{user_id}", response_model=UserResponse)
async def get_user_by_uuid(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user_to_response(user, include_email=user.id == current_user.id)


@router.post("/{user_id}/follow", response_model=FollowResult)
async def follow_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Follow the user, or unfollow if already following."""
    result = await user_service.toggle_follow(db, current_user, user_id)
    await db.commit()
    return result


@router.get("/{username}", response_model=UserProfile)
async def get_profile(
    username: str,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    viewer_id = current_user.id if current_user else None
    return await user_service.get_profile(db, username, viewer_id)
