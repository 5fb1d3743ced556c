"""Posts CRUD, feed, likes and comment threads."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from socialsphere.api.deps import (
    Pagination,
    StorageBackend,
    get_current_user,
    get_current_user_optional,
    get_db,
    get_storage,
)
from socialsphere.core.config import settings
from socialsphere.models.user import User
from socialsphere.schemas.base import LikeResult, MessageResponse
from socialsphere.schemas.comment import CommentCreate, CommentDeleted, CommentPage, CommentResponse
from socialsphere.schemas.post import PostCreate, PostPage, PostResponse, PostUpdate
from socialsphere.services import comment_service, feed_service
from socialsphere.services.storage_service import POSTS, store_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    content: str = Form(...),
    image: UploadFile | None = File(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    data = PostCreate(content=content)
    image_url = None
    if image is not None and image.filename:
        image_url = await store_upload(storage, image, POSTS, settings.POST_IMAGE_MAX_MB)
    post = await feed_service.create_post(db, current_user, data, image_url)
    await db.commit()
    return feed_service.post_to_response(post)


@router.get("", response_model=PostPage)
async def list_feed(
    pagination: Pagination = Depends(),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Posts from the current user and the people they follow."""
    return await feed_service.get_feed_page(db, current_user.id, pagination.page, pagination.limit)


@router.get("/user/{user_id}", response_model=PostPage)
async def list_user_posts(
    user_id: UUID,
    pagination: Pagination = Depends(),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    viewer_id = current_user.id if current_user else None
    return await feed_service.get_user_posts_page(db, user_id, viewer_id, pagination.page, pagination.limit)


@router.get("/liked/{user_id}", response_model=PostPage)
async def list_liked_posts(
    user_id: UUID,
    pagination: Pagination = Depends(),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    viewer_id = current_user.id if current_user else None
    return await feed_service.get_liked_posts_page(db, user_id, viewer_id, pagination.page, pagination.limit)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: UUID,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    viewer_id = current_user.id if current_user else None
    return await feed_service.get_post_detail(db, post_id, viewer_id)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: UUID,
    data: PostUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await feed_service.update_post(db, post_id, current_user.id, data)
    await db.commit()
    liked_ids = await feed_service.get_user_liked_post_ids(db, current_user.id, [post.id])
    return feed_service.post_to_response(post, is_liked=post.id in liked_ids)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    image_url = await feed_service.delete_post(db, post_id, current_user.id)
    await db.commit()
    if image_url:
        storage.delete(image_url)
    return MessageResponse(message="Post deleted successfully")


@router.post("/{post_id}/like", response_model=LikeResult)
async def like_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Like the post, or remove the like if already liked."""
    liked, count = await feed_service.toggle_post_like(db, post_id, current_user.id)
    await db.commit()
    return LikeResult(liked=liked, like_count=count)


@router.post("/{post_id}/comment", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    post_id: UUID,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.create_comment(db, post_id, current_user, data.text)
    await db.commit()
    return comment


@router.get("/{post_id}/comments", response_model=CommentPage)
async def list_comments(
    post_id: UUID,
    pagination: Pagination = Depends(),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    viewer_id = current_user.id if current_user else None
    return await comment_service.list_comments(db, post_id, viewer_id, pagination.page, pagination.limit)


@router.delete("/{post_id}/comments/{comment_id}", response_model=CommentDeleted)
async def delete_comment(
    post_id: UUID,
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Comment authors and the post's author may delete a comment."""
    count = await comment_service.delete_comment(db, post_id, comment_id, current_user)
    await db.commit()
    return CommentDeleted(comment_count=count)


@router.post("/{post_id}/comments/{comment_id}/like", response_model=LikeResult)
async def like_comment(
    post_id: UUID,
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    liked, count = await comment_service.toggle_comment_like(db, post_id, comment_id, current_user.id)
    await db.commit()
    return LikeResult(liked=liked, like_count=count)


@router.post("/{post_id}/comments/{comment_id}/reply", response_model=CommentResponse)
async def reply_to_comment(
    post_id: UUID,
    comment_id: UUID,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reply = await comment_service.create_comment(db, post_id, current_user, data.text, parent_id=comment_id)
    await db.commit()
    return reply
