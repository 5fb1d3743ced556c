"""Feed and post business logic."""
import logging
from uuid import UUID

from sqlalchemy import delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from socialsphere.core.config import settings
from socialsphere.core.exceptions import AuthorizationError, NotFoundError
from socialsphere.models.comment import Comment
from socialsphere.models.engagement import Follow, Like
from socialsphere.models.post import Post
from socialsphere.models.user import User
from socialsphere.schemas.comment import CommentResponse
from socialsphere.schemas.post import PostCreate, PostPage, PostResponse, PostUpdate
from socialsphere.services.auth_service import user_to_summary
from socialsphere.services.comment_service import (
    build_comment_tree,
    comment_to_response,
    get_user_liked_comment_ids,
    latest_comments_for_posts,
)
from socialsphere.services.pagination import page_offset, total_pages

logger = logging.getLogger(__name__)


async def get_post_or_404(db: AsyncSession, post_id: UUID) -> Post:
    result = await db.execute(
        select(Post).where(Post.id == post_id).options(selectinload(Post.user))
    )
    post = result.scalar_one_or_none()
    if not post:
        raise NotFoundError("Post not found")
    return post


async def get_owned_post(db: AsyncSession, post_id: UUID, owner_id: UUID, action: str) -> Post:
    post = await get_post_or_404(db, post_id)
    if post.user_id != owner_id:
        raise AuthorizationError(f"Not authorized to {action} this post")
    return post


async def create_post(db: AsyncSession, author: User, data: PostCreate, image_url: str | None = None) -> Post:
    post = Post(user=author, content=data.content, image_url=image_url)
    db.add(post)
    await db.flush()
    logger.info("Post %s created by %s", post.id, author.username)
    return post


async def update_post(db: AsyncSession, post_id: UUID, owner_id: UUID, data: PostUpdate) -> Post:
    post = await get_owned_post(db, post_id, owner_id, "edit")
    post.content = data.content
    await db.flush()
    return post


async def delete_post(db: AsyncSession, post_id: UUID, owner_id: UUID) -> str | None:
    """Delete a post with its comments and likes. Returns the image path to clean up."""
    post = await get_owned_post(db, post_id, owner_id, "delete")
    image_url = post.image_url
    comment_ids = select(Comment.id).where(Comment.post_id == post_id)
    await db.execute(
        delete(Like).where(or_(Like.post_id == post_id, Like.comment_id.in_(comment_ids)))
    )
    # Replies first so no row is left pointing at a deleted parent
    await db.execute(delete(Comment).where(Comment.post_id == post_id, Comment.parent_id.is_not(None)))
    await db.execute(delete(Comment).where(Comment.post_id == post_id))
    await db.execute(delete(Post).where(Post.id == post_id))
    await db.flush()
    logger.info("Post %s deleted by %s", post_id, owner_id)
    return image_url


async def toggle_post_like(db: AsyncSession, post_id: UUID, user_id: UUID) -> tuple[bool, int]:
    """Like the post if not liked yet, otherwise unlike. Returns (liked, like count)."""
    await get_post_or_404(db, post_id)
    removed = await db.execute(
        delete(Like).where(Like.post_id == post_id, Like.user_id == user_id)
    )
    if removed.rowcount:
        step = -1
    else:
        db.add(Like(user_id=user_id, post_id=post_id))
        await db.flush()
        step = 1
    await db.execute(
        update(Post).where(Post.id == post_id).values(likes_count=Post.likes_count + step)
    )
    count = await db.scalar(select(Post.likes_count).where(Post.id == post_id))
    return step > 0, count or 0


async def get_user_liked_post_ids(
    db: AsyncSession,
    user_id: UUID | None,
    post_ids: list[UUID],
) -> set[UUID]:
    """Return set of post IDs that the user has liked."""
    if not user_id or not post_ids:
        return set()
    result = await db.execute(
        select(Like.post_id).where(
            Like.user_id == user_id,
            Like.post_id.in_(post_ids),
        )
    )
    return set(row[0] for row in result.all() if row[0])


def post_to_response(
    post: Post,
    is_liked: bool = False,
    comments: list[CommentResponse] | None = None,
) -> PostResponse:
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        author=user_to_summary(post.user) if post.user else None,
        content=post.content,
        image=post.image_url,
        like_count=post.likes_count or 0,
        comment_count=post.comments_count or 0,
        is_liked=is_liked,
        comments=comments or [],
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


async def _paginate_posts(
    db: AsyncSession,
    condition,
    viewer_id: UUID | None,
    page: int,
    limit: int,
) -> PostPage:
    total = await db.scalar(select(func.count(Post.id)).where(condition)) or 0
    result = await db.execute(
        select(Post)
        .where(condition)
        .order_by(desc(Post.created_at), desc(Post.id))
        .offset(page_offset(page, limit))
        .limit(limit)
        .options(selectinload(Post.user))
    )
    posts = list(result.scalars().all())
    post_ids = [p.id for p in posts]
    liked_ids = await get_user_liked_post_ids(db, viewer_id, post_ids)
    previews = await latest_comments_for_posts(db, post_ids, settings.FEED_COMMENT_PREVIEW)
    liked_comment_ids = await get_user_liked_comment_ids(
        db, viewer_id, [c.id for comments in previews.values() for c in comments]
    )
    return PostPage(
        posts=[
            post_to_response(
                p,
                is_liked=p.id in liked_ids,
                comments=[comment_to_response(c, c.id in liked_comment_ids) for c in previews.get(p.id, [])],
            )
            for p in posts
        ],
        current_page=page,
        total_pages=total_pages(total, limit),
        total_posts=total,
    )


async def get_feed_page(db: AsyncSession, viewer_id: UUID, page: int = 1, limit: int = 10) -> PostPage:
    """Posts by the viewer or anyone the viewer follows, newest first."""
    following = select(Follow.following_id).where(Follow.follower_id == viewer_id)
    condition = or_(Post.user_id == viewer_id, Post.user_id.in_(following))
    return await _paginate_posts(db, condition, viewer_id, page, limit)


async def get_user_posts_page(
    db: AsyncSession,
    author_id: UUID,
    viewer_id: UUID | None,
    page: int = 1,
    limit: int = 10,
) -> PostPage:
    return await _paginate_posts(db, Post.user_id == author_id, viewer_id, page, limit)


async def get_liked_posts_page(
    db: AsyncSession,
    user_id: UUID,
    viewer_id: UUID | None,
    page: int = 1,
    limit: int = 10,
) -> PostPage:
    liked = select(Like.post_id).where(Like.user_id == user_id, Like.post_id.is_not(None))
    return await _paginate_posts(db, Post.id.in_(liked), viewer_id, page, limit)


async def get_post_detail(db: AsyncSession, post_id: UUID, viewer_id: UUID | None) -> PostResponse:
    """Single post with the full comment thread, replies nested under their parents."""
    post = await get_post_or_404(db, post_id)
    result = await db.execute(
        select(Comment)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at)
        .options(selectinload(Comment.user))
    )
    comments = list(result.scalars().all())
    liked_comment_ids = await get_user_liked_comment_ids(db, viewer_id, [c.id for c in comments])
    liked_ids = await get_user_liked_post_ids(db, viewer_id, [post.id])
    return post_to_response(
        post,
        is_liked=post.id in liked_ids,
        comments=build_comment_tree(comments, liked_comment_ids),
    )
