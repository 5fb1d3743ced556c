"""Comment and reply business logic.

Replies are ordinary comments whose parent_id points at another comment on
the same post, so liking and deleting work the same at every depth.
"""
import logging
from uuid import UUID

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from socialsphere.core.exceptions import AuthorizationError, NotFoundError
from socialsphere.models.comment import Comment
from socialsphere.models.engagement import Like
from socialsphere.models.post import Post
from socialsphere.models.user import User
from socialsphere.schemas.comment import CommentPage, CommentResponse
from socialsphere.services.auth_service import user_to_summary
from socialsphere.services.pagination import page_offset, total_pages

logger = logging.getLogger(__name__)


def comment_to_response(comment: Comment, is_liked: bool = False) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        parent_id=comment.parent_id,
        author=user_to_summary(comment.user) if comment.user else None,
        content=comment.content,
        like_count=comment.likes_count or 0,
        is_liked=is_liked,
        created_at=comment.created_at,
    )


def build_comment_tree(comments: list[Comment], liked_ids: set[UUID] = frozenset()) -> list[CommentResponse]:
    """Nest replies under their parents.

    Top-level comments come back newest first, replies in the order they were
    written. A comment whose parent is not in ``comments`` is treated as top-level.
    """
    ordered = sorted(comments, key=lambda c: (c.created_at, str(c.id)))
    nodes = {c.id: comment_to_response(c, c.id in liked_ids) for c in ordered}
    roots = []
    for comment in ordered:
        node = nodes[comment.id]
        if comment.parent_id is not None and comment.parent_id in nodes:
            nodes[comment.parent_id].replies.append(node)
        else:
            roots.append(node)
    roots.reverse()
    return roots


async def get_user_liked_comment_ids(db: AsyncSession, user_id: UUID | None, comment_ids: list[UUID]) -> set[UUID]:
    if not user_id or not comment_ids:
        return set()
    result = await db.execute(
        select(Like.comment_id).where(
            Like.comment_id.in_(comment_ids),
            Like.user_id == user_id,
        )
    )
    return {r[0] for r in result.all() if r[0]}


async def latest_comments_for_posts(db: AsyncSession, post_ids: list[UUID], per_post: int) -> dict[UUID, list[Comment]]:
    """The ``per_post`` newest top-level comments of each post, authors loaded."""
    if not post_ids or per_post <= 0:
        return {}
    ranked = (
        select(
            Comment.id,
            func.row_number()
            .over(partition_by=Comment.post_id, order_by=(desc(Comment.created_at), desc(Comment.id)))
            .label("position"),
        )
        .where(Comment.post_id.in_(post_ids), Comment.parent_id.is_(None))
        .subquery()
    )
    result = await db.execute(
        select(Comment)
        .join(ranked, ranked.c.id == Comment.id)
        .where(ranked.c.position <= per_post)
        .order_by(desc(Comment.created_at), desc(Comment.id))
        .options(selectinload(Comment.user))
    )
    grouped: dict[UUID, list[Comment]] = {}
    for comment in result.scalars().all():
        grouped.setdefault(comment.post_id, []).append(comment)
    return grouped


async def _get_post(db: AsyncSession, post_id: UUID) -> Post:
    post = await db.get(Post, post_id)
    if not post:
        raise NotFoundError("Post not found")
    return post


async def _get_comment(db: AsyncSession, post_id: UUID, comment_id: UUID) -> Comment:
    result = await db.execute(
        select(Comment)
        .where(Comment.id == comment_id, Comment.post_id == post_id)
        .options(selectinload(Comment.user))
    )
    comment = result.scalar_one_or_none()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


async def create_comment(
    db: AsyncSession,
    post_id: UUID,
    author: User,
    text: str,
    parent_id: UUID | None = None,
) -> CommentResponse:
    await _get_post(db, post_id)
    if parent_id is not None:
        await _get_comment(db, post_id, parent_id)
    comment = Comment(user=author, post_id=post_id, parent_id=parent_id, content=text)
    db.add(comment)
    await db.execute(
        update(Post).where(Post.id == post_id).values(comments_count=Post.comments_count + 1)
    )
    await db.flush()
    return comment_to_response(comment)


async def list_comments(
    db: AsyncSession,
    post_id: UUID,
    viewer_id: UUID | None,
    page: int = 1,
    limit: int = 10,
) -> CommentPage:
    """Top-level comments newest first, each carrying its nested replies."""
    await _get_post(db, post_id)
    top_level = (Comment.post_id == post_id) & Comment.parent_id.is_(None)
    total = await db.scalar(select(func.count(Comment.id)).where(top_level)) or 0
    roots_result = await db.execute(
        select(Comment)
        .where(top_level)
        .order_by(desc(Comment.created_at), desc(Comment.id))
        .offset(page_offset(page, limit))
        .limit(limit)
        .options(selectinload(Comment.user))
    )
    roots = list(roots_result.scalars().all())
    replies: list[Comment] = []
    if roots:
        replies_result = await db.execute(
            select(Comment)
            .where(Comment.post_id == post_id, Comment.parent_id.is_not(None))
            .options(selectinload(Comment.user))
        )
        replies = _descendants_of({c.id for c in roots}, list(replies_result.scalars().all()))
    thread = roots + replies
    liked_ids = await get_user_liked_comment_ids(db, viewer_id, [c.id for c in thread])
    tree = build_comment_tree(thread, liked_ids)
    return CommentPage(
        comments=tree,
        current_page=page,
        total_pages=total_pages(total, limit),
        total_comments=total,
    )


def _descendants_of(root_ids: set[UUID], replies: list[Comment]) -> list[Comment]:
    children: dict[UUID, list[Comment]] = {}
    for reply in replies:
        children.setdefault(reply.parent_id, []).append(reply)
    found: list[Comment] = []
    frontier = list(root_ids)
    while frontier:
        next_frontier = []
        for parent_id in frontier:
            for child in children.get(parent_id, []):
                found.append(child)
                next_frontier.append(child.id)
        frontier = next_frontier
    return found


async def toggle_comment_like(db: AsyncSession, post_id: UUID, comment_id: UUID, user_id: UUID) -> tuple[bool, int]:
    await _get_comment(db, post_id, comment_id)
    removed = await db.execute(
        delete(Like).where(Like.comment_id == comment_id, Like.user_id == user_id)
    )
    if removed.rowcount:
        step = -1
    else:
        db.add(Like(user_id=user_id, comment_id=comment_id))
        await db.flush()
        step = 1
    await db.execute(
        update(Comment).where(Comment.id == comment_id).values(likes_count=Comment.likes_count + step)
    )
    count = await db.scalar(select(Comment.likes_count).where(Comment.id == comment_id))
    return step > 0, count or 0


async def delete_comment(db: AsyncSession, post_id: UUID, comment_id: UUID, actor: User) -> int:
    """Delete a comment and its replies. Returns the post's new comment count.

    Allowed for the comment's author and for the author of the post.
    """
    post = await _get_post(db, post_id)
    comment = await _get_comment(db, post_id, comment_id)
    if actor.id not in (comment.user_id, post.user_id):
        raise AuthorizationError("Not authorized to delete this comment")

    subtree = [comment.id]
    frontier = [comment.id]
    while frontier:
        result = await db.execute(select(Comment.id).where(Comment.parent_id.in_(frontier)))
        frontier = [row[0] for row in result.all()]
        subtree.extend(frontier)

    await db.execute(delete(Like).where(Like.comment_id.in_(subtree)))
    await db.execute(delete(Comment).where(Comment.id.in_(subtree)))
    await db.execute(
        update(Post).where(Post.id == post_id).values(comments_count=Post.comments_count - len(subtree))
    )
    count = await db.scalar(select(Post.comments_count).where(Post.id == post_id))
    logger.info("Comment %s (%d with replies) deleted by %s", comment_id, len(subtree), actor.username)
    return count or 0
