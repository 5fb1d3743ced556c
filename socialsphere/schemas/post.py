"""Pydantic schemas for Post."""
from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from socialsphere.schemas.base import APIModel, RequestModel
from socialsphere.schemas.comment import CommentResponse
from socialsphere.schemas.user import UserSummary

POST_MAX_LENGTH = 2000


class PostContent(RequestModel):
    content: str = Field(..., max_length=POST_MAX_LENGTH)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Post content cannot be empty")
        return value


class PostCreate(PostContent):
    pass


class PostUpdate(PostContent):
    pass


class PostResponse(APIModel):
    id: UUID
    user_id: UUID
    author: UserSummary | None = None
    content: str
    image: str | None = None
    like_count: int = 0
    comment_count: int = 0
    is_liked: bool = False
    comments: list[CommentResponse] = []
    created_at: datetime
    updated_at: datetime | None = None


class PostPage(APIModel):
    posts: list[PostResponse]
    current_page: int
    total_pages: int
    total_posts: int
