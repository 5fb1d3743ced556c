"""Pydantic schemas for Comment and replies."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from socialsphere.schemas.base import APIModel, RequestModel
from socialsphere.schemas.user import UserSummary

COMMENT_MAX_LENGTH = 500


class CommentCreate(RequestModel):
    text: str = Field(..., max_length=COMMENT_MAX_LENGTH)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment text is required")
        return value


class CommentResponse(APIModel):
    id: UUID
    post_id: UUID
    parent_id: UUID | None = None
    author: UserSummary | None = None
    content: str
    like_count: int = 0
    is_liked: bool = False
    created_at: datetime
    replies: list[CommentResponse] = []


class CommentPage(APIModel):
    comments: list[CommentResponse]
    current_page: int
    total_pages: int
    total_comments: int


class CommentDeleted(APIModel):
    message: str = "Comment deleted successfully"
    comment_count: int
