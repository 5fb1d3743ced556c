"""Pydantic schemas for User."""
from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from socialsphere.schemas.base import APIModel, RequestModel

USERNAME_PATTERN = r"^[A-Za-z0-9_.]+$"


class UserSummary(APIModel):
    id: UUID
    name: str
    username: str
    profile_picture: str = ""


class UserCard(UserSummary):
    """Summary plus the bits shown on search and explore results."""
    bio: str = ""
    followers_count: int = 0


class UserResponse(UserCard):
    email: str | None = None  # Only in own profile
    following_count: int = 0
    created_at: datetime


class UserProfile(UserResponse):
    followers: list[UserSummary] = []
    following: list[UserSummary] = []
    posts_count: int = 0
    is_following: bool = False  # Set when the viewer is authenticated


class UserCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    bio: str | None = Field(None, max_length=300)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class UserUpdate(RequestModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    bio: str | None = Field(None, max_length=300)
    profile_picture: str | None = None


class LoginRequest(RequestModel):
    identifier: str = Field(..., min_length=1, description="Email or username")
    password: str = Field(..., min_length=1)


class Token(APIModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class FollowResult(APIModel):
    following: bool
    follower_count: int
    following_count: int


class AvatarUploadResponse(APIModel):
    message: str = "Profile picture uploaded successfully"
    profile_picture: str
