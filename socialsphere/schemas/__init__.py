from socialsphere.schemas.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
    UserProfile,
    UserSummary,
    Token,
    LoginRequest,
)
from socialsphere.schemas.post import PostCreate, PostUpdate, PostResponse, PostPage
from socialsphere.schemas.comment import CommentCreate, CommentResponse, CommentPage
