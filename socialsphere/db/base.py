"""SQLAlchemy declarative base and model imports for Alembic."""
from socialsphere.db.session import Base  # noqa: F401
from socialsphere.models.user import User  # noqa: F401
from socialsphere.models.post import Post  # noqa: F401
from socialsphere.models.comment import Comment  # noqa: F401
from socialsphere.models.engagement import Follow, Like  # noqa: F401

__all__ = ["Base", "User", "Post", "Comment", "Follow", "Like"]
