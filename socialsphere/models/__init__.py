from socialsphere.models.user import User
from socialsphere.models.post import Post
from socialsphere.models.comment import Comment
from socialsphere.models.engagement import Follow, Like

__all__ = ["User", "Post", "Comment", "Follow", "Like"]
