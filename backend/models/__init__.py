"""SQLModel models package."""

from .comment import Comment
from .follow import Follow, FollowStatus
from .like import Like
from .post import MAX_POST_TITLE_LENGTH, Post
from .user import User

__all__ = [
    "User",
    "Follow",
    "FollowStatus",
    "Post",
    "MAX_POST_TITLE_LENGTH",
    "Like",
    "Comment",
]
