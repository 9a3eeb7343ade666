"""Post domain services."""

from .repository import EnrichedPost, PostRepository
from .schemas import (
    UNSET,
    CommentResponse,
    ImageUpload,
    LikerSummary,
    PostCreateFields,
    PostResponse,
    PostSummary,
    PostUpdateFields,
    UserSummary,
)
from .service import PostService

__all__ = [
    "UNSET",
    "CommentResponse",
    "EnrichedPost",
    "ImageUpload",
    "LikerSummary",
    "PostCreateFields",
    "PostRepository",
    "PostResponse",
    "PostService",
    "PostSummary",
    "PostUpdateFields",
    "UserSummary",
]
