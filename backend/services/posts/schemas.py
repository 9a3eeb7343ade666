"""Post read models and service input payloads."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from .repository import EnrichedPost


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    name: str | None = None
    is_public: bool = True


class LikerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    name: str | None = None


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    user_id: str
    content: str
    created_at: datetime
    user: UserSummary


class PostSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    title: str
    description: str
    image_url: str | None = None
    ingredients: Any | None = None
    created_at: datetime
    updated_at: datetime


class PostResponse(PostSummary):
    """A post with its owner, likers and engagement counts."""

    user: UserSummary
    liked_by: list[LikerSummary] = []
    likes_count: int = 0
    comments_count: int = 0
    comments: list[CommentResponse] | None = None

    @classmethod
    def from_enriched(cls, row: EnrichedPost) -> "PostResponse":
        post = row.post
        if post.id is None:
            raise ValueError("Post record missing identifier")
        comments = None
        if row.comments is not None:
            comments = [
                CommentResponse(
                    id=comment.id,
                    post_id=comment.post_id,
                    user_id=comment.user_id,
                    content=comment.content,
                    created_at=comment.created_at,
                    user=UserSummary.model_validate(author),
                )
                for comment, author in row.comments
            ]
        return cls(
            id=post.id,
            user_id=post.user_id,
            title=post.title,
            description=post.description,
            image_url=post.image_url,
            ingredients=post.ingredients,
            created_at=post.created_at,
            updated_at=post.updated_at,
            user=UserSummary.model_validate(row.owner),
            liked_by=[LikerSummary.model_validate(liker) for liker in row.likers],
            likes_count=row.like_count,
            comments_count=row.comment_count,
            comments=comments,
        )


PostResponse.model_rebuild()


@dataclass(frozen=True)
class ImageUpload:
    """A validated image waiting to be sent to the image store."""

    data: bytes
    content_type: str
    filename: str | None = None


@dataclass(frozen=True)
class PostCreateFields:
    title: str
    description: str
    ingredients: Any | None = None
    image: ImageUpload | None = None


@dataclass(frozen=True)
class PostUpdateFields:
    """Partial update: ``None``/``UNSET`` fields keep their stored value."""

    title: str | None = None
    description: str | None = None
    ingredients: Any = UNSET
    image: ImageUpload | None = None

    def changes(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if self.title is not None:
            values["title"] = self.title
        if self.description is not None:
            values["description"] = self.description
        if self.ingredients is not UNSET:
            values["ingredients"] = self.ingredients
        return values

    def is_empty(self) -> bool:
        return not self.changes() and self.image is None
