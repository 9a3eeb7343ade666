"""Like edge between a user and a post."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, PrimaryKeyConstraint, String, func
from sqlmodel import Field, SQLModel


class Like(SQLModel, table=True):
    """One row per (user, post); likers are listed in ``created_at`` order."""

    __tablename__ = "likes"
    __table_args__ = (
        PrimaryKeyConstraint("user_id", "post_id"),
        Index("ix_likes_post_created_at", "post_id", "created_at"),
    )

    user_id: str = Field(
        sa_column=Column(String(36), ForeignKey("users.id", ondelete="CASCADE"))
    )
    post_id: int = Field(
        sa_column=Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"))
    )
    # Likes are never edited, so there is no updated_at.
    created_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )
