"""Recipe post model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlmodel import Field, SQLModel

MAX_POST_TITLE_LENGTH = 255


class Post(SQLModel, table=True):
    """A recipe shared by a user: image, title, description and ingredients."""

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_user_created_at", "user_id", "created_at"),
        Index("ix_posts_created_at_id", "created_at", "id"),
    )

    id: int | None = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    user_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    title: str = Field(
        sa_column=Column(String(MAX_POST_TITLE_LENGTH), nullable=False)
    )
    description: str = Field(
        sa_column=Column(Text, nullable=False)
    )
    # Column keeps its historical name; only store-issued URLs are written here.
    image_url: str | None = Field(
        default=None, sa_column=Column("imagen", String(2048), nullable=True)
    )
    ingredients: Any | None = Field(
        default=None, sa_column=Column(JSON, nullable=True)
    )
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )
    )
    updated_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )
    )
