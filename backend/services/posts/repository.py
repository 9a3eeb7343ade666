"""Data access for posts and the associations shown alongside them."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, cast

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Comment, Follow, FollowStatus, Like, Post, User

from .common import asc, desc, eq


@dataclass
class EnrichedPost:
    post: Post
    owner: User
    likers: list[User]
    like_count: int
    comment_count: int
    comments: list[tuple[Comment, User]] | None = None


class PostRepository:
    """Relational access to the ``posts`` table bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, post: Post) -> Post:
        self._session.add(post)
        await self._commit()
        await self._session.refresh(post)
        return post

    async def save(self, post: Post) -> Post:
        self._session.add(post)
        await self._commit()
        await self._session.refresh(post)
        return post

    async def delete(self, post: Post) -> None:
        if post.id is not None:
            await self._session.execute(delete(Like).where(eq(Like.post_id, post.id)))
            await self._session.execute(delete(Comment).where(eq(Comment.post_id, post.id)))
        await self._session.delete(post)
        await self._commit()

    async def get(self, post_id: int) -> Post | None:
        result = await self._session.execute(
            select(Post).where(eq(Post.id, post_id)).limit(1)
        )
        return result.scalar_one_or_none()

    async def list_for_owner(self, owner_id: str) -> list[Post]:
        result = await self._session.execute(
            select(Post)
            .where(eq(Post.user_id, owner_id))
            .order_by(desc(Post.created_at), desc(Post.id))
        )
        return list(result.scalars().all())

    async def accepted_following_ids(self, viewer_id: str) -> list[str]:
        following_id_column = cast(ColumnElement[str], Follow.following_id)
        result = await self._session.execute(
            select(following_id_column).where(
                eq(Follow.follower_id, viewer_id),
                eq(Follow.status, FollowStatus.ACCEPTED.value),
            )
        )
        return [row[0] for row in result.all()]

    async def list_enriched(
        self,
        *,
        owner_ids: Sequence[str] | None = None,
        public_owners_only: bool = False,
    ) -> list[EnrichedPost]:
        """Return posts with owner, likers and counts, newest first."""
        query = select(Post, User).join(User, eq(User.id, Post.user_id))
        if owner_ids is not None:
            if not owner_ids:
                return []
            post_owner_column = cast(ColumnElement[str], Post.user_id)
            query = query.where(post_owner_column.in_(list(owner_ids)))
        if public_owners_only:
            query = query.where(eq(User.is_public, True))
        query = query.order_by(desc(Post.created_at), desc(Post.id))

        result = await self._session.execute(query)
        rows = [(post, owner) for post, owner in result.all()]
        return await self._enrich(rows, with_comments=False)

    async def get_enriched(
        self,
        post_id: int,
        *,
        with_comments: bool = False,
    ) -> EnrichedPost | None:
        result = await self._session.execute(
            select(Post, User)
            .join(User, eq(User.id, Post.user_id))
            .where(eq(Post.id, post_id))
            .limit(1)
        )
        row = result.first()
        if row is None:
            return None
        post, owner = row
        enriched = await self._enrich([(post, owner)], with_comments=with_comments)
        return enriched[0]

    async def _enrich(
        self,
        rows: list[tuple[Post, User]],
        *,
        with_comments: bool,
    ) -> list[EnrichedPost]:
        post_ids = [post.id for post, _owner in rows if post.id is not None]
        like_counts = await self._count_per_post(Like.post_id, Like.user_id, post_ids)
        comment_counts = await self._count_per_post(Comment.post_id, Comment.id, post_ids)
        likers = await self._likers_per_post(post_ids)
        comments = await self._comments_per_post(post_ids) if with_comments else None

        return [
            EnrichedPost(
                post=post,
                owner=owner,
                likers=likers.get(post.id, []) if post.id is not None else [],
                like_count=like_counts.get(post.id, 0) if post.id is not None else 0,
                comment_count=comment_counts.get(post.id, 0) if post.id is not None else 0,
                comments=(
                    comments.get(post.id, [])
                    if comments is not None and post.id is not None
                    else None
                ),
            )
            for post, owner in rows
        ]

    async def _count_per_post(
        self,
        post_id_attr: Any,
        counted_attr: Any,
        post_ids: list[int],
    ) -> dict[int, int]:
        if not post_ids:
            return {}
        post_id_column = cast(ColumnElement[int], post_id_attr)
        count_column = cast(Any, func.count(cast(Any, counted_attr)))
        result = await self._session.execute(
            select(post_id_column, count_column)
            .where(post_id_column.in_(post_ids))
            .group_by(post_id_column)
        )
        return {post_id: int(total) for post_id, total in result.all()}

    async def _likers_per_post(self, post_ids: list[int]) -> dict[int, list[User]]:
        if not post_ids:
            return {}
        like_post_id_column = cast(ColumnElement[int], Like.post_id)
        result = await self._session.execute(
            select(like_post_id_column, User)
            .join(User, eq(User.id, Like.user_id))
            .where(like_post_id_column.in_(post_ids))
            .order_by(asc(Like.created_at), asc(User.id))
        )
        likers: dict[int, list[User]] = defaultdict(list)
        for post_id, user in result.all():
            likers[post_id].append(user)
        return likers

    async def _comments_per_post(
        self,
        post_ids: list[int],
    ) -> dict[int, list[tuple[Comment, User]]]:
        if not post_ids:
            return {}
        comment_post_id_column = cast(ColumnElement[int], Comment.post_id)
        result = await self._session.execute(
            select(Comment, User)
            .join(User, eq(User.id, Comment.user_id))
            .where(comment_post_id_column.in_(post_ids))
            .order_by(asc(Comment.created_at), asc(Comment.id))
        )
        comments: dict[int, list[tuple[Comment, User]]] = defaultdict(list)
        for comment, author in result.all():
            comments[comment.post_id].append((comment, author))
        return comments

    async def _commit(self) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError:
            await self._session.rollback()
            raise
