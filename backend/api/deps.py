"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, cast

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import decode_token, settings
from db import get_session
from models import Post, User
from services import ImageStore, get_image_store
from services.posts import PostRepository, PostService

from .v1.post_controller import PostController

ACCESS_COOKIE = "access_token"
BEARER_PREFIX = "bearer "


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def _extract_token(request: Request) -> str | None:
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        return token or None
    return request.cookies.get(ACCESS_COOKIE)


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the caller from the access token issued by the auth service."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
    )
    token = _extract_token(request)
    if token is None:
        raise unauthorized
    try:
        payload = decode_token(token)
    except ValueError as exc:
        raise unauthorized from exc

    user_id = payload.get("sub")
    if payload.get("type") != "access" or not isinstance(user_id, str):
        raise unauthorized

    result = await session.execute(select(User).where(_eq(User.id, user_id)).limit(1))
    user = result.scalar_one_or_none()
    if user is None:
        raise unauthorized
    return user


async def require_post_owner(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    """Allow the request through only when the caller owns the post."""
    post_owner_column = cast(ColumnElement[str], Post.user_id)
    result = await session.execute(
        select(post_owner_column).where(_eq(Post.id, post_id)).limit(1)
    )
    owner_id = result.scalar_one_or_none()
    if owner_id is None or owner_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return current_user


def provide_image_store() -> ImageStore:
    return get_image_store()


def get_post_service(
    session: AsyncSession = Depends(get_db),
    image_store: ImageStore = Depends(provide_image_store),
) -> PostService:
    return PostService(
        PostRepository(session),
        image_store,
        image_folder=settings.image_folder,
    )


def get_post_controller(
    service: PostService = Depends(get_post_service),
) -> PostController:
    return PostController(service)
