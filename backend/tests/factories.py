"""Row builders and fakes shared by the test modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from typing import Any
from uuid import uuid4

from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession

from core import create_access_token
from models import Comment, Follow, FollowStatus, Like, Post, User
from services import ImageUploadFailed, UploadedImage, public_id_from_versioned_url

IMAGE_BASE_URL = "https://images.test/demo/image/upload"


@dataclass
class FakeImageStore:
    """In-memory image store that records every call."""

    fail_uploads: bool = False
    fail_destroys: bool = False
    uploads: list[UploadedImage] = field(default_factory=list)
    destroyed: list[str] = field(default_factory=list)

    def upload(self, data: bytes, *, folder: str, content_type: str) -> UploadedImage:
        if self.fail_uploads:
            raise ImageUploadFailed("Image upload failed", context={"folder": folder})
        public_id = f"{folder}/{uuid4().hex}"
        uploaded = UploadedImage(
            secure_url=f"{IMAGE_BASE_URL}/v1700000000/{public_id}.jpg",
            public_id=public_id,
        )
        self.uploads.append(uploaded)
        return uploaded

    def destroy(self, public_id: str) -> bool:
        self.destroyed.append(public_id)
        return not self.fail_destroys

    def public_id_from_url(self, url: str) -> str | None:
        return public_id_from_versioned_url(url)


def stored_image_url(public_id: str) -> str:
    return f"{IMAGE_BASE_URL}/v1690000000/{public_id}.jpg"


def make_image_bytes(image_format: str = "PNG") -> bytes:
    image = Image.new("RGB", (64, 48), color=(200, 120, 40))
    buffer = BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


async def create_user(
    session: AsyncSession,
    username: str,
    *,
    is_public: bool = True,
    name: str | None = None,
) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        name=name or username.title(),
        is_public=is_public,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def create_post(
    session: AsyncSession,
    owner: User,
    *,
    title: str = "Tacos",
    description: str = "Quick tacos",
    image_url: str | None = None,
    ingredients: Any | None = None,
    **columns: Any,
) -> Post:
    post = Post(
        user_id=owner.id,
        title=title,
        description=description,
        image_url=image_url,
        ingredients=ingredients,
        **columns,
    )
    session.add(post)
    await session.commit()
    await session.refresh(post)
    return post


async def create_follow(
    session: AsyncSession,
    follower: User,
    following: User,
    status: FollowStatus = FollowStatus.ACCEPTED,
) -> Follow:
    follow = Follow(
        follower_id=follower.id,
        following_id=following.id,
        status=status.value,
    )
    session.add(follow)
    await session.commit()
    return follow


async def like_post(session: AsyncSession, user: User, post: Post) -> None:
    session.add(Like(user_id=user.id, post_id=post.id))
    await session.commit()


async def comment_on(session: AsyncSession, user: User, post: Post, content: str, **columns: Any) -> Comment:
    comment = Comment(post_id=post.id, user_id=user.id, content=content, **columns)
    session.add(comment)
    await session.commit()
    await session.refresh(comment)
    return comment
