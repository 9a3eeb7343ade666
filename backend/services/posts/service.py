"""Post lifecycle orchestration: image side effects, persistence, read shaping."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from models import Post
from services.errors import (
    Err,
    ImageUploadFailed,
    NotFoundError,
    Ok,
    PersistenceFailed,
    PostServiceError,
    Result,
    UnexpectedError,
)
from services.image_store import ImageStore, UploadedImage

from .repository import EnrichedPost, PostRepository
from .schemas import ImageUpload, PostCreateFields, PostResponse, PostSummary, PostUpdateFields

DEFAULT_IMAGE_FOLDER = "posts"
logger = logging.getLogger(__name__)


def _failure(message: str, context: dict[str, Any], exc: BaseException) -> PostServiceError:
    if isinstance(exc, SQLAlchemyError):
        return PersistenceFailed(message, context=context, cause=exc)
    return UnexpectedError(message, context=context, cause=exc)


class PostService:
    """Decides what creating, updating and reading a post means.

    Every public operation returns ``Ok(value)`` or ``Err(error)``; nothing
    is raised to the caller. Ownership checks happen before the service is
    reached.
    """

    def __init__(
        self,
        repository: PostRepository,
        image_store: ImageStore,
        *,
        image_folder: str = DEFAULT_IMAGE_FOLDER,
    ) -> None:
        self._repository = repository
        self._image_store = image_store
        self._image_folder = image_folder

    async def list_all(self) -> Result[list[PostResponse]]:
        return await self._read_many(
            self._repository.list_enriched,
            {"operation": "list_all"},
        )

    async def list_filtered(self, filters: Mapping[str, Any]) -> Result[list[PostResponse]]:
        """Log the requested criteria and return every post.

        No filter predicates are defined yet, so the result matches
        ``list_all``.
        """
        context = {"operation": "list_filtered", "filters": dict(filters)}
        logger.info("Filtering posts", extra=context)
        result = await self._read_many(self._repository.list_enriched, context)
        if isinstance(result, Ok):
            logger.info("Found %d posts", len(result.value), extra=context)
        return result

    async def list_following_feed(self, viewer_id: str) -> Result[list[PostResponse]]:
        context = {"operation": "list_following_feed", "viewer_id": viewer_id}

        async def load() -> list[EnrichedPost]:
            following_ids = await self._repository.accepted_following_ids(viewer_id)
            logger.info(
                "Loading following feed",
                extra={**context, "following_count": len(following_ids)},
            )
            return await self._repository.list_enriched(owner_ids=following_ids)

        return await self._read_many(load, context)

    async def list_public_feed(self) -> Result[list[PostResponse]]:
        context = {"operation": "list_public_feed"}
        logger.info("Loading public feed", extra=context)

        async def load() -> list[EnrichedPost]:
            return await self._repository.list_enriched(public_owners_only=True)

        return await self._read_many(load, context)

    async def list_by_owner(self, owner_id: str) -> Result[list[PostSummary]]:
        context = {"operation": "list_by_owner", "owner_id": owner_id}
        try:
            posts = await self._repository.list_for_owner(owner_id)
        except Exception as exc:
            logger.exception("Failed to load owner posts", extra=context)
            return Err(_failure("Failed to load user posts", context, exc))
        return Ok([PostSummary.model_validate(post) for post in posts])

    async def get_by_id(self, post_id: int) -> Result[PostResponse]:
        return await self._load(
            post_id,
            {"operation": "get_by_id", "post_id": post_id},
            with_comments=True,
        )

    async def create(self, owner_id: str, fields: PostCreateFields) -> Result[PostResponse]:
        context: dict[str, Any] = {"operation": "create", "owner_id": owner_id}

        uploaded: UploadedImage | None = None
        if fields.image is not None:
            upload_result = await self._upload(fields.image, context)
            if isinstance(upload_result, Err):
                return upload_result
            uploaded = upload_result.value

        post = Post(
            user_id=owner_id,
            title=fields.title,
            description=fields.description,
            image_url=uploaded.secure_url if uploaded is not None else None,
            ingredients=fields.ingredients,
        )
        try:
            await self._repository.add(post)
        except Exception as exc:
            logger.exception("Failed to persist new post", extra=context)
            if uploaded is not None:
                await self._destroy_image(uploaded.public_id, context)
            return Err(_failure("Failed to create post", context, exc))

        if post.id is None:
            return Err(PersistenceFailed("Post record missing identifier", context=context))
        logger.info("Post created", extra={**context, "post_id": post.id})
        return await self._load(post.id, context)

    async def update(self, post_id: int, fields: PostUpdateFields) -> Result[PostResponse]:
        context: dict[str, Any] = {"operation": "update", "post_id": post_id}
        found = await self._find(post_id, context)
        if isinstance(found, Err):
            return found
        post = found.value

        previous_image_url = post.image_url
        uploaded: UploadedImage | None = None
        if fields.image is not None:
            upload_result = await self._upload(fields.image, context)
            if isinstance(upload_result, Err):
                return upload_result
            uploaded = upload_result.value

        changes = fields.changes()
        if uploaded is not None:
            changes["image_url"] = uploaded.secure_url
        for field_name, value in changes.items():
            setattr(post, field_name, value)

        try:
            await self._repository.save(post)
        except Exception as exc:
            logger.exception("Failed to persist post update", extra=context)
            if uploaded is not None:
                await self._destroy_image(uploaded.public_id, context)
            return Err(_failure("Failed to update post", context, exc))

        # The replaced image is only removed once the new URL is stored.
        if uploaded is not None and previous_image_url and previous_image_url != uploaded.secure_url:
            await self._destroy_image_at(previous_image_url, context)

        logger.info(
            "Post updated",
            extra={**context, "fields": sorted(changes)},
        )
        return await self._load(post_id, context)

    async def delete(self, post_id: int) -> Result[None]:
        context: dict[str, Any] = {"operation": "delete", "post_id": post_id}
        found = await self._find(post_id, context)
        if isinstance(found, Err):
            return found
        post = found.value

        image_url = post.image_url
        try:
            await self._repository.delete(post)
        except Exception as exc:
            logger.exception("Failed to delete post", extra=context)
            return Err(_failure("Failed to delete post", context, exc))

        if image_url:
            await self._destroy_image_at(image_url, context)
        logger.info("Post deleted", extra=context)
        return Ok(None)

    async def _find(self, post_id: int, context: dict[str, Any]) -> Result[Post]:
        try:
            post = await self._repository.get(post_id)
        except Exception as exc:
            logger.exception("Failed to look up post", extra=context)
            return Err(_failure("Failed to load post", context, exc))
        if post is None:
            return Err(NotFoundError("Post not found", context=context))
        return Ok(post)

    async def _load(
        self,
        post_id: int,
        context: dict[str, Any],
        *,
        with_comments: bool = False,
    ) -> Result[PostResponse]:
        try:
            row = await self._repository.get_enriched(post_id, with_comments=with_comments)
        except Exception as exc:
            logger.exception("Failed to load post", extra=context)
            return Err(_failure("Failed to load post", context, exc))
        if row is None:
            return Err(NotFoundError("Post not found", context={**context, "post_id": post_id}))
        return Ok(PostResponse.from_enriched(row))

    async def _read_many(
        self,
        loader: Callable[[], Awaitable[list[EnrichedPost]]],
        context: dict[str, Any],
    ) -> Result[list[PostResponse]]:
        try:
            rows = await loader()
        except Exception as exc:
            logger.exception("Failed to load posts", extra=context)
            return Err(_failure("Failed to load posts", context, exc))
        return Ok([PostResponse.from_enriched(row) for row in rows])

    async def _upload(self, image: ImageUpload, context: dict[str, Any]) -> Result[UploadedImage]:
        try:
            uploaded = await asyncio.to_thread(
                self._image_store.upload,
                image.data,
                folder=self._image_folder,
                content_type=image.content_type,
            )
        except ImageUploadFailed as exc:
            exc.context.update(context)
            logger.error("Image upload failed", extra=context, exc_info=exc)
            return Err(exc)
        except Exception as exc:
            logger.exception("Image upload failed", extra=context)
            return Err(ImageUploadFailed("Image upload failed", context=context, cause=exc))

        if not uploaded.secure_url:
            logger.error("Image store returned no URL", extra=context)
            return Err(ImageUploadFailed("Image store returned no URL", context=context))
        return Ok(uploaded)

    async def _destroy_image_at(self, image_url: str, context: dict[str, Any]) -> bool:
        public_id = self._image_store.public_id_from_url(image_url)
        if public_id is None:
            logger.warning(
                "Stored image URL has no recognizable identifier",
                extra={**context, "image_url": image_url},
            )
            return False
        return await self._destroy_image(public_id, context)

    async def _destroy_image(self, public_id: str, context: dict[str, Any]) -> bool:
        try:
            removed = await asyncio.to_thread(self._image_store.destroy, public_id)
        except Exception as exc:
            logger.warning(
                "Failed to remove stored image",
                extra={**context, "public_id": public_id},
                exc_info=exc,
            )
            return False
        if not removed:
            logger.warning(
                "Image store refused to remove image",
                extra={**context, "public_id": public_id},
            )
        return removed
