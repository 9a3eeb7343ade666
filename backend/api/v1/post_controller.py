"""HTTP adapter between the post routes and the post service."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from fastapi import UploadFile, status
from fastapi.responses import JSONResponse

from core import settings
from models import MAX_POST_TITLE_LENGTH
from services import (
    Err,
    ImageUploadFailed,
    NotFoundError,
    PersistenceFailed,
    PostServiceError,
    ValidationError,
    detect_image_content_type,
    read_upload_file,
)
from services.posts import UNSET, ImageUpload, PostCreateFields, PostService, PostUpdateFields

from .responses import ErrorDetail, error_response, success_response

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[PostServiceError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ImageUploadFailed: status.HTTP_500_INTERNAL_SERVER_ERROR,
    PersistenceFailed: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class InvalidPayload(ValidationError):
    """Raised while parsing a request payload; always mapped to 422."""


class InvalidIngredients(InvalidPayload):
    code = "INVALID_JSON"


def _status_for(error: PostServiceError) -> int:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _require_text(field: str, value: str, *, max_length: int | None = None) -> str:
    normalized = value.strip()
    if not normalized:
        raise InvalidPayload(f"The {field} field is required", context={"field": field})
    if max_length is not None and len(normalized) > max_length:
        raise InvalidPayload(
            f"The {field} field must be at most {max_length} characters",
            context={"field": field},
        )
    return normalized


def _decode_ingredients(raw: str, *, allow_null: bool = False) -> Any:
    """Parse ingredients as a JSON list or object; ``null`` only clears on update."""
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidIngredients(
            "Invalid ingredients format",
            context={"field": "ingredients", "detail": exc.msg},
            cause=exc,
        ) from exc
    if value is None and allow_null:
        return None
    if not isinstance(value, (list, dict)):
        raise InvalidIngredients(
            "Invalid ingredients format",
            context={"field": "ingredients", "detail": "expected a JSON list or object"},
        )
    return value


async def _read_image(upload: UploadFile) -> ImageUpload:
    try:
        data = await read_upload_file(upload, settings.upload_max_bytes)
        content_type = detect_image_content_type(data)
    except ValueError as exc:
        raise InvalidPayload(str(exc), context={"field": "imagen"}, cause=exc) from exc
    return ImageUpload(data=data, content_type=content_type, filename=upload.filename)


class PostController:
    """Validates post payloads, calls the service and shapes the envelope."""

    def __init__(self, service: PostService) -> None:
        self._service = service

    async def index(self, filters: Mapping[str, str] | None = None) -> JSONResponse:
        if filters:
            result = await self._service.list_filtered(filters)
        else:
            result = await self._service.list_all()
        if isinstance(result, Err):
            return self._failure(result.error, "Failed to retrieve posts")
        return success_response(result.value, "Posts retrieved successfully")

    async def store(
        self,
        owner_id: str,
        *,
        title: str,
        description: str,
        image: UploadFile,
        ingredients: str,
    ) -> JSONResponse:
        try:
            fields = PostCreateFields(
                title=_require_text("title", title, max_length=MAX_POST_TITLE_LENGTH),
                description=_require_text("description", description),
                ingredients=_decode_ingredients(ingredients),
                image=await _read_image(image),
            )
        except InvalidPayload as exc:
            return self._invalid(exc, operation="store")

        result = await self._service.create(owner_id, fields)
        if isinstance(result, Err):
            return self._failure(result.error, "Failed to create post")
        return success_response(
            result.value,
            "Post created successfully",
            status.HTTP_201_CREATED,
        )

    async def show(self, post_id: int) -> JSONResponse:
        result = await self._service.get_by_id(post_id)
        if isinstance(result, Err):
            return self._failure(result.error, "Failed to retrieve post")
        return success_response(result.value, "Post retrieved successfully")

    async def update(
        self,
        post_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        image: UploadFile | None = None,
        ingredients: str | None = None,
    ) -> JSONResponse:
        try:
            fields = PostUpdateFields(
                title=(
                    _require_text("title", title, max_length=MAX_POST_TITLE_LENGTH)
                    if title is not None
                    else None
                ),
                description=(
                    _require_text("description", description)
                    if description is not None
                    else None
                ),
                ingredients=(
                    _decode_ingredients(ingredients, allow_null=True)
                    if ingredients is not None
                    else UNSET
                ),
                image=await _read_image(image) if image is not None else None,
            )
        except InvalidPayload as exc:
            return self._invalid(exc, operation="update", post_id=post_id)

        if fields.is_empty():
            logger.warning("Empty post update rejected", extra={"post_id": post_id})
            return error_response(
                "No valid fields were provided for the update",
                status.HTTP_422_UNPROCESSABLE_CONTENT,
                ErrorDetail(
                    code="VALIDATION_ERROR",
                    detail="The request does not contain any updatable field",
                ),
            )

        result = await self._service.update(post_id, fields)
        if isinstance(result, Err):
            return self._failure(result.error, "Failed to update post")
        return success_response(result.value, "Post updated successfully")

    async def destroy(self, post_id: int) -> JSONResponse:
        result = await self._service.delete(post_id)
        if isinstance(result, Err):
            return self._failure(result.error, "Failed to delete post")
        return success_response(None, "Post deleted successfully")

    async def user_posts(self, user_id: str) -> JSONResponse:
        result = await self._service.list_by_owner(user_id)
        if isinstance(result, Err):
            return self._failure(result.error, "Failed to retrieve user posts")
        return success_response(result.value, "User posts retrieved successfully")

    async def following_posts(self, viewer_id: str) -> JSONResponse:
        result = await self._service.list_following_feed(viewer_id)
        if isinstance(result, Err):
            return self._failure(result.error, "Failed to retrieve following posts")
        return success_response(result.value, "Following posts retrieved successfully")

    async def public_posts(self) -> JSONResponse:
        result = await self._service.list_public_feed()
        if isinstance(result, Err):
            return self._failure(result.error, "Failed to retrieve public posts")
        return success_response(result.value, "Public posts retrieved successfully")

    def _invalid(self, error: InvalidPayload, **context: Any) -> JSONResponse:
        logger.warning(
            "Post payload rejected",
            extra={**context, **error.context, "code": error.code},
        )
        return error_response(
            error.message,
            status.HTTP_422_UNPROCESSABLE_CONTENT,
            ErrorDetail(code=error.code, detail=error.message),
        )

    def _failure(self, error: PostServiceError, fallback_message: str) -> JSONResponse:
        status_code = _status_for(error)
        logger.error(
            "%s: %s",
            fallback_message,
            error.describe(),
            extra={**error.context, "code": error.code},
        )
        message = error.message if isinstance(error, NotFoundError) else fallback_message
        return error_response(
            message,
            status_code,
            ErrorDetail(code=error.code, detail=error.message),
        )
