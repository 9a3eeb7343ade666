"""Image store backends used for post images.

Both backends expose the same small surface: ``upload`` returns the public
URL and identifier of the stored asset, ``destroy`` removes an asset by
identifier and reports whether the store accepted the removal, and
``public_id_from_url`` recovers the identifier from a URL previously
returned by ``upload``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from io import BytesIO
from typing import Any, Protocol, runtime_checkable
from uuid import uuid4

import cloudinary
import cloudinary.uploader
from minio import Minio

from core import settings

from . import storage
from .errors import ImageUploadFailed

logger = logging.getLogger(__name__)

# "/v1712345678/posts/abc123.jpg" -> "posts/abc123"
VERSIONED_PUBLIC_ID_PATTERN = re.compile(r"/v\d+/([^.]+)")
CLOUDINARY_QUALITY_POLICY: dict[str, str] = {"quality": "auto", "fetch_format": "auto"}
CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
}


@dataclass(frozen=True)
class UploadedImage:
    secure_url: str
    public_id: str


@runtime_checkable
class ImageStore(Protocol):
    def upload(self, data: bytes, *, folder: str, content_type: str) -> UploadedImage: ...

    def destroy(self, public_id: str) -> bool: ...

    def public_id_from_url(self, url: str) -> str | None: ...


def public_id_from_versioned_url(url: str) -> str | None:
    """Extract the identifier that follows the versioned path segment."""
    match = VERSIONED_PUBLIC_ID_PATTERN.search(url)
    if match is None:
        return None
    return match.group(1)


class CloudinaryImageStore:
    """Cloudinary-hosted images addressed by versioned public URLs."""

    def __init__(self, *, configure: bool = True) -> None:
        if configure:
            cloudinary.config(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                secure=True,
            )

    def upload(self, data: bytes, *, folder: str, content_type: str) -> UploadedImage:
        try:
            uploaded: dict[str, Any] = cloudinary.uploader.upload(
                BytesIO(data),
                folder=folder,
                transformation=[CLOUDINARY_QUALITY_POLICY],
            )
        except Exception as exc:
            raise ImageUploadFailed(
                "Image upload failed",
                context={"backend": "cloudinary", "folder": folder},
                cause=exc,
            ) from exc

        secure_url = (uploaded or {}).get("secure_url")
        if not secure_url:
            raise ImageUploadFailed(
                "Image store returned no URL",
                context={"backend": "cloudinary", "folder": folder},
            )
        public_id = uploaded.get("public_id") or public_id_from_versioned_url(secure_url) or ""
        return UploadedImage(secure_url=secure_url, public_id=public_id)

    def destroy(self, public_id: str) -> bool:
        try:
            outcome = cloudinary.uploader.destroy(public_id)
        except Exception as exc:
            logger.warning(
                "Cloudinary destroy failed",
                extra={"public_id": public_id},
                exc_info=exc,
            )
            return False
        return (outcome or {}).get("result") in {"ok", "not found"}

    def public_id_from_url(self, url: str) -> str | None:
        return public_id_from_versioned_url(url)


class MinioImageStore:
    """Images kept in the MinIO bucket and served from its public URL."""

    def __init__(self, client: Minio | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Minio:
        return self._client or storage.get_minio_client()

    def upload(self, data: bytes, *, folder: str, content_type: str) -> UploadedImage:
        extension = CONTENT_TYPE_EXTENSIONS.get(content_type, "bin")
        object_key = f"{folder.strip('/')}/{uuid4().hex}.{extension}"
        client = self.client
        try:
            storage.ensure_bucket(client)
            storage.put_object(object_key, data, content_type, client)
        except Exception as exc:
            raise ImageUploadFailed(
                "Image upload failed",
                context={"backend": "minio", "object_key": object_key},
                cause=exc,
            ) from exc
        return UploadedImage(
            secure_url=storage.public_object_url(object_key),
            public_id=object_key,
        )

    def destroy(self, public_id: str) -> bool:
        try:
            storage.delete_object(public_id, self.client)
        except Exception as exc:
            logger.warning(
                "MinIO object removal failed",
                extra={"object_key": public_id},
                exc_info=exc,
            )
            return False
        return True

    def public_id_from_url(self, url: str) -> str | None:
        prefix = f"{storage.public_bucket_url()}/"
        if not url.startswith(prefix):
            return None
        object_key = url[len(prefix):].split("?", 1)[0]
        return object_key or None


@lru_cache
def get_image_store() -> ImageStore:
    """Return the process-wide image store selected in settings."""
    if settings.image_store_backend == "cloudinary":
        return CloudinaryImageStore()
    return MinioImageStore()
