"""Business logic services."""

from .errors import (
    Err,
    ImageUploadFailed,
    NotFoundError,
    Ok,
    PersistenceFailed,
    PostServiceError,
    Result,
    UnexpectedError,
    ValidationError,
)
from .image_store import (
    CloudinaryImageStore,
    ImageStore,
    MinioImageStore,
    UploadedImage,
    get_image_store,
    public_id_from_versioned_url,
)
from .images import UploadTooLargeError, detect_image_content_type, read_upload_file
from .storage import delete_object, ensure_bucket, get_minio_client

__all__ = [
    "Ok",
    "Err",
    "Result",
    "PostServiceError",
    "ValidationError",
    "NotFoundError",
    "ImageUploadFailed",
    "PersistenceFailed",
    "UnexpectedError",
    "ImageStore",
    "UploadedImage",
    "CloudinaryImageStore",
    "MinioImageStore",
    "get_image_store",
    "public_id_from_versioned_url",
    "UploadTooLargeError",
    "detect_image_content_type",
    "read_upload_file",
    "get_minio_client",
    "ensure_bucket",
    "delete_object",
]
