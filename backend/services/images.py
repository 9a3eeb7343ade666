"""Upload reading and image validation helpers."""

from __future__ import annotations

from io import BytesIO

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

READ_CHUNK_SIZE = 64 * 1024
ALLOWED_IMAGE_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
}


class UploadTooLargeError(ValueError):
    """Raised when an uploaded file exceeds the configured size limit."""


async def read_upload_file(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload into memory, refusing to buffer more than max_bytes."""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise UploadTooLargeError(
                f"Image must be at most {max_bytes // 1024} KB"
            )
        chunks.append(chunk)
    return b"".join(chunks)


def detect_image_content_type(data: bytes) -> str:
    """Return the MIME type of a jpeg/png/gif payload or raise ValueError."""
    if not data:
        raise ValueError("Image file is empty")
    try:
        with Image.open(BytesIO(data)) as image:
            image_format = image.format
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValueError("File is not a valid image") from exc

    content_type = ALLOWED_IMAGE_FORMATS.get(image_format or "")
    if content_type is None:
        raise ValueError("Image must be a jpeg, png, jpg or gif file")
    return content_type
