"""Error taxonomy and result types shared by the post services.

Service operations never let these escape as exceptions: they are returned
inside an ``Err`` so callers branch on the outcome explicitly. The image
store adapters do raise ``ImageUploadFailed``; the service converts it at
its boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar, Union

T = TypeVar("T")


class PostServiceError(Exception):
    """Base class carrying a client-safe message plus server-side context."""

    code: ClassVar[str] = "UNEXPECTED_ERROR"

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def describe(self) -> str:
        """Return the message with the underlying cause, for logs only."""
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


class ValidationError(PostServiceError):
    code = "VALIDATION_ERROR"


class NotFoundError(PostServiceError):
    code = "NOT_FOUND"


class ImageUploadFailed(PostServiceError):
    code = "IMAGE_UPLOAD_FAILED"


class PersistenceFailed(PostServiceError):
    code = "PERSISTENCE_FAILED"


class UnexpectedError(PostServiceError):
    code = "UNEXPECTED_ERROR"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: PostServiceError


Result = Union[Ok[T], Err]


__all__ = [
    "PostServiceError",
    "ValidationError",
    "NotFoundError",
    "ImageUploadFailed",
    "PersistenceFailed",
    "UnexpectedError",
    "Ok",
    "Err",
    "Result",
]
