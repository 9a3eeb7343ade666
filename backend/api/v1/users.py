"""User-scoped post endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.deps import get_current_user, get_post_controller
from models import User
from services.posts import PostSummary

from .post_controller import PostController
from .responses import ApiResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}/posts", response_model=ApiResponse[list[PostSummary]])
async def list_user_posts(
    user_id: str,
    _current_user: User = Depends(get_current_user),
    controller: PostController = Depends(get_post_controller),
) -> JSONResponse:
    return await controller.user_posts(user_id)
