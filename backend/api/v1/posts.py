"""Recipe post endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse

from api.deps import get_current_user, get_post_controller, require_post_owner
from models import User
from services.posts import PostResponse

from .post_controller import PostController
from .responses import ApiResponse

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=ApiResponse[list[PostResponse]])
async def list_posts(
    request: Request,
    controller: PostController = Depends(get_post_controller),
) -> JSONResponse:
    return await controller.index(dict(request.query_params))


# Literal segments must stay registered ahead of "/{post_id}".
@router.get("/public", response_model=ApiResponse[list[PostResponse]])
async def list_public_posts(
    controller: PostController = Depends(get_post_controller),
) -> JSONResponse:
    return await controller.public_posts()


@router.get("/following", response_model=ApiResponse[list[PostResponse]])
async def list_following_posts(
    current_user: User = Depends(get_current_user),
    controller: PostController = Depends(get_post_controller),
) -> JSONResponse:
    return await controller.following_posts(current_user.id)


@router.get("/{post_id}", response_model=ApiResponse[PostResponse])
async def get_post(
    post_id: int,
    controller: PostController = Depends(get_post_controller),
) -> JSONResponse:
    return await controller.show(post_id)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[PostResponse],
)
async def create_post(
    title: str = Form(...),
    description: str = Form(...),
    imagen: UploadFile = File(...),
    ingredients: str = Form(...),
    current_user: User = Depends(get_current_user),
    controller: PostController = Depends(get_post_controller),
) -> JSONResponse:
    return await controller.store(
        current_user.id,
        title=title,
        description=description,
        image=imagen,
        ingredients=ingredients,
    )


@router.put("/{post_id}", response_model=ApiResponse[PostResponse])
async def update_post(
    post_id: int,
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
    imagen: UploadFile | None = File(default=None),
    ingredients: str | None = Form(default=None),
    _owner: User = Depends(require_post_owner),
    controller: PostController = Depends(get_post_controller),
) -> JSONResponse:
    return await controller.update(
        post_id,
        title=title,
        description=description,
        image=imagen,
        ingredients=ingredients,
    )


@router.delete("/{post_id}", response_model=ApiResponse[None])
async def delete_post(
    post_id: int,
    _owner: User = Depends(require_post_owner),
    controller: PostController = Depends(get_post_controller),
) -> JSONResponse:
    return await controller.destroy(post_id)
