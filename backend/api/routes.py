"""Aggregate router for every API version."""

from fastapi import APIRouter

from .v1 import posts, users

api_router = APIRouter()
api_router.include_router(posts.router)
api_router.include_router(users.router)
