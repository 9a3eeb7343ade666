"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from api.errors import register_exception_handlers
from api.routes import api_router
from core import configure_logging, settings


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    application = FastAPI(title=settings.app_name)
    register_exception_handlers(application)
    application.include_router(api_router, prefix=settings.api_prefix)

    @application.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
