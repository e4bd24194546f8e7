"""FastAPI application factory."""
from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1 import api_router
from app.api.v1.endpoints import health
from app.config import Settings, get_settings
from app.services.container import ServiceContainer, build_container
from app.utils.exceptions import (
    NotifyServiceError,
    error_response,
    handle_service_error,
    handle_unexpected_error,
)


tags_metadata: List[dict[str, str]] = [
    {"name": "notify", "description": "Fan out notifications for job and application events."},
    {"name": "webpush", "description": "Manage the caller's browser push subscription."},
    {"name": "fcm", "description": "Manage the caller's FCM registration token."},
    {"name": "notifications", "description": "Read and acknowledge the caller's notification feed."},
]


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def create_app(container: Optional[ServiceContainer] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    When no container is passed, one is built from the settings on startup.
    """

    settings = settings or (container.settings if container else get_settings())
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "container", None) is None:
            app.state.container = build_container(settings)
        yield

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Notification fan-out for job and application events.",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = sorted({".".join(str(part) for part in err["loc"][1:]) or "body" for err in exc.errors()})
        return error_response(status.HTTP_400_BAD_REQUEST, f"Missing or invalid fields: {', '.join(fields)}")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    app.add_exception_handler(NotifyServiceError, handle_service_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(health.router)
    app.include_router(api_router, prefix=settings.API_BASE_PATH)
    return app


app = create_app()
