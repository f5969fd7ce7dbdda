from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from direct_chat.api.deps import get_verifier
from direct_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from direct_chat.api.middleware.timing import RequestTimingMiddleware
from direct_chat.api.v1.routers import auth, health, messages, upload, ws
from direct_chat.application.exceptions import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from direct_chat.config import settings
from direct_chat.infrastructure.db.session import engine
from direct_chat.infrastructure.images.cloudinary_host import CloudinaryImageHost
from direct_chat.realtime.connections import ConnectionTable
from direct_chat.realtime.gateway import ConnectionGateway
from direct_chat.realtime.registry import SessionRegistry
from direct_chat.realtime.router import EventRouter

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[AppError], int] = {
    NotFoundError: 404,
    UnauthorizedError: 401,
    ForbiddenError: 403,
    # Acting on a deleted message, or a taken email, is a bad request
    ConflictError: 400,
    ValidationError: 400,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    logger.info("Chat service starting")

    yield

    await engine.dispose()
    logger.info(
        "Chat service stopped (%d sessions dropped)", len(app.state.registry),
    )


def _build_realtime(app: FastAPI) -> None:
    """Create the presence/delivery objects once per app and share them via app.state."""
    registry = SessionRegistry()
    connections = ConnectionTable()
    event_router = EventRouter(registry, connections)
    app.state.registry = registry
    app.state.connections = connections
    app.state.event_router = event_router
    app.state.gateway = ConnectionGateway(
        registry,
        connections,
        event_router,
        get_verifier() if settings.WS_REQUIRE_TOKEN else None,
        heartbeat_seconds=settings.WS_HEARTBEAT_SECONDS,
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Direct Chat Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _build_realtime(app)
    app.state.image_host = CloudinaryImageHost(
        settings.CLOUDINARY_CLOUD_NAME,
        settings.CLOUDINARY_API_KEY,
        settings.CLOUDINARY_API_SECRET,
        upload_preset=settings.CLOUDINARY_UPLOAD_PRESET,
        folder=settings.CLOUDINARY_FOLDER,
    )

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(messages.router)
    app.include_router(upload.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(_req: Request, exc: AppError) -> JSONResponse:
        status = next(
            (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)), 400,
        )
        return JSONResponse(status_code=status, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def _validation(_req: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "details": details},
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http(_req: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def _unexpected(req: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", req.method, req.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
