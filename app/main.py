"""FastAPI application factory shared by the serverless and server transports."""

from __future__ import annotations

import logging
import math
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any

import structlog
from bson import ObjectId
from fastapi import Body, FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import metrics
from app.errors import ItemsError
from app.items import ItemService
from app.settings import Settings, get_settings
from app.store import ConnectionManager

LOGGER = structlog.get_logger(__name__)

ITEMS_PATH = "/api/items"


def configure_logging(log_level: str) -> None:
    numeric_level = logging.getLevelName(log_level.upper())
    if isinstance(numeric_level, str):
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )


def _finite(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _finite(inner) for key, inner in value.items()}
    if isinstance(value, list):
        return [_finite(inner) for inner in value]
    return value


def encode(payload: Any) -> Any:
    """Render store documents as strict JSON (hex ids, ISO dates, no NaN)."""
    return _finite(jsonable_encoder(payload, custom_encoder={ObjectId: str}))


def create_app(
    settings: Settings | None = None,
    *,
    connections: ConnectionManager | None = None,
    eager_connect: bool = False,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    connections = connections or ConnectionManager(settings)
    items = ItemService(connections, stamp_created_at=settings.stamp_created_at)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if eager_connect:
            try:
                await connections.get_database()
            except PyMongoError as exc:
                # keep serving; requests retry the connection lazily
                LOGGER.error("store.connect_failed", error=str(exc))
        yield
        await connections.close()

    app = FastAPI(title=f"{settings.service_name} API", version=settings.api_version, lifespan=lifespan)
    app.state.connections = connections

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def enforce_limits(request: Request, call_next):
        if request.method == "POST" and request.url.path == ITEMS_PATH:
            limit = settings.max_request_size_bytes
            content_length = request.headers.get("content-length")
            if content_length:
                try:
                    size = int(content_length)
                    if size > limit:
                        LOGGER.warning(
                            "request_rejected",
                            path=str(request.url.path),
                            reason="body_too_large",
                            size=size,
                            limit=limit,
                        )
                        return JSONResponse(
                            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                            content={"message": "Request too large"},
                        )
                except ValueError:
                    pass  # Ignore malformed header and fall through
        return await call_next(request)

    @app.exception_handler(ItemsError)
    async def items_error_handler(request: Request, exc: ItemsError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response(include_detail=settings.expose_error_detail),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        LOGGER.warning("request_invalid", path=str(request.url.path), errors=len(exc.errors()))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Invalid request body"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.error("request_failed", path=str(request.url.path), exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Server error"},
        )

    @app.get("/")
    async def live() -> dict[str, str]:
        return {"message": settings.live_message}

    @app.get(ITEMS_PATH)
    async def list_items() -> JSONResponse:
        result = await items.list_items()
        return JSONResponse(content=encode(result))

    @app.get(ITEMS_PATH + "/{item_id}")
    async def get_item(item_id: str) -> JSONResponse:
        result = await items.get_item(item_id)
        return JSONResponse(content=encode(result))

    @app.post(ITEMS_PATH)
    async def create_item(
        payload: Annotated[dict[str, Any] | None, Body()] = None,
    ) -> JSONResponse:
        result = await items.create_item(payload or {})
        return JSONResponse(status_code=status.HTTP_201_CREATED, content=encode(result.asdict()))

    @app.get("/metrics")
    async def metrics_endpoint() -> Response:
        if not settings.metrics_enabled:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"message": "metrics disabled"},
            )
        payload, content_type = metrics.render_metrics()
        return Response(content=payload, media_type=content_type)

    return app
