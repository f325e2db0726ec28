"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.router import api_router
from app.config import settings
from app.core.database import close_db, init_db
from app.core.exceptions import BlogWriterError
from app.core.logging import setup_logging
from app.integrations.blog_writer import BlogWriterClient

logger = logging.getLogger(__name__)


def error_body(error: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": error}
    if details:
        body["details"] = details
    return body


def validation_error_body(errors: list[dict[str, Any]]) -> dict[str, Any]:
    """Name missing fields when that is the only problem, otherwise echo the errors."""
    missing = [
        str(err["loc"][-1])
        for err in errors
        if err.get("type") == "missing" and err.get("loc")
    ]
    if missing and len(missing) == len(errors):
        return error_body(f"Missing required fields: {', '.join(missing)}")
    return error_body("Invalid request body", {"errors": jsonable_encoder(errors)})


async def blog_writer_error_handler(request: Request, exc: Exception) -> JSONResponse:
    err = cast(BlogWriterError, exc)
    if err.status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error": err.message, "status": err.status_code},
        )
    else:
        logger.warning(
            "Request rejected",
            extra={"path": request.url.path, "error": err.message, "status": err.status_code},
        )
    return JSONResponse(
        status_code=err.status_code,
        content=error_body(err.message, jsonable_encoder(err.details)),
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    err = cast(StarletteHTTPException, exc)
    if isinstance(err.detail, dict):
        content = jsonable_encoder(err.detail)
        content.setdefault("error", "Request failed")
    else:
        content = error_body(str(err.detail))
    return JSONResponse(
        status_code=err.status_code,
        content=content,
        headers=getattr(err, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    err = cast(RequestValidationError, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=validation_error_body(list(err.errors())),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    setup_logging()

    logger.info(
        "Starting Blog Writer",
        extra={
            "environment": settings.environment,
            "version": settings.app_version,
            "blog_writer_configured": settings.blog_writer_configured,
        },
    )

    if settings.environment == "development":
        await init_db()
        logger.info("Development database initialized")

    yield

    logger.info("Shutting down Blog Writer")
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Multi-tenant blog writer backend: keyword research, content "
            "generation, approvals, CMS publishing, media and interlinking"
        ),
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        cast(Any, CORSMiddleware),
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BlogWriterError, blog_writer_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Include API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get(
        "/health",
        summary="Health check",
        description="Return service health status and version information.",
    )
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.app_version}

    @app.get(
        "/health/blog-writer",
        summary="Content backend health check",
        description="Check the content generation backend and report its latency.",
    )
    async def blog_writer_health_check() -> dict[str, Any]:
        async with BlogWriterClient(timeout=10.0) as client:
            return await client.health()

    return app


app = create_app()
