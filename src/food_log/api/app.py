"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from food_log.api.food import router as food_router
from food_log.api.notify import router as notify_router
from food_log.api.users import router as users_router
from food_log.app_logging import configure_logging
from food_log.config import parse_cors_origins
from food_log.containers import AppContainer
from food_log.domain.errors import (
    EntryValidationError,
    StorageFaultError,
    UnknownCategoryError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)
    settings = container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(EntryValidationError)
    async def handle_validation_error(
        request: Request, exc: EntryValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(UnknownCategoryError)
    async def handle_unknown_category(
        request: Request, exc: UnknownCategoryError
    ) -> JSONResponse:
        logger.warning(
            "Rejected entry for unknown category",
            extra={"category": exc.category_tag},
        )
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(StorageFaultError)
    async def handle_storage_fault(
        request: Request, exc: StorageFaultError
    ) -> JSONResponse:
        logger.error("Storage fault on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": _format_storage_error(settings.environment, exc)},
        )

    app.include_router(food_router)
    app.include_router(notify_router)
    app.include_router(users_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    settings.uploads_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.uploads_dir), name="uploads")
    if settings.public_dir.is_dir():
        app.mount(
            "/", StaticFiles(directory=settings.public_dir, html=True), name="public"
        )

    return app


def _format_storage_error(environment: str, exc: StorageFaultError) -> str:
    """Return a client-facing storage error with local debug info."""
    fallback = "Failed to save food data."
    if environment == "local":
        return f"{fallback} (debug: {exc})"
    return fallback
