"""FastAPI application factory and global exception handling."""

from __future__ import annotations

import logging
from typing import Any, Optional

import anyio
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse

from app import __version__ as app_version
from app.api.routes import router
from app.config import Settings, get_settings
from app.directory.errors import (
    ProfileNotFoundError,
    ProfileValidationError,
    StorageError,
)
from app.directory.site import load_site_settings
from app.directory.store import JsonProfileStore
from app.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Campus profile directory with admin-managed entries.",
        version=app_version,
    )
    app.state.settings = settings
    app.state.store = JsonProfileStore(settings.data_path)
    app.state.site = load_site_settings(settings.site_settings_path)
    logger.info(f"Profile store at {settings.data_path} ({settings.environment})")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        detail = exc.detail
        if isinstance(detail, dict) and "error" in detail:
            payload = detail
        elif detail == "There was an error parsing the body":
            payload = {"error": "invalid_json", "details": detail}
        else:
            payload = {"error": "http_error", "details": detail}
        return JSONResponse(
            status_code=exc.status_code,
            content=payload,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(ProfileValidationError)
    async def profile_validation_handler(
        request: Request, exc: ProfileValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "validation_error", "details": str(exc)},
        )

    @app.exception_handler(ProfileNotFoundError)
    async def not_found_handler(
        request: Request, exc: ProfileNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"error": "not_found", "id": exc.profile_id},
        )

    @app.exception_handler(StorageError)
    async def storage_error_handler(
        request: Request, exc: StorageError
    ) -> JSONResponse:
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "storage_error", "details": "Failed to access profiles."},
        )

    @app.get("/healthz", tags=["health"])
    async def healthz() -> dict[str, Any]:
        profiles = await anyio.to_thread.run_sync(app.state.store.list_all)
        return {
            "status": "ok",
            "version": app_version,
            "profiles": len(profiles),
            "max_payload_bytes": settings.max_payload_bytes,
        }

    app.include_router(router)
    return app


app = create_application()
