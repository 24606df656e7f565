"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from oncosafe.config import Settings
from oncosafe.config import settings as default_settings
from oncosafe.routes import drugs, feedback, patients, users
from oncosafe.services.feedback_classifier import TicketNumberer
from oncosafe.storage import StorageService, StorageWriteError, create_storage

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        return response


async def storage_write_error_handler(request: Request, exc: StorageWriteError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": str(exc)})


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Document validation raised inside a store (not by FastAPI's body parsing)."""
    errors = exc.errors(include_url=False, include_context=False)
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


def create_app(settings: Settings | None = None, store: StorageService | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration; defaults to the environment-loaded settings.
        store: Pre-built store. When omitted, one is created from ``settings``
            at startup and closed at shutdown.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = store is None
        app.state.storage = create_storage(settings) if owned else store
        app.state.ticket_numberer = TicketNumberer()
        logger.info("Storage ready (%s)", app.state.storage.mode.value)

        yield  # Application runs here

        close = getattr(app.state.storage, "close", None)
        if owned and close is not None:
            await close()

    app = FastAPI(
        title="OncoSafeRx Storage",
        description="Persistence service for the OncoSafeRx clinical decision-support app",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Security headers middleware (applied to all responses)
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS middleware for frontend
    # Parse comma-separated origins from config
    cors_origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(StorageWriteError, storage_write_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)

    # Include API routers
    app.include_router(users.router, prefix="/api")
    app.include_router(patients.router, prefix="/api")
    app.include_router(drugs.router, prefix="/api")
    app.include_router(feedback.router, prefix="/api")

    @app.get("/health")
    async def health_check(request: Request) -> dict:
        """Health check endpoint; reports which store is active."""
        return {"status": "healthy", "storage": request.app.state.storage.mode.value}

    return app


app = create_app()
