"""FastAPI main application module."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from parkease import __version__
from parkease.domain.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ParkingError,
    ValidationError,
)
from parkease.infrastructure.logging import get_logger, setup_logging_from_env
from parkease.infrastructure.services import initialize_services, shutdown_services
from .config import get_settings
from .middleware.logging import RequestResponseLoggingMiddleware
from .routes import bookings, health, locations, slots

logger = get_logger(__name__)

# Most specific kinds first
ERROR_STATUS_CODES = (
    (NotFoundError, 404),
    (ConflictError, 409),
    (ForbiddenError, 403),
    (ValidationError, 400),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    logger.info("Starting ParkEase API")
    await initialize_services()

    yield

    # Shutdown
    logger.info("Shutting down ParkEase API")
    await shutdown_services()


def status_code_for(exc: ParkingError) -> int:
    """HTTP status for a domain error kind."""
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


def add_exception_handlers(app: FastAPI) -> None:
    """Add custom exception handlers to the FastAPI application."""

    @app.exception_handler(ParkingError)
    async def parking_error_handler(request: Request, exc: ParkingError):
        """Map domain errors to HTTP responses."""
        status_code = status_code_for(exc)
        logger.warning(
            f"{exc.kind} on {request.method} {request.url.path}: {exc.message}",
            extra={"error_code": exc.code, "error_details": exc.details, "response_status": status_code}
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "detail": exc.message,
                "type": exc.kind,
                "code": exc.code
            }
        )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    setup_logging_from_env(settings.log_level)

    app = FastAPI(
        title="ParkEase",
        description="API for parking slot allocation and booking lifecycle management",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # Add custom exception handlers
    add_exception_handlers(app)

    app.add_middleware(RequestResponseLoggingMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(
        locations.router,
        prefix=f"{settings.api_prefix}/locations",
        tags=["locations"]
    )
    app.include_router(
        slots.router,
        prefix=f"{settings.api_prefix}/slots",
        tags=["slots"]
    )
    app.include_router(
        bookings.router,
        prefix=f"{settings.api_prefix}/bookings",
        tags=["bookings"]
    )

    return app


# Create app instance
app = create_app()
