import traceback
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from restaurant.app.api import availability, catering, feedback, reservations
from restaurant.app.api.admin.router import router as admin_router
from restaurant.app.core.config import settings
from restaurant.app.core.http_client import init_http_client
from restaurant.app.core.logging import get_logger, setup_logging
from restaurant.app.db.async_session import check_database, close_async_engine, init_async_db
from restaurant.app.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    RateLimitExceededError,
    ValidationFailedError,
)
from restaurant.app.middleware.rate_limit import (
    AdmissionController,
    DDoSGuardMiddleware,
    rate_limit_response,
)
from restaurant.app.middleware.request_id import RequestIdMiddleware, get_request_id

RATE_LIMIT_HEADERS = [
    "X-Request-ID",
    "X-RateLimit-Limit",
    "X-RateLimit-Remaining",
    "X-RateLimit-Reset",
    "X-RateLimit-Window",
    "Retry-After",
]


def _error_response(
    request: Request,
    status_code: int,
    content: dict,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """JSON error that keeps the X-RateLimit-* headers of an admitted request."""
    merged = {}
    admitted = getattr(request.state, "rate_limit", None)
    if admitted is not None:
        merged.update(admitted.headers())
    merged.update(headers or {})
    return JSONResponse(status_code=status_code, content=content, headers=merged)


def create_app(admission: Optional[AdmissionController] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        admission: Admission controller to use; built from settings when omitted

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Create tables and start the rate limit sweep; undo both on shutdown."""
        controller: AdmissionController = app.state.admission
        async with init_http_client():
            await init_async_db()
            await controller.start()

            logger.info(
                "Application startup complete",
                extra={
                    "rate_limit_enabled": controller.enabled,
                    "redis_enabled": settings.redis_enabled,
                    "debug_mode": settings.debug,
                },
            )

            yield

            await controller.shutdown()

        await close_async_engine()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Nature Village Restaurant API",
        description="Reservations, catering and feedback with per-client admission control",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.admission = admission or AdmissionController.from_settings(settings)

    # Order matters: last added = first executed
    if settings.rate_limit_enabled and settings.rate_limit_ddos_enabled:
        app.add_middleware(DDoSGuardMiddleware)

    app.add_middleware(RequestIdMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=RATE_LIMIT_HEADERS,
        max_age=600,
    )

    app.include_router(reservations.router)
    app.include_router(availability.router)
    app.include_router(catering.router)
    app.include_router(feedback.router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        """Health check with database and rate limit store status."""
        health_status: dict[str, Any] = {"status": "ok", "components": {}}

        if await check_database():
            health_status["components"]["database"] = {"status": "ok"}
        else:
            health_status["status"] = "degraded"
            health_status["components"]["database"] = {"status": "error"}

        controller: AdmissionController = request.app.state.admission
        try:
            health_status["components"]["rate_limit"] = {
                "status": "ok",
                "store_size": await controller.store.size(),
                "cleanup_running": controller.running,
            }
        except Exception as e:
            health_status["status"] = "degraded"
            health_status["components"]["rate_limit"] = {
                "status": "error",
                "error": str(e)[:100],
            }

        return health_status

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
        """Handle RateLimitExceededError and return HTTP 429 response."""
        return rate_limit_response(exc.rejection)

    @app.exception_handler(ValidationFailedError)
    async def validation_handler(request: Request, exc: ValidationFailedError) -> JSONResponse:
        content: dict[str, Any] = {"error": exc.message}
        if exc.details:
            content["details"] = exc.details
        return _error_response(request, exc.status_code, content)

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        return _error_response(
            request, exc.status_code, {"error": exc.message, "suggestion": exc.suggestion}
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(request, exc.status_code, {"error": exc.message})

    @app.exception_handler(AuthenticationError)
    async def auth_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
        """Handle AuthenticationError and return HTTP 401 response."""
        return _error_response(
            request,
            exc.status_code,
            {"error": "authentication_failed", "message": exc.detail},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log unhandled exceptions; never send a traceback to the client."""
        request_id = get_request_id(request)
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
                "traceback": traceback.format_exc(),
            },
        )

        content: dict[str, Any] = {
            "error": "internal_error",
            "message": "Internal server error",
            "request_id": request_id,
        }
        if settings.debug:
            content["message"] = str(exc)
            content["exception_type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)

    return app


app = create_app()
