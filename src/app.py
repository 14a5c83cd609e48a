"""FastAPI application factory for the BuildConnect marketplace API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.config import settings
from src.database.engine import engine
from src.exceptions import AppException
from src.logging_config import configure_logging
from src.middleware.request_id import RequestIdMiddleware
from src.modules.presence.registry import presence_registry

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit_default])


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("BuildConnect API starting (%s)", settings.environment)
    yield
    # Sockets die with the process; forget them before the pool goes away
    await presence_registry.clear()
    await engine.dispose()


def error_envelope(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: list | None = None,
) -> JSONResponse:
    """Every failure leaves the API in the same ``{"error": {...}}`` shape."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or [],
                "requestId": getattr(request.state, "request_id", None),
            }
        },
    )


def _field_errors(exc: RequestValidationError) -> list[dict]:
    # Drop the leading "body"/"query" segment so clients see their own field names
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if len(loc) > 1 and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return errors


def register_exception_handlers(application: FastAPI) -> None:
    @application.exception_handler(AppException)
    async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s: %s %s", exc.code, exc.message, exc.details)
        return error_envelope(request, exc.status_code, exc.code, exc.message, exc.details)

    @application.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_envelope(
            request, 422, "VALIDATION_ERROR", "Validation failed", _field_errors(exc)
        )

    @application.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
        # A unique constraint lost a race the service-level checks could not see
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return error_envelope(request, 409, "CONFLICT", "The change conflicts with existing data")

    @application.exception_handler(RateLimitExceeded)
    async def handle_rate_limit(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        return error_envelope(request, 429, "RATE_LIMITED", f"Too many requests: {exc.detail}")

    @application.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_envelope(request, 500, "INTERNAL_ERROR", "An unexpected error occurred.")


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    application = FastAPI(
        title="BuildConnect Marketplace API",
        description="Homeowners post requirements; companies and professionals compete with quotes.",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    application.state.limiter = limiter

    # Starlette wraps in reverse order: RequestId is outermost
    application.add_middleware(SlowAPIMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    application.add_middleware(RequestIdMiddleware)

    from src.api.v1 import v1_router

    application.include_router(v1_router)
    register_exception_handlers(application)

    @application.get("/health", tags=["ops"])
    async def health_check() -> JSONResponse:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError):
            logger.warning("Health check could not reach the database")
            return JSONResponse(status_code=503, content={"status": "degraded", "database": "unreachable"})
        return JSONResponse(content={"status": "ok", "database": "ok"})

    return application


app = create_app()
