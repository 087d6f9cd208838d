"""
ACA Chile Inscriptions API - Main Application Entry Point

Event registration service for the association's members:
- Inscription lifecycle with atomic participant counters
- Redis listing cache with per-event tagged invalidation
- Structured logging with request correlation
- Uniform {success, error} JSON envelope for every failure
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.errors import AppError, InternalFailure
from app.core.logging import setup_logging, get_logger
from app.core.metrics import metrics_endpoint
from app.api.router import api_router
from app.api.middleware import PreflightCORSMiddleware, RequestLoggingMiddleware
from app import models  # noqa: F401 - register tables on the metadata
from app.db.base import Base
from app.db.session import engine
from app.infrastructure.redis_client import get_redis, close_redis
from app.services.cache_service import get_cache_stats

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        cancellation_strategy=settings.CANCELLATION_STRATEGY,
    )

    if settings.DB_CREATE_ALL:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_tables_ensured")

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    await close_redis()
    await engine.dispose()
    logger.info("application_shutdown")


def _envelope(status_code: int, message: str, code: Optional[str] = None) -> JSONResponse:
    body = {"success": False, "error": message}
    if code:
        body["code"] = code
    return JSONResponse(status_code=status_code, content=body)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Event inscriptions API for ACA Chile",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    # 5xx kinds carry a machine-readable code so drift can be told apart
    code = exc.code if exc.status_code >= 500 else None
    return _envelope(exc.status_code, exc.message, code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = f"Datos inválidos: {field} {first.get('msg', '')}".strip()
    return _envelope(status.HTTP_422_UNPROCESSABLE_ENTITY, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return _envelope(exc.status_code, f"Método {request.method} no permitido")
    return _envelope(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_exception", error=str(exc), exc_info=exc)
    failure = InternalFailure()
    return _envelope(failure.status_code, failure.message, failure.code)


# Middleware order: the last added runs first, so CORS wraps everything
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=86400,
)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
