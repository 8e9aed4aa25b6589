"""
Main Entry Point - FastAPI Application
Project: Stair Ledger

Configures the FastAPI application with middleware, routers and lifecycle.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stairledger.api import api_v1_router
from stairledger.core.config import settings
from stairledger.core.database import close_db, init_db
from stairledger.core.exceptions import (
    AppException,
    BusinessValidationError,
    ConflictError,
    DuplicateError,
    NotFoundError,
)

# ------------------------------------------------------------
# Logging
# ------------------------------------------------------------
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# Lifespan Handler
# ------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle.

    - Startup: initialises the database connection
    - Shutdown: disposes of the connection pool
    """
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)
    await init_db()
    logger.info("Application started")

    yield

    logger.info("Shutting down...")
    await close_db()
    logger.info("Application stopped")


# ------------------------------------------------------------
# FastAPI Application
# ------------------------------------------------------------
app = FastAPI(
    title=settings.app_name,
    description="Quotes, staged invoices and CIS deductions for a staircase business",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug or settings.is_development else None,
    redoc_url="/redoc" if settings.debug or settings.is_development else None,
)


# ------------------------------------------------------------
# Exception Handlers
# ------------------------------------------------------------
def _error_response(exc: AppException) -> JSONResponse:
    content = {"detail": exc.detail, "error_code": exc.error_code}
    if exc.extra:
        content["extra"] = exc.extra
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Converts NotFoundError to HTTP 404."""
    return _error_response(exc)


@app.exception_handler(DuplicateError)
async def duplicate_exception_handler(request: Request, exc: DuplicateError) -> JSONResponse:
    """Converts DuplicateError to HTTP 409."""
    return _error_response(exc)


@app.exception_handler(BusinessValidationError)
async def validation_exception_handler(
    request: Request, exc: BusinessValidationError
) -> JSONResponse:
    """
    Converts BusinessValidationError to HTTP 422.

    CIS rejections carry their outcome code (CIS_NO_LABOUR,
    CIS_NON_POSITIVE_GROSS) in error_code.
    """
    return _error_response(exc)


@app.exception_handler(ConflictError)
async def conflict_exception_handler(request: Request, exc: ConflictError) -> JSONResponse:
    """Converts ConflictError to HTTP 409."""
    return _error_response(exc)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Any uncaught exception becomes HTTP 500 and is logged with its traceback."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error_code": "INTERNAL_SERVER_ERROR"},
    )


# ------------------------------------------------------------
# CORS Middleware
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------
@app.get(
    "/health",
    name="Health Check",
    summary="Application health",
    tags=["System"],
)
async def health_check() -> dict[str, str]:
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.app_env,
    }


# ------------------------------------------------------------
# Router
# ------------------------------------------------------------
app.include_router(api_v1_router)
