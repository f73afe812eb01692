"""Global error handlers: consistent JSON error responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from skillforge.exceptions import (
    ConcurrencyConflictError,
    PhotoOwnershipError,
    SkillForgeError,
    StorageError,
    ValidationError,
)

logger = structlog.get_logger()

# Most specific first
_DOMAIN_STATUS: tuple[tuple[type[SkillForgeError], int], ...] = (
    (ValidationError, 422),
    (PhotoOwnershipError, 403),
    (ConcurrencyConflictError, 409),
    (StorageError, 503),
)


def status_for(exc: SkillForgeError) -> int:
    for exc_type, status in _DOMAIN_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 400


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(SkillForgeError)
    async def domain_exception_handler(request: Request, exc: SkillForgeError) -> JSONResponse:
        """Map domain errors to HTTP status codes."""
        status = status_for(exc)
        logger.info(
            "domain_error",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
            status=status,
        )
        return JSONResponse(
            status_code=status,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions: always return JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
