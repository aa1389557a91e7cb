"""Exception handlers rendering a uniform JSON error envelope."""

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException

logger = structlog.get_logger(__name__)


def _error_body(error: str, message: object, request: Request, **extra: object) -> dict:
    return {"error": error, "message": message, "path": str(request.url), **extra}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle custom application exceptions (404, 409 slot conflicts, ...)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.__class__.__name__, exc.message, request),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions raised by FastAPI and the auth dependencies."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTPException", exc.detail, request),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request validation errors with per-field details."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            "ValidationError",
            "Request validation failed",
            request,
            details=jsonable_errors(exc),
        ),
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the non-serializable ``ctx`` payloads."""
    return [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions, including persistence failures."""
    logger.error(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("InternalServerError", "An unexpected error occurred", request),
    )
