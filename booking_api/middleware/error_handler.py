"""Error handling middleware.

Every failure is rendered in the response envelope
``{"success": false, "error": ..., "details": ...}``.
"""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from booking_api.core.exceptions import (
    AppException,
    BadRequestException,
    OperationFailedException,
)

logger = structlog.get_logger()

T = TypeVar("T")


def error_envelope(error: str, details: Any = None) -> dict[str, Any]:
    """Build the failure envelope."""
    content: dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return content


def handle_operation_errors(
    error_message: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Wrap an endpoint so unexpected failures report the operation that failed.

    Application exceptions pass through unchanged. Store integrity errors
    become 400 responses and anything else becomes a 500 carrying the
    underlying error message as ``details``.

    Args:
        error_message: Message used in the envelope, e.g. "Failed to create appointment"

    Returns:
        Endpoint decorator
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except AppException:
                raise
            except IntegrityError as e:
                error_msg = str(e.orig) if hasattr(e, "orig") else str(e)
                logger.warning("operation_rejected_by_store", operation=func.__name__, error=error_msg)
                raise BadRequestException(error_message, details=error_msg) from e
            except Exception as e:
                logger.error(
                    "operation_failed",
                    operation=func.__name__,
                    error=str(e),
                    exc_info=True,
                )
                raise OperationFailedException(error_message, details=str(e)) from e

        return wrapper

    return decorator


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom application exceptions.

    Args:
        request: Request object
        exc: Application exception

    Returns:
        JSON error response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.message, exc.details),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """
    Handle HTTP exceptions.

    Args:
        request: Request object
        exc: HTTP exception

    Returns:
        JSON error response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle validation errors.

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        JSON error response with validation details
    """
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope("Validation failed", details),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: Request object
        exc: Exception

    Returns:
        JSON error response
    """
    logger.error("unhandled_exception", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope("An unexpected error occurred", str(exc)),
    )
