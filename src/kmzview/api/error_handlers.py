"""
Exception handlers that turn every failure into an ErrorResponse body.
"""

import logging
import traceback
from typing import Any, Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from kmzview.core.config import settings
from kmzview.core.errors import KmzViewException
from kmzview.models.errors import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def get_request_id(request: Request) -> Optional[str]:
    """Request ID set by RequestCorrelationMiddleware, if any."""
    return getattr(request.state, "request_id", None)


def error_json(request: Request, status_code: int, **fields: Any) -> JSONResponse:
    """Build an ErrorResponse for ``request`` and wrap it in a JSONResponse."""
    body = ErrorResponse(request_id=get_request_id(request), **fields)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def kmzview_exception_handler(request: Request, exc: KmzViewException) -> JSONResponse:
    """
    Handle KmzViewException and its subclasses.

    Client errors (an unreadable archive, a bad filename) are warnings; only
    5xx errors are logged at error level.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{exc.error_code}: {exc.message}",
        extra={"error_code": exc.error_code, "status_code": exc.status_code, "details": exc.details},
    )

    return error_json(
        request,
        exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details or None,
        suggestions=exc.suggestions or None,
    )


async def validation_error_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """
    Handle request validation errors, such as a missing ``file`` form field.

    Returns:
        422 JSONResponse listing every failing field
    """
    errors = [
        ErrorDetail(
            field=".".join(str(part) for part in error.get("loc", ())),
            message=error.get("msg", "Validation error"),
            code=error.get("type", "validation_error"),
        )
        for error in exc.errors()
    ]
    logger.warning(
        f"Request validation failed for {len(errors)} field(s)",
        extra={"error_count": len(errors)},
    )

    return error_json(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        error_code="VALIDATION_ERROR",
        message="Request validation failed",
        suggestions=["Send the KMZ as the multipart form field 'file'"],
        errors=errors,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle anything else as a 500; internals are only exposed in development."""
    logger.error(
        f"Unhandled {type(exc).__name__}: {exc}",
        exc_info=True,
        extra={"exception_type": type(exc).__name__},
    )

    details = None
    if settings.environment == "development":
        details = {
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "traceback": traceback.format_exc(),
        }

    return error_json(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        details=details,
        suggestions=["Try again later"],
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the kmzview exception handlers on ``app``."""
    app.add_exception_handler(KmzViewException, kmzview_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(PydanticValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
