"""Centralized error rendering.

Every failure, whether raised by a pipeline stage, a route handler, FastAPI's
request validation or an unmatched route, is turned into a response here and
nowhere else.

Response shape:
    {
        "status": "fail" | "error",        # 4xx -> fail, 5xx -> error
        "error": {
            "code": "...",
            "message": "...",
            "request_id": "...",
            "details": {...},                # only when present
            "stack": ["..."]                 # development only
        }
    }

Operational errors (``AppError``, HTTP exceptions, validation errors) always
expose their message. Unexpected exceptions are logged with their traceback
and rendered as a generic 500 outside development.
"""

import logging
import traceback
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import AppError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def _status_label(status_code: int) -> str:
    return "fail" if 400 <= status_code < 500 else "error"


def _code_for_status(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase.lower().replace(" ", "_").replace("-", "_")
    except ValueError:
        return "http_error"


def _format_stack(exc: BaseException) -> list[str]:
    lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return [line.rstrip("\n") for line in "".join(lines).splitlines()]


def _validation_fields(exc: RequestValidationError) -> list[dict[str, Any]]:
    return [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]


def render_error(request: Request, exc: Exception) -> JSONResponse:
    """Convert any exception into the uniform error response.

    Args:
        request: Request being served (used for logging context).
        exc: The raised error.

    Returns:
        JSONResponse with status, message and, in development, the stack.
    """
    headers: dict[str, str] | None = None
    details: Any = None

    if isinstance(exc, AppError):
        status_code = exc.status_code
        code = exc.code
        message = exc.message
        details = exc.details
        operational = True
    elif isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        code = _code_for_status(status_code)
        message = str(exc.detail)
        headers = dict(exc.headers) if exc.headers else None
        operational = True
    elif isinstance(exc, RequestValidationError):
        status_code = 400
        code = "validation_error"
        message = "Invalid input data."
        details = {"fields": _validation_fields(exc)}
        operational = True
    else:
        status_code = 500
        code = "internal_server_error"
        message = str(exc) if settings.is_development and str(exc) else GENERIC_ERROR_MESSAGE
        operational = False

    if operational:
        logger.warning(
            "app_error_handled",
            extra={
                "error_code": code,
                "status_code": status_code,
                "request_path": request.url.path,
                "request_method": request.method,
            },
        )
    else:
        logger.error(
            "unhandled_exception",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={
                "error_type": type(exc).__name__,
                "request_path": request.url.path,
                "request_method": request.method,
            },
        )

    error_content: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error_content["details"] = details
    if settings.is_development:
        error_content["stack"] = _format_stack(exc)

    return JSONResponse(
        status_code=status_code,
        content={"status": _status_label(status_code), "error": error_content},
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle operational application errors."""
    return render_error(request, exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle framework HTTP errors (e.g. 405) with the uniform shape."""
    return render_error(request, exc)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle path/query parameter validation failures."""
    return render_error(request, exc)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    The pipeline middleware already routes escaped exceptions to
    ``render_error``; this covers anything raised outside it.
    """
    return render_error(request, exc)


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
