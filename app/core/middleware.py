"""HTTP middleware wrapping the request pipeline.

This module provides the response-side middlewares registered around the
stage pipeline:

- ``security_headers_middleware``: copies the fixed security header table onto
  every response, whatever produced it
- ``request_id_middleware``: accepts or generates a correlation id, stores it
  in contextvars and echoes it with the request duration
- ``access_log_middleware``: one log line per request; registered only in
  development

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.logging import clear_request_id, set_request_id
from app.core.security_policy import SECURITY_HEADERS

access_logger = logging.getLogger("app.access")

# Frameworks and servers must not advertise themselves
_STRIPPED_HEADERS = ("X-Powered-By", "Server")


async def security_headers_middleware(request: Request, call_next) -> Response:
    """Attach the fixed security header policy to the response.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with the security headers set.
    """

    response: Response = await call_next(request)
    for name in _STRIPPED_HEADERS:
        if name in response.headers:
            del response.headers[name]
    response.headers.update(SECURITY_HEADERS)
    return response


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides an X-Request-ID header (configurable via
    LOG_REQUEST_ID_HEADER), that value is used. Otherwise, a new UUID is
    generated. The ID is stored in contextvars for log correlation and for
    the ``request_id`` field of error bodies, then echoed in the response.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def access_log_middleware(request: Request, call_next) -> Response:
    """Log method, path, status and latency for each request.

    Mirrors the compact development format
    ``GET /api/v1/tours 200 3.141 ms - 512``.
    """

    start = time.perf_counter()
    response: Response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000

    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    length = response.headers.get("content-length", "-")
    status = response.status_code

    if status >= 500:
        level = logging.ERROR
    elif status >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO

    access_logger.log(
        level,
        "%s %s %d %.3f ms - %s",
        request.method,
        path,
        status,
        duration_ms,
        length,
        extra={
            "method": request.method,
            "path": request.url.path,
            "status": status,
            "duration_ms": round(duration_ms, 3),
        },
    )
    return response
