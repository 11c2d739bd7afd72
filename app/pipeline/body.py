"""Body stages: the raw-body webhook route and the size-capped parser.

Both read the request stream in chunks and stop as soon as the configured
ceiling is crossed, so an oversized upload is never buffered in full. The
bytes that were read are cached on the request; later readers get them via
``await request.body()``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Iterable
from urllib.parse import parse_qsl

from starlette.requests import Request
from starlette.responses import Response

from app.core.errors import PayloadTooLargeAppError, ValidationAppError
from app.pipeline.base import Stage
from app.pipeline.context import RequestContext, group_multi_items

logger = logging.getLogger(__name__)

RawBodyHandler = Callable[[Request, bytes], Awaitable[Response]]


def _too_large(limit: int, actual: int) -> PayloadTooLargeAppError:
    return PayloadTooLargeAppError(
        code="payload_too_large",
        message="request entity too large",
        details={"limit": limit, "actual_value": actual},
    )


async def read_body_limited(request: Request, max_bytes: int) -> bytes:
    """Read the request body enforcing ``max_bytes``.

    The declared ``Content-Length`` is checked first; the stream is then read
    chunk by chunk with a rolling cap for chunked or lying clients.

    Args:
        request: Incoming request.
        max_bytes: Maximum accepted body size.

    Returns:
        The body bytes.

    Raises:
        PayloadTooLargeAppError: If the body exceeds ``max_bytes``.
        ValidationAppError: If Content-Length is not an integer.
    """
    declared = request.headers.get("content-length")
    if declared is not None:
        try:
            declared_size = int(declared)
        except ValueError as exc:
            raise ValidationAppError(
                code="invalid_content_length",
                message="Invalid Content-Length header",
            ) from exc
        if declared_size > max_bytes:
            logger.warning(
                "body.rejected_by_header",
                extra={"declared_size": declared_size, "max_bytes": max_bytes},
            )
            raise _too_large(max_bytes, declared_size)

    size = 0
    chunks: list[bytes] = []
    async for chunk in request.stream():
        size += len(chunk)
        if size > max_bytes:
            logger.warning(
                "body.rejected_by_chunked_read",
                extra={"size": size, "max_bytes": max_bytes},
            )
            raise _too_large(max_bytes, size)
        chunks.append(chunk)

    body = b"".join(chunks)
    # Starlette's Request.body() returns the cached value when present
    request._body = body  # type: ignore[attr-defined]
    return body


def nesting_depth(value: Any, *, stop_after: int | None = None) -> int:
    """Depth of nested objects and arrays in ``value``; scalars are 0.

    Walks without recursion. Returns early once ``stop_after`` is exceeded.
    """
    deepest = 0
    pending = [(value, 1)]
    while pending:
        item, depth = pending.pop()
        if isinstance(item, dict):
            children: Iterable[Any] = item.values()
        elif isinstance(item, list):
            children = item
        else:
            continue
        deepest = max(deepest, depth)
        if stop_after is not None and deepest > stop_after:
            break
        pending.extend((child, depth + 1) for child in children)
    return deepest


def _too_deep(limit: int) -> ValidationAppError:
    return ValidationAppError(
        code="body_too_deep",
        message="Request body is nested too deeply",
        details={"limit": limit},
    )


def _media_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";")[0].strip().lower()


def _is_json(media_type: str) -> bool:
    return media_type == "application/json" or media_type.endswith("+json")


class RawBodyRouteStage(Stage):
    """Serve one route with the exact request bytes, before any parsing.

    The handler owns the response; no later stage runs for matching requests.
    """

    name = "raw_body_route"
    reads_raw_body = True

    def __init__(
        self,
        path: str,
        handler: RawBodyHandler,
        *,
        methods: Iterable[str] = ("POST",),
        max_bytes: int = 100 * 1024,
    ) -> None:
        self.path = path
        self.handler = handler
        self.methods = frozenset(method.upper() for method in methods)
        self.max_bytes = max_bytes

    def applies_to(self, context: RequestContext) -> bool:
        return context.path == self.path and context.method in self.methods

    async def process(self, context: RequestContext) -> Response | None:
        context.raw_body = await read_body_limited(context.request, self.max_bytes)
        return await self.handler(context.request, context.raw_body)


class BodyParserStage(Stage):
    """Decode JSON and URL-encoded bodies into ``context.body``."""

    name = "body_parser"
    parses_body = True

    def __init__(self, *, max_bytes: int = 10 * 1024, max_depth: int = 32) -> None:
        self.max_bytes = max_bytes
        self.max_depth = max_depth

    async def process(self, context: RequestContext) -> Response | None:
        raw = await read_body_limited(context.request, self.max_bytes)
        context.raw_body = raw
        if not raw:
            return None

        media_type = _media_type(context.request)
        if _is_json(media_type):
            try:
                body = json.loads(raw)
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise ValidationAppError(
                    code="invalid_json",
                    message="Request body is not valid JSON",
                ) from exc
            except RecursionError as exc:
                raise _too_deep(self.max_depth) from exc
            if nesting_depth(body, stop_after=self.max_depth) > self.max_depth:
                raise _too_deep(self.max_depth)
            context.body = body
        elif media_type == "application/x-www-form-urlencoded":
            try:
                pairs = parse_qsl(raw.decode("utf-8"), keep_blank_values=True)
            except UnicodeDecodeError as exc:
                raise ValidationAppError(
                    code="invalid_form_body",
                    message="Form body must be UTF-8 encoded",
                ) from exc
            context.body = group_multi_items(pairs)
            context.body_is_form = True
        return None
