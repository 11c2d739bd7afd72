from __future__ import annotations

from fastapi import APIRouter, Request, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException
from starlette.types import Scope

from app.core.errors import NotFoundAppError

router = APIRouter(include_in_schema=False)

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]
CORS_DEFAULT_METHODS = "GET,HEAD,PUT,PATCH,POST,DELETE"


def not_found_error(request: Request) -> NotFoundAppError:
    """The 404 raised for any path nothing else serves; echoes path and query."""
    original_url = request.url.path
    if request.url.query:
        original_url = f"{original_url}?{request.url.query}"
    return NotFoundAppError(
        code="not_found",
        message=f"Can't find {original_url} on this server!",
        details={"path": original_url},
    )


class StaticAssets(StaticFiles):
    """Static files whose misses render like every other unmatched path."""

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code not in (404, 405):
                raise
            raise not_found_error(Request(scope)) from exc


@router.options("/{full_path:path}")
async def options_any(full_path: str) -> Response:
    """Answer plain OPTIONS requests; CORS preflights never get this far."""
    return Response(
        status_code=204,
        headers={"Access-Control-Allow-Methods": CORS_DEFAULT_METHODS},
    )


@router.api_route("/{full_path:path}", methods=ALL_METHODS)
async def not_found(request: Request, full_path: str) -> None:
    """Catch-all registered last: any request reaching it matched no route."""
    raise not_found_error(request)
