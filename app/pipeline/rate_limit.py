"""Rate limiting stage.

Wires the rate limiting adapter into the request pipeline.

Strategy:
- Fixed window per client address (100 requests per hour by default).
- Only paths under the configured prefix (``/api``) are counted.
- Throttled requests get a fixed plain-text message and never reach a later
  stage or a route handler.
"""

from __future__ import annotations

import hashlib
import logging

from starlette.responses import PlainTextResponse, Response

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.pipeline.base import Stage
from app.pipeline.context import RequestContext

logger = logging.getLogger(__name__)


def _hash_limiter_key(key: str) -> str:
    """Hash the client key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _path_under_prefix(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/")
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


class RateLimitStage(Stage):
    """Reject clients that exceed their request budget."""

    name = "rate_limit"

    def __init__(
        self,
        limiter: AbstractRateLimiter,
        *,
        path_prefix: str = "/api",
        message: str = "Too many request by this IP, please try again in an hour!",
        include_headers: bool = True,
    ) -> None:
        self.limiter = limiter
        self.path_prefix = path_prefix
        self.message = message
        self.include_headers = include_headers

    def applies_to(self, context: RequestContext) -> bool:
        return _path_under_prefix(context.path, self.path_prefix)

    def _limit_headers(self, result: RateLimitResult) -> dict[str, str]:
        if not self.include_headers:
            return {}
        return {
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(result.reset_at),
        }

    async def process(self, context: RequestContext) -> Response | None:
        result = self.limiter.consume(context.client_key)
        headers = self._limit_headers(result)

        if result.allowed:
            context.response_headers.update(headers)
            return None

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_hash": _hash_limiter_key(context.client_key),
                "limit": result.limit,
                "path": context.path,
                "retry_after_s": retry_after,
            },
        )
        if self.include_headers:
            headers["Retry-After"] = str(retry_after)
        return PlainTextResponse(self.message, status_code=429, headers=headers)
