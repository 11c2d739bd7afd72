"""Parameter de-duplication and request timestamp stages."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable

from starlette.responses import Response

from app.pipeline.base import Stage
from app.pipeline.context import RequestContext

# Fields that may legitimately repeat, e.g. ?price=100&price=200
MULTI_VALUE_PARAMETERS: frozenset[str] = frozenset(
    {
        "duration",
        "ratingsAverage",
        "ratingsQuantity",
        "maxGroupSize",
        "difficulty",
        "price",
    }
)


def collapse_repeated(
    values: dict[str, Any], allowed: Iterable[str]
) -> tuple[dict[str, Any], dict[str, list[str]]]:
    """Keep the last value of repeated keys unless the key is allow-listed.

    Args:
        values: Mapping where repeated keys hold lists.
        allowed: Keys whose repeated values are kept as a list.

    Returns:
        Tuple of (collapsed mapping, dropped lists keyed by field).
    """
    allowed = frozenset(allowed)
    collapsed: dict[str, Any] = {}
    polluted: dict[str, list[str]] = {}
    for key, value in values.items():
        if isinstance(value, list) and key not in allowed:
            polluted[key] = value
            collapsed[key] = value[-1] if value else ""
        else:
            collapsed[key] = value
    return collapsed, polluted


class ParameterPollutionStage(Stage):
    """Collapse repeated query (and form body) parameters."""

    name = "parameter_pollution"

    def __init__(self, allowed: Iterable[str] = MULTI_VALUE_PARAMETERS) -> None:
        self.allowed = frozenset(allowed)

    async def process(self, context: RequestContext) -> Response | None:
        context.query, context.query_polluted = collapse_repeated(context.query, self.allowed)
        if context.body_is_form and isinstance(context.body, dict):
            context.body, context.body_polluted = collapse_repeated(context.body, self.allowed)
        return None


def utc_timestamp() -> str:
    """Millisecond ISO-8601 UTC timestamp, e.g. ``2024-05-01T09:30:00.123Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RequestTimestampStage(Stage):
    """Record the arrival time for handlers further down."""

    name = "request_timestamp"

    async def process(self, context: RequestContext) -> Response | None:
        context.request_time = utc_timestamp()
        context.request.state.request_time = context.request_time
        return None
