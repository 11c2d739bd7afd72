"""Input sanitization stages.

Both stages walk the parsed body and the query mapping recursively and
rewrite them in place. Neither ever rejects a request.

- ``OperatorSanitizerStage`` drops keys that a document database would read
  as query operators (``$gt``, ``price[$ne]``) or dotted field paths.
- ``ScriptSanitizerStage`` neutralizes markup in string values so stored
  content cannot open a ``<script>`` element when rendered.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from starlette.responses import Response

from app.pipeline.base import Stage
from app.pipeline.context import RequestContext

logger = logging.getLogger(__name__)

_KEY_SEGMENT = re.compile(r"[^\[\]]+")


def is_operator_key(key: str) -> bool:
    """True for keys starting an operator segment or containing a dot.

    Bracketed query keys are checked segment by segment, so both ``$where``
    and ``price[$gt]`` are operator keys.
    """
    if "." in key:
        return True
    return any(segment.startswith("$") for segment in _KEY_SEGMENT.findall(key))


def strip_operator_keys(value: Any) -> tuple[Any, int]:
    """Return ``value`` without operator keys and the number removed."""
    if isinstance(value, dict):
        removed = 0
        cleaned: dict[str, Any] = {}
        for key, item in value.items():
            if isinstance(key, str) and is_operator_key(key):
                removed += 1
                continue
            cleaned[key], nested = strip_operator_keys(item)
            removed += nested
        return cleaned, removed
    if isinstance(value, list):
        removed = 0
        items = []
        for item in value:
            cleaned_item, nested = strip_operator_keys(item)
            items.append(cleaned_item)
            removed += nested
        return items, removed
    return value, 0


def escape_markup(value: Any) -> Any:
    """Replace ``<`` with ``&lt;`` in every string value (keys untouched)."""
    if isinstance(value, str):
        return value.replace("<", "&lt;")
    if isinstance(value, dict):
        return {key: escape_markup(item) for key, item in value.items()}
    if isinstance(value, list):
        return [escape_markup(item) for item in value]
    return value


class OperatorSanitizerStage(Stage):
    name = "operator_sanitizer"

    async def process(self, context: RequestContext) -> Response | None:
        context.body, body_removed = strip_operator_keys(context.body)
        context.query, query_removed = strip_operator_keys(context.query)
        if body_removed or query_removed:
            logger.warning(
                "sanitize.operator_keys_removed",
                extra={
                    "path": context.path,
                    "body_keys": body_removed,
                    "query_keys": query_removed,
                },
            )
        return None


class ScriptSanitizerStage(Stage):
    name = "script_sanitizer"

    async def process(self, context: RequestContext) -> Response | None:
        context.body = escape_markup(context.body)
        context.query = escape_markup(context.query)
        return None
