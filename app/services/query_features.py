"""List-endpoint query features: filtering, sorting, field limiting, paging.

Works on the de-duplicated query mapping produced by the pipeline, where
allow-listed fields may hold several values.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from app.adapters.store.base import FieldFilter
from app.core.errors import ValidationAppError

RESERVED_PARAMETERS = frozenset({"page", "sort", "limit", "fields"})

_COMPARISON_KEY = re.compile(r"^(?P<field>[A-Za-z_][\w]*)\[(?P<op>gte|gt|lte|lt)\]$")


@dataclass(frozen=True)
class ListQuery:
    """Parsed list options."""

    filters: tuple[FieldFilter, ...]
    sort: tuple[str, ...]
    fields: tuple[str, ...]
    page: int
    limit: int


def _last(value: Any) -> Any:
    return value[-1] if isinstance(value, list) else value


def _split_csv(value: Any) -> tuple[str, ...]:
    text = _last(value) or ""
    return tuple(part.strip() for part in str(text).split(",") if part.strip())


def _positive_int(name: str, value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        number = int(_last(value))
    except (TypeError, ValueError) as exc:
        raise ValidationAppError(
            code="invalid_query_parameter",
            message=f"Query parameter '{name}' must be a positive integer",
        ) from exc
    if number < 1:
        raise ValidationAppError(
            code="invalid_query_parameter",
            message=f"Query parameter '{name}' must be a positive integer",
        )
    return number


def build_filters(query: Mapping[str, Any]) -> tuple[FieldFilter, ...]:
    """Translate query parameters into store filters.

    ``?difficulty=easy&difficulty=medium`` -> ``difficulty in (easy, medium)``
    ``?price[lte]=500`` -> ``price <= 500``
    """
    filters: list[FieldFilter] = []
    for key, value in query.items():
        if key in RESERVED_PARAMETERS:
            continue
        match = _COMPARISON_KEY.match(key)
        if match:
            filters.append(FieldFilter(match["field"], match["op"], _last(value)))
        elif isinstance(value, list):
            filters.append(FieldFilter(key, "in", tuple(value)))
        else:
            filters.append(FieldFilter(key, "eq", value))
    return tuple(filters)


def parse_list_query(query: Mapping[str, Any], *, default_limit: int = 100) -> ListQuery:
    return ListQuery(
        filters=build_filters(query),
        sort=_split_csv(query.get("sort")),
        fields=_split_csv(query.get("fields")),
        page=_positive_int("page", query.get("page"), 1),
        limit=_positive_int("limit", query.get("limit"), default_limit),
    )


def _sort_key(field: str):
    def key(document: dict[str, Any]) -> tuple[int, Any]:
        value = document.get(field)
        if value is None:
            return (1, "")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return (0, value)
        return (0, str(value))

    return key


def apply_sort(documents: list[dict[str, Any]], sort: tuple[str, ...]) -> list[dict[str, Any]]:
    """Sort by ``field`` / ``-field`` keys, first key most significant."""
    ordered = list(documents)
    for spec in reversed(sort):
        descending = spec.startswith("-")
        field = spec.lstrip("-")
        try:
            ordered.sort(key=_sort_key(field), reverse=descending)
        except TypeError as exc:
            raise ValidationAppError(
                code="invalid_sort",
                message=f"Cannot sort by '{field}'",
            ) from exc
    return ordered


def apply_fields(documents: list[dict[str, Any]], fields: tuple[str, ...]) -> list[dict[str, Any]]:
    """Project documents; ``-field`` entries exclude, others include (plus ``id``)."""
    if not fields:
        return documents
    excluded = {field[1:] for field in fields if field.startswith("-")}
    included = {field for field in fields if not field.startswith("-")}
    if included:
        included.add("id")
        return [{k: v for k, v in doc.items() if k in included} for doc in documents]
    return [{k: v for k, v in doc.items() if k not in excluded} for doc in documents]


def paginate(documents: list[dict[str, Any]], page: int, limit: int) -> list[dict[str, Any]]:
    start = (page - 1) * limit
    return documents[start:start + limit]
