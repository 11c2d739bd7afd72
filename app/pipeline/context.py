"""Per-request state shared by the pipeline stages and route handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from starlette.requests import Request


def group_multi_items(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Group ``(key, value)`` pairs; repeated keys become lists in arrival order.

    >>> group_multi_items([("a", "1"), ("b", "2"), ("a", "3")])
    {'a': ['1', '3'], 'b': '2'}
    """
    grouped: dict[str, Any] = {}
    for key, value in items:
        if key not in grouped:
            grouped[key] = value
        elif isinstance(grouped[key], list):
            grouped[key].append(value)
        else:
            grouped[key] = [grouped[key], value]
    return grouped


def resolve_client_key(request: Request, *, trust_proxy: bool) -> str:
    """Return the address a request is attributed to.

    Behind a trusted proxy the left-most ``X-Forwarded-For`` entry is the
    original client.
    """
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop
    return request.client.host if request.client else "unknown"


@dataclass
class RequestContext:
    """Mutable per-request container populated by the stages in order.

    Attributes:
        request: The Starlette request being processed.
        client_key: Client address used for rate limiting.
        query: Query parameters; repeated keys are lists until de-duplicated.
        body: Parsed JSON or form body (``{}`` when absent or unparsed).
        raw_body: Bytes read from the wire by the body stages.
        body_is_form: True when ``body`` came from a URL-encoded payload.
        query_polluted: Values dropped from repeated query parameters.
        body_polluted: Values dropped from repeated form fields.
        request_time: ISO-8601 arrival timestamp set by the timestamp stage.
        response_headers: Headers stages want added to the final response.
    """

    request: Request
    client_key: str
    query: dict[str, Any] = field(default_factory=dict)
    body: Any = field(default_factory=dict)
    raw_body: bytes = b""
    body_is_form: bool = False
    query_polluted: dict[str, list[str]] = field(default_factory=dict)
    body_polluted: dict[str, list[str]] = field(default_factory=dict)
    request_time: str | None = None
    response_headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request: Request, *, trust_proxy: bool = True) -> "RequestContext":
        return cls(
            request=request,
            client_key=resolve_client_key(request, trust_proxy=trust_proxy),
            query=group_multi_items(request.query_params.multi_items()),
        )

    @property
    def path(self) -> str:
        return self.request.url.path

    @property
    def method(self) -> str:
        return self.request.method
