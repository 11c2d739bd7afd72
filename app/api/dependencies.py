"""FastAPI dependencies exposing pipeline state and services to handlers."""

from __future__ import annotations

from fastapi import Request

from app.pipeline.context import RequestContext
from app.services.registry import ServiceRegistry


def get_request_context(request: Request) -> RequestContext:
    """Return the context the pipeline attached to this request."""
    return request.state.context


def get_services(request: Request) -> ServiceRegistry:
    return request.app.state.services
