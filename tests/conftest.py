"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before the first import of ``app.core.config``
so the settings object is built in ``testing`` mode.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("PAYMENT_WEBHOOK_SECRET", "whsec_test_secret")

from typing import Any, Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.pipeline.base import Stage
from app.pipeline.context import RequestContext


class SpyStage(Stage):
    """Records every context it sees; optionally raises."""

    name = "spy"

    def __init__(self, error: Exception | None = None) -> None:
        self.contexts: list[RequestContext] = []
        self.error = error

    @property
    def calls(self) -> int:
        return len(self.contexts)

    async def process(self, context: RequestContext) -> None:
        self.contexts.append(context)
        if self.error is not None:
            raise self.error
        return None


@pytest.fixture
def spy_stage_cls() -> type[SpyStage]:
    return SpyStage


@pytest.fixture
def spy() -> SpyStage:
    return SpyStage()


@pytest.fixture
def webhook_secret() -> str:
    return os.environ["PAYMENT_WEBHOOK_SECRET"]


@pytest.fixture
def app() -> FastAPI:
    """Fresh app: new limiter counters and empty collections."""
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def tour_payload() -> Callable[..., dict[str, Any]]:
    def build(**overrides: Any) -> dict[str, Any]:
        payload = {
            "name": "The Forest Hiker",
            "duration": 5,
            "maxGroupSize": 25,
            "difficulty": "easy",
            "price": 397,
            "summary": "Breathtaking hike through the Canadian Banff National Park",
        }
        payload.update(overrides)
        return payload

    return build
