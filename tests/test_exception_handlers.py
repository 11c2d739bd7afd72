"""Tests for global exception handlers.

Validates that all exception types are rendered consistently with proper
HTTP status codes, the ``fail``/``error`` status label, and no stack traces
outside development.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.errors import (
    AppError,
    NotFoundAppError,
    PayloadTooLargeAppError,
    ValidationAppError,
    WebhookSignatureError,
)
from app.core.exception_handlers import (
    GENERIC_ERROR_MESSAGE,
    general_exception_handler,
    render_error,
    setup_exception_handlers,
)


@pytest.fixture
def development(monkeypatch):
    monkeypatch.setattr(settings, "app_env", "development")


@pytest.fixture
def production(monkeypatch):
    monkeypatch.setattr(settings, "app_env", "production")


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def bare_client(app_with_handlers: FastAPI) -> TestClient:
    """Client that returns 500 responses instead of re-raising."""
    return TestClient(app_with_handlers, raise_server_exceptions=False)


def _fake_request():
    request = AsyncMock()
    request.url.path = "/test"
    request.method = "GET"
    return request


def _body(response) -> dict:
    return json.loads(bytes(response.body).decode())


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        ("error_cls", "status_code"),
        [
            (ValidationAppError, 400),
            (NotFoundAppError, 404),
            (PayloadTooLargeAppError, 413),
            (WebhookSignatureError, 400),
        ],
    )
    def test_status_codes(self, app_with_handlers, bare_client, error_cls, status_code):
        @app_with_handlers.get("/boom")
        async def endpoint():
            raise error_cls(code="some_code", message="Some message")

        response = bare_client.get("/boom")

        assert response.status_code == status_code
        data = response.json()
        assert data["status"] == "fail"
        assert data["error"]["code"] == "some_code"
        assert data["error"]["message"] == "Some message"
        assert "request_id" in data["error"]

    def test_details_are_included_when_provided(self, app_with_handlers, bare_client):
        @app_with_handlers.get("/details")
        async def endpoint():
            raise ValidationAppError(
                code="too_big",
                message="Too big",
                details={"limit": 10, "actual_value": 11},
            )

        data = bare_client.get("/details").json()

        assert data["error"]["details"] == {"limit": 10, "actual_value": 11}

    def test_details_omitted_when_absent(self, app_with_handlers, bare_client):
        @app_with_handlers.get("/plain")
        async def endpoint():
            raise ValidationAppError(code="plain", message="Plain")

        assert "details" not in bare_client.get("/plain").json()["error"]


class TestHttpAndValidationErrors:
    def test_http_exception_keeps_status_and_headers(self, app_with_handlers, bare_client):
        @app_with_handlers.get("/teapot")
        async def endpoint():
            raise HTTPException(status_code=418, detail="short and stout", headers={"X-A": "1"})

        response = bare_client.get("/teapot")

        assert response.status_code == 418
        assert response.headers["X-A"] == "1"
        data = response.json()
        assert data["status"] == "fail"
        assert data["error"]["code"] == "i'm_a_teapot"
        assert data["error"]["message"] == "short and stout"

    def test_method_not_allowed(self, app_with_handlers, bare_client):
        @app_with_handlers.get("/only-get")
        async def endpoint():
            return {}

        response = bare_client.post("/only-get")

        assert response.status_code == 405
        assert response.json()["error"]["code"] == "method_not_allowed"

    def test_request_validation_error_is_400(self, app_with_handlers, bare_client):
        @app_with_handlers.get("/items/{item_id}")
        async def endpoint(item_id: int):
            return {"item_id": item_id}

        response = bare_client.get("/items/abc")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "validation_error"
        assert data["error"]["details"]["fields"][0]["loc"] == ["path", "item_id"]


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_message_is_generic_outside_development(self, production):
        exc = RuntimeError("Unexpected error: database connection failed")
        response = asyncio.run(general_exception_handler(_fake_request(), exc))

        data = _body(response)
        assert response.status_code == 500
        assert data["status"] == "error"
        assert data["error"]["code"] == "internal_server_error"
        assert data["error"]["message"] == GENERIC_ERROR_MESSAGE
        assert "database connection" not in json.dumps(data)

    def test_never_leaks_stack_trace_outside_development(self, production):
        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(_fake_request(), exc))

        text = bytes(response.body).decode()
        assert "Traceback" not in text
        assert "stack" not in _body(response)["error"]

    def test_development_exposes_message_and_stack(self, development):
        try:
            raise ValueError("Test error with details")
        except ValueError as exc:
            response = render_error(_fake_request(), exc)

        data = _body(response)
        assert data["error"]["message"] == "Test error with details"
        assert any("ValueError: Test error with details" in line for line in data["error"]["stack"])

    def test_development_adds_stack_to_operational_errors(self, development):
        response = render_error(_fake_request(), NotFoundAppError(code="nf", message="Missing"))

        data = _body(response)
        assert response.status_code == 404
        assert data["error"]["message"] == "Missing"
        assert isinstance(data["error"]["stack"], list)


class TestErrorHandlerIntegration:
    """Integration tests against the full application."""

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers

    def test_unmatched_path_echoes_url(self, client: TestClient):
        response = client.get("/nowhere/else?x=1")

        assert response.status_code == 404
        data = response.json()
        assert data["status"] == "fail"
        assert data["error"]["code"] == "not_found"
        assert data["error"]["message"] == "Can't find /nowhere/else?x=1 on this server!"

    @pytest.mark.parametrize("method", ["post", "put", "patch", "delete"])
    def test_unmatched_path_for_every_method(self, client: TestClient, method: str):
        response = client.request(method.upper(), "/nowhere")

        assert response.status_code == 404

    @pytest.mark.parametrize("method", ["GET", "POST"])
    def test_missing_static_asset_echoes_url(self, client: TestClient, method: str):
        response = client.request(method, "/static/css/nope.css?v=2")

        assert response.status_code == 404
        data = response.json()
        assert data["error"]["code"] == "not_found"
        assert data["error"]["message"] == "Can't find /static/css/nope.css?v=2 on this server!"

    @pytest.mark.parametrize("path", ["/api/v1/tours", "/nowhere"])
    def test_plain_options_request_is_answered(self, client: TestClient, path: str):
        response = client.options(path)

        assert response.status_code == 204
        assert response.content == b""
        assert "PATCH" in response.headers["access-control-allow-methods"]

    def test_handler_failure_in_app_is_generic_500(self, app, client, monkeypatch):
        def boom(query):
            raise RuntimeError("secret internals")

        monkeypatch.setattr(app.state.services.tours, "list_documents", boom)

        response = client.get("/api/v1/tours")

        assert response.status_code == 500
        data = response.json()
        assert data["error"]["message"] == GENERIC_ERROR_MESSAGE
        assert data["error"]["request_id"] == response.headers["X-Request-ID"]

    def test_handler_failure_in_development_includes_stack(
        self, app, client, monkeypatch, development
    ):
        def boom(query):
            raise RuntimeError("secret internals")

        monkeypatch.setattr(app.state.services.tours, "list_documents", boom)

        data = client.get("/api/v1/tours").json()

        assert data["error"]["message"] == "secret internals"
        assert data["error"]["stack"]
