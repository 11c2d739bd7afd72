"""Tests for the payment webhook served ahead of the body parser."""

from __future__ import annotations

import json
import time

import pytest

from fastapi.testclient import TestClient
from starlette.responses import JSONResponse

from app.adapters.payments.hmac_verifier import sign_payload
from app.api.routes.webhook import WEBHOOK_PATH
from app.core.app_factory import create_app
from app.pipeline import (
    BodyParserStage,
    OperatorSanitizerStage,
    ParameterPollutionStage,
    Pipeline,
    RawBodyRouteStage,
    ScriptSanitizerStage,
)

SIGNATURE_HEADER = "Stripe-Signature"

_VALID_SESSION = {"client_reference_id": "t1", "customer_email": "a@b.co", "amount_total": 100}

MALFORMED_EVENT_DATA = {
    "email_number": {"object": {**_VALID_SESSION, "customer_email": 42}},
    "amount_string": {"object": {**_VALID_SESSION, "amount_total": "497"}},
    "tour_list": {"object": {**_VALID_SESSION, "client_reference_id": ["t1"]}},
    "amount_bool": {"object": {**_VALID_SESSION, "amount_total": True}},
    "object_list": {"object": ["not", "a", "session"]},
    "data_list": ["not", "an", "object"],
}


def _event(tour_id: str, email: str = "jonas@example.com", amount_total: int = 49700) -> bytes:
    event = {
        "id": "evt_test_1",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "client_reference_id": tour_id,
                "customer_email": email,
                "amount_total": amount_total,
            }
        },
    }
    # Non-canonical spacing so any re-serialization would change the bytes
    return json.dumps(event, indent=3).encode()


def _seed(client: TestClient, tour_payload) -> str:
    client.post("/api/v1/users", json={"name": "Jonas", "email": "Jonas@Example.com"})
    return client.post("/api/v1/tours", json=tour_payload()).json()["data"]["tour"]["id"]


class TestRawBodyDelivery:
    def test_handler_receives_the_exact_bytes(self):
        received: list[bytes] = []

        async def spy_handler(request, raw_body):
            received.append(raw_body)
            return JSONResponse({"received": True})

        pipeline = Pipeline(
            [
                RawBodyRouteStage(WEBHOOK_PATH, spy_handler),
                BodyParserStage(),
                OperatorSanitizerStage(),
                ScriptSanitizerStage(),
                ParameterPollutionStage(),
            ]
        )
        client = TestClient(create_app(pipeline=pipeline))
        payload = b'{ "$where": "1",  "note": "<script>x</script>",\n "a.b": [1, 1] }'

        resp = client.post(
            WEBHOOK_PATH, content=payload, headers={"Content-Type": "application/json"}
        )

        assert resp.status_code == 200
        assert received == [payload]

    def test_get_on_webhook_path_falls_through_to_not_found(self, client: TestClient):
        resp = client.get(WEBHOOK_PATH)

        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == f"Can't find {WEBHOOK_PATH} on this server!"

    def test_webhook_is_not_rate_limited(self, client: TestClient):
        resp = client.post(WEBHOOK_PATH, content=b"{}")

        assert "X-RateLimit-Limit" not in resp.headers


class TestCheckoutWebhook:
    def test_valid_signature_creates_booking(self, app, client, tour_payload, webhook_secret):
        tour_id = _seed(client, tour_payload)
        payload = _event(tour_id)

        resp = client.post(
            WEBHOOK_PATH,
            content=payload,
            headers={
                "Content-Type": "application/json",
                SIGNATURE_HEADER: sign_payload(webhook_secret, payload),
            },
        )

        assert resp.status_code == 200
        assert resp.json() == {"received": True}
        bookings = app.state.services.bookings.store.find()
        assert len(bookings) == 1
        assert bookings[0]["tour"] == tour_id
        assert bookings[0]["price"] == 497

    def test_tampered_payload_is_rejected(self, app, client, tour_payload, webhook_secret):
        tour_id = _seed(client, tour_payload)
        payload = _event(tour_id)
        signature = sign_payload(webhook_secret, payload)

        resp = client.post(
            WEBHOOK_PATH,
            content=payload.replace(b"49700", b"100"),
            headers={"Content-Type": "application/json", SIGNATURE_HEADER: signature},
        )

        assert resp.status_code == 400
        body = resp.json()
        assert body["status"] == "fail"
        assert body["error"]["code"] == "signature_mismatch"
        assert app.state.services.bookings.store.find() == []

    def test_missing_signature_is_rejected(self, client: TestClient):
        resp = client.post(WEBHOOK_PATH, content=b"{}")

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "missing_signature"

    def test_stale_signature_is_rejected(self, client: TestClient, webhook_secret):
        payload = b'{"type": "ping"}'
        stale = sign_payload(webhook_secret, payload, timestamp=int(time.time()) - 3600)

        resp = client.post(WEBHOOK_PATH, content=payload, headers={SIGNATURE_HEADER: stale})

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "signature_expired"

    def test_other_event_types_are_acknowledged_without_booking(
        self, app, client, webhook_secret
    ):
        payload = b'{"id": "evt_2", "type": "payment_intent.created"}'

        resp = client.post(
            WEBHOOK_PATH,
            content=payload,
            headers={SIGNATURE_HEADER: sign_payload(webhook_secret, payload)},
        )

        assert resp.status_code == 200
        assert app.state.services.bookings.store.find() == []

    def test_unknown_customer_is_a_client_error(self, client, tour_payload, webhook_secret):
        tour_id = _seed(client, tour_payload)
        payload = _event(tour_id, email="nobody@example.com")

        resp = client.post(
            WEBHOOK_PATH,
            content=payload,
            headers={SIGNATURE_HEADER: sign_payload(webhook_secret, payload)},
        )

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "unknown_customer"

    @pytest.mark.parametrize(
        "data", list(MALFORMED_EVENT_DATA.values()), ids=list(MALFORMED_EVENT_DATA)
    )
    def test_malformed_session_is_a_client_error(self, app, client, webhook_secret, data):
        payload = json.dumps(
            {"id": "evt_bad", "type": "checkout.session.completed", "data": data}
        ).encode()

        resp = client.post(
            WEBHOOK_PATH,
            content=payload,
            headers={SIGNATURE_HEADER: sign_payload(webhook_secret, payload)},
        )

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "incomplete_checkout_session"
        assert app.state.services.bookings.store.find() == []

    def test_oversized_webhook_body_is_rejected(self, client: TestClient):
        resp = client.post(WEBHOOK_PATH, content=b"x" * (100 * 1024 + 1))

        assert resp.status_code == 413
