from __future__ import annotations

from fastapi.testclient import TestClient


def test_schema_lists_resource_routes_and_webhook(client: TestClient):
    schema = client.get("/openapi.json").json()

    paths = schema["paths"]
    assert "/api/v1/tours" in paths
    assert "/api/v1/tours/top-5-cheap" in paths
    assert "/api/v1/bookings/{doc_id}" in paths
    assert "post" in paths["/webhook-checkout"]
    assert "/{full_path}" not in paths


def test_schema_tags(client: TestClient):
    tags = {tag["name"] for tag in client.get("/openapi.json").json()["tags"]}

    assert {"Tours", "Users", "Reviews", "Bookings", "Webhooks"} <= tags


def test_health(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "environment": "testing"}
