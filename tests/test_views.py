from __future__ import annotations

from fastapi.testclient import TestClient


def test_overview_lists_tours(client: TestClient, tour_payload):
    client.post("/api/v1/tours", json=tour_payload())

    resp = client.get("/")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert '<a href="/tour/the-forest-hiker">The Forest Hiker</a>' in resp.text


def test_tour_detail(client: TestClient, tour_payload):
    client.post("/api/v1/tours", json=tour_payload())

    resp = client.get("/tour/the-forest-hiker")

    assert resp.status_code == 200
    assert "<h1>The Forest Hiker</h1>" in resp.text
    assert "5 days, up to 25 people, easy" in resp.text


def test_pages_survive_a_rejected_null_update(client: TestClient, tour_payload):
    tour_id = client.post("/api/v1/tours", json=tour_payload()).json()["data"]["tour"]["id"]

    assert client.patch(f"/api/v1/tours/{tour_id}", json={"price": None}).status_code == 400

    assert client.get("/").status_code == 200
    assert client.get("/tour/the-forest-hiker").status_code == 200


def test_unknown_tour_slug(client: TestClient):
    resp = client.get("/tour/nowhere")

    assert resp.status_code == 404
    assert resp.json()["error"]["message"] == "There is no tour with that name."


def test_stored_markup_is_not_rendered_as_html(client: TestClient, tour_payload):
    client.post("/api/v1/tours", json=tour_payload(name="<i>Forest Hiker</i>"))

    resp = client.get("/")

    assert "<i>" not in resp.text


def test_views_are_not_rate_limited(client: TestClient):
    assert "X-RateLimit-Limit" not in client.get("/").headers


def test_static_stylesheet(client: TestClient):
    resp = client.get("/static/css/style.css")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/css")
