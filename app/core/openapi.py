"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata for the route groups
- The checkout webhook, which is served by the request pipeline rather than
  a FastAPI route and would otherwise be missing from the docs

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.api.routes.webhook import WEBHOOK_PATH
from app.core.config import settings

TAGS_METADATA = [
    {"name": "Tours", "description": "Tour catalogue with filtering, sorting and paging."},
    {"name": "Users", "description": "Customer and guide accounts."},
    {"name": "Reviews", "description": "Tour reviews and ratings."},
    {"name": "Bookings", "description": "Paid tour bookings."},
    {"name": "Webhooks", "description": "Callbacks from the payment provider."},
    {"name": "Views", "description": "Server-rendered pages."},
    {"name": "Health", "description": "Liveness checks."},
]


def _webhook_operation() -> Dict[str, Any]:
    return {
        "post": {
            "tags": ["Webhooks"],
            "summary": "Checkout completed callback",
            "description": (
                "Receives the raw, signed event body. The signature in the "
                f"``{settings.payments.signature_header}`` header is verified "
                "against the exact bytes before the event is processed."
            ),
            "operationId": "webhook_checkout",
            "parameters": [
                {
                    "name": settings.payments.signature_header,
                    "in": "header",
                    "required": True,
                    "schema": {"type": "string"},
                }
            ],
            "requestBody": {
                "required": True,
                "content": {"application/json": {"schema": {"type": "object"}}},
            },
            "responses": {
                "200": {"description": "Event received"},
                "400": {"description": "Signature verification failed"},
            },
        }
    }


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the webhook path."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        schema.setdefault("paths", {}).setdefault(WEBHOOK_PATH, _webhook_operation())
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
