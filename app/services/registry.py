"""Wiring of resource services to their stores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.adapters.payments.base import AbstractSignatureVerifier
from app.adapters.store.in_memory import InMemoryDocumentStore
from app.schemas.booking import BookingCreate, BookingUpdate
from app.schemas.review import ReviewCreate, ReviewUpdate
from app.schemas.tour import TourCreate, TourUpdate
from app.schemas.user import UserCreate, UserUpdate
from app.services.checkout_service import CheckoutWebhookService
from app.services.resource_service import ResourceService, slugify


def _with_slug(data: dict[str, Any]) -> dict[str, Any]:
    if data.get("name"):
        data["slug"] = slugify(data["name"])
    return data


def _normalize_email(data: dict[str, Any]) -> dict[str, Any]:
    if data.get("email"):
        data["email"] = data["email"].lower()
    return data


@dataclass
class ServiceRegistry:
    """Services reachable from route handlers via ``app.state.services``."""

    tours: ResourceService
    users: ResourceService
    reviews: ResourceService
    bookings: ResourceService
    checkout: CheckoutWebhookService

    def resource(self, name: str) -> ResourceService:
        service = getattr(self, name, None)
        if not isinstance(service, ResourceService):
            raise KeyError(name)
        return service

    @classmethod
    def in_memory(
        cls, *, verifier: AbstractSignatureVerifier, page_size: int = 100
    ) -> "ServiceRegistry":
        """Build services backed by fresh in-memory collections."""
        tours = ResourceService(
            "tours",
            InMemoryDocumentStore("tours"),
            create_schema=TourCreate,
            update_schema=TourUpdate,
            page_size=page_size,
            prepare=_with_slug,
        )
        users = ResourceService(
            "users",
            InMemoryDocumentStore("users"),
            create_schema=UserCreate,
            update_schema=UserUpdate,
            page_size=page_size,
            prepare=_normalize_email,
        )
        reviews = ResourceService(
            "reviews",
            InMemoryDocumentStore("reviews"),
            create_schema=ReviewCreate,
            update_schema=ReviewUpdate,
            page_size=page_size,
        )
        bookings = ResourceService(
            "bookings",
            InMemoryDocumentStore("bookings"),
            create_schema=BookingCreate,
            update_schema=BookingUpdate,
            page_size=page_size,
        )
        checkout = CheckoutWebhookService(verifier, bookings=bookings, users=users.store)
        return cls(
            tours=tours,
            users=users,
            reviews=reviews,
            bookings=bookings,
            checkout=checkout,
        )
