"""Checkout webhook processing.

The payment provider calls ``/webhook-checkout`` once a hosted checkout
session completes. The payload is verified against its signature, then the
matching booking is created.
"""

from __future__ import annotations

import logging
from typing import Any

from app.adapters.payments.base import AbstractSignatureVerifier
from app.adapters.store.base import AbstractDocumentStore, FieldFilter
from app.core.errors import ValidationAppError
from app.services.resource_service import ResourceService

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


class CheckoutWebhookService:
    """Turn verified checkout events into bookings."""

    def __init__(
        self,
        verifier: AbstractSignatureVerifier,
        *,
        bookings: ResourceService,
        users: AbstractDocumentStore,
    ) -> None:
        self._verifier = verifier
        self._bookings = bookings
        self._users = users

    def handle(self, payload: bytes, signature_header: str | None) -> dict[str, Any]:
        """Verify and process one webhook delivery.

        Args:
            payload: Raw request body exactly as received.
            signature_header: Provider signature header value.

        Returns:
            Acknowledgement body for the provider.

        Raises:
            WebhookSignatureError: If verification fails.
            ValidationAppError: If a completed session cannot be booked.
        """
        event = self._verifier.construct_event(payload, signature_header)
        event_type = event.get("type")

        if event_type == CHECKOUT_COMPLETED:
            data = event.get("data")
            session = data.get("object") if isinstance(data, dict) else None
            if not isinstance(session, dict):
                session = {}
            booking = self.create_booking_from_session(session)
            logger.info(
                "webhook.booking_created",
                extra={"event_id": event.get("id"), "booking_id": booking["id"]},
            )
        else:
            logger.info(
                "webhook.event_ignored",
                extra={"event_id": event.get("id"), "event_type": event_type},
            )

        return {"received": True}

    def create_booking_from_session(self, session: dict[str, Any]) -> dict[str, Any]:
        tour_id = session.get("client_reference_id")
        email = session.get("customer_email")
        amount_total = session.get("amount_total")

        if (
            not isinstance(tour_id, str)
            or not tour_id
            or not isinstance(email, str)
            or not email
            # bool is an int subclass
            or isinstance(amount_total, bool)
            or not isinstance(amount_total, (int, float))
        ):
            raise ValidationAppError(
                code="incomplete_checkout_session",
                message="Checkout session is missing tour, customer or amount",
            )

        user = self._users.find_one([FieldFilter("email", "eq", email.lower())])
        if user is None:
            raise ValidationAppError(
                code="unknown_customer",
                message="No user matches the checkout customer",
            )

        return self._bookings.create(
            {"tour": tour_id, "user": user["id"], "price": amount_total / 100}
        )
