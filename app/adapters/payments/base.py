"""Signature verifier interface for inbound payment webhooks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AbstractSignatureVerifier(ABC):
    """Validate a signed webhook payload and decode the event."""

    @abstractmethod
    def construct_event(self, payload: bytes, signature_header: str | None) -> dict[str, Any]:
        """Verify ``payload`` against ``signature_header`` and return the event.

        Args:
            payload: Exact request body bytes as received.
            signature_header: Value of the provider's signature header.

        Returns:
            The decoded event object.

        Raises:
            WebhookSignatureError: If the signature is missing, malformed,
                stale or does not match the payload.
        """
        raise NotImplementedError
