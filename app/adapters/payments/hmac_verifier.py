"""HMAC-SHA256 webhook signature verification.

The signature header has the form ``t=<unix seconds>,v1=<hex digest>[,v1=...]``
where each digest is ``HMAC_SHA256(secret, "<t>.<raw body>")``. Any ``v1``
entry matching the expected digest is accepted, which allows secret rotation.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from typing import Any, Callable

from app.adapters.payments.base import AbstractSignatureVerifier
from app.core.errors import WebhookSignatureError

logger = logging.getLogger(__name__)

SIGNATURE_SCHEME = "v1"


def _compute_digest(secret: str, timestamp: int, payload: bytes) -> str:
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


def sign_payload(secret: str, payload: bytes, timestamp: int | None = None) -> str:
    """Build a signature header value for ``payload``.

    Used by tests and local tooling to produce requests the verifier accepts.

    Args:
        secret: Shared webhook secret.
        payload: Raw body bytes.
        timestamp: UNIX seconds; defaults to now.

    Returns:
        Header value in ``t=...,v1=...`` form.
    """
    ts = int(time.time()) if timestamp is None else timestamp
    return f"t={ts},{SIGNATURE_SCHEME}={_compute_digest(secret, ts, payload)}"


def _parse_header(header: str) -> tuple[int, list[str]]:
    timestamp: int | None = None
    signatures: list[str] = []
    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError as exc:
                raise WebhookSignatureError(
                    code="invalid_signature_header",
                    message="Unable to extract timestamp and signatures from header",
                ) from exc
        elif key == SIGNATURE_SCHEME:
            signatures.append(value)

    if timestamp is None or not signatures:
        raise WebhookSignatureError(
            code="invalid_signature_header",
            message="Unable to extract timestamp and signatures from header",
        )
    return timestamp, signatures


class HmacSignatureVerifier(AbstractSignatureVerifier):
    """Verify payment webhooks signed with a shared secret."""

    def __init__(
        self,
        secret: str | None,
        *,
        tolerance_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self._tolerance = tolerance_seconds
        self._clock = clock

    def construct_event(self, payload: bytes, signature_header: str | None) -> dict[str, Any]:
        if not self._secret:
            raise WebhookSignatureError(
                code="webhook_secret_not_configured",
                message="Webhook secret is not configured",
                details={"hint": "Set PAYMENT_WEBHOOK_SECRET"},
            )
        if not signature_header:
            raise WebhookSignatureError(
                code="missing_signature",
                message="No signatures found matching the expected signature for payload",
            )

        timestamp, signatures = _parse_header(signature_header)
        expected = _compute_digest(self._secret, timestamp, payload)

        if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
            logger.warning(
                "webhook.signature_mismatch",
                extra={"payload_bytes": len(payload), "candidates": len(signatures)},
            )
            raise WebhookSignatureError(
                code="signature_mismatch",
                message="No signatures found matching the expected signature for payload",
            )

        if self._tolerance and abs(self._clock() - timestamp) > self._tolerance:
            raise WebhookSignatureError(
                code="signature_expired",
                message="Timestamp outside the tolerance zone",
                details={"limit": self._tolerance},
            )

        try:
            event = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise WebhookSignatureError(
                code="invalid_payload",
                message="Webhook payload is not valid JSON",
            ) from exc

        if not isinstance(event, dict):
            raise WebhookSignatureError(
                code="invalid_payload",
                message="Webhook payload must be a JSON object",
            )
        return event
