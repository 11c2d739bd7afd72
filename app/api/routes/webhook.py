"""Payment webhook handler served by the raw-body pipeline stage.

This is not a FastAPI route: it runs before the body parser so the payment
provider's signature can be checked against the exact bytes received.
"""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.config import settings

WEBHOOK_PATH = "/webhook-checkout"


async def webhook_checkout(request: Request, raw_body: bytes) -> Response:
    """Verify the delivery and acknowledge it.

    Args:
        request: Incoming request (headers only; the body was already read).
        raw_body: Unmodified request bytes.

    Returns:
        200 ``{"received": true}`` once the event is processed.

    Raises:
        WebhookSignatureError: Rendered as 400 by the error renderer.
    """
    signature = request.headers.get(settings.payments.signature_header)
    acknowledgement = request.app.state.services.checkout.handle(raw_body, signature)
    return JSONResponse(acknowledgement)
