"""Payment provider adapters (webhook signature verification)."""

from app.adapters.payments.base import AbstractSignatureVerifier
from app.adapters.payments.hmac_verifier import HmacSignatureVerifier, sign_payload

__all__ = [
    "AbstractSignatureVerifier",
    "HmacSignatureVerifier",
    "sign_payload",
]
