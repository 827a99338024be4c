"""
Signature checks for inbound payment webhooks.

Header format: ``Payment-Signature: t=<unix seconds>,v1=<hex digest>`` where the
digest is HMAC-SHA256 over ``"<t>.<raw body>"`` keyed with the shared secret.
Several ``v1`` entries may be present while a secret is being rotated.
"""

import hashlib
import hmac
import time

from quoteflow.utils.logger import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADER = "Payment-Signature"


class WebhookSignatureError(Exception):
    """Raised when a webhook signature is missing, malformed, stale or wrong."""


def compute_signature(secret: str, timestamp: int, payload: bytes) -> str:
    signed = f"{timestamp}.".encode("utf-8") + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def build_signature_header(secret: str, payload: bytes, timestamp: int | None = None) -> str:
    timestamp = int(time.time()) if timestamp is None else timestamp
    return f"t={timestamp},v1={compute_signature(secret, timestamp, payload)}"


def _parse_header(header: str) -> tuple[int, list[str]]:
    timestamp = None
    signatures = []
    for part in header.split(","):
        key, sep, value = part.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise WebhookSignatureError("Invalid signature timestamp")
        elif key == "v1":
            signatures.append(value)

    if timestamp is None or not signatures:
        raise WebhookSignatureError("Malformed signature header")
    return timestamp, signatures


def verify_signature(
    payload: bytes,
    header: str | None,
    secret: str,
    tolerance: int = 300,
    now: float | None = None,
) -> int:
    """Validate ``header`` against ``payload``; returns the signed timestamp."""
    if not secret:
        raise WebhookSignatureError("Webhook secret is not configured")
    if not header:
        raise WebhookSignatureError("Missing signature header")

    timestamp, signatures = _parse_header(header)

    current = time.time() if now is None else now
    if abs(current - timestamp) > tolerance:
        logger.warning(
            "Webhook timestamp outside tolerance",
            extra={"age_seconds": int(current - timestamp), "tolerance": tolerance},
        )
        raise WebhookSignatureError("Signature timestamp outside tolerance")

    expected = compute_signature(secret, timestamp, payload)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise WebhookSignatureError("Signature mismatch")

    return timestamp
