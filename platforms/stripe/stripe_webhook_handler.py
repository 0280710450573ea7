"""
Stripe webhook verification utilities.

Stripe-Signature looks like `t=1492774577,v1=5257a8...,v1=...`. The signed
payload is "{t}.{raw body}"; any v1 entry matching the expected digest is
accepted, which lets Stripe sign with old and new secrets during rotation.
"""

import hashlib
import hmac
import time

from src.gateway.verification import BaseSigningSecretVerifier, MissingSignatureError

STRIPE_SIGNATURE_HEADER = "stripe-signature"
STRIPE_SIGNATURE_SCHEME = "v1"
# Stripe's own libraries default to five minutes
DEFAULT_TOLERANCE_SECONDS = 300


class StripeWebhookVerifier(BaseSigningSecretVerifier):
    """Verifier for Stripe webhooks using timestamped HMAC-SHA256 signatures."""

    source_type = "stripe"
    verify_func = staticmethod(lambda h, b, s: verify_stripe_webhook(h, b, s))


def parse_stripe_signature_header(header: str) -> tuple[int | None, list[str]]:
    """Split a Stripe-Signature header into its timestamp and v1 signatures."""
    timestamp: int | None = None
    signatures: list[str] = []

    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                timestamp = None
        elif key == STRIPE_SIGNATURE_SCHEME and value:
            signatures.append(value)

    return timestamp, signatures


def verify_stripe_webhook(
    headers: dict[str, str],
    body: bytes,
    secret: str,
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> None:
    """Verify the Stripe-Signature header and reject stale timestamps."""
    header = headers.get(STRIPE_SIGNATURE_HEADER)
    if not header:
        raise MissingSignatureError("Missing Stripe-Signature header")

    timestamp, signatures = parse_stripe_signature_header(header)
    if timestamp is None or not signatures:
        raise ValueError("Malformed Stripe-Signature header")

    current_time = time.time() if now is None else now
    if abs(current_time - timestamp) > tolerance_seconds:
        raise ValueError("Stripe webhook timestamp outside tolerance - potential replay attack")

    signed_payload = f"{timestamp}.".encode() + body
    expected = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest().encode()

    # compare_digest raises on non-ASCII str; header values are attacker-controlled
    if not any(
        hmac.compare_digest(expected, candidate.encode("utf-8", "replace")) for candidate in signatures
    ):
        raise ValueError("Stripe webhook signature verification failed")
