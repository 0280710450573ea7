"""Webhook signature verification primitives and verifier protocol.

Signatures are always computed over the exact raw request bytes. Handlers in
`platforms/<name>/` implement each platform's header and encoding scheme on top
of these helpers and report failures by raising ValueError, which
BaseSigningSecretVerifier turns into a VerificationResult.
"""

import base64
import hashlib
import hmac
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Base64-encoded HMAC-SHA256 of raw_body (Shopify's encoding)."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def compute_hex_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify(raw_body: bytes, provided_signature: str, shared_secret: str) -> bool:
    """Check a base64 HMAC-SHA256 signature in constant time.

    Returns False for a mismatch, an empty signature or an empty secret. Never raises.
    """
    if not provided_signature or not shared_secret:
        return False
    expected = compute_signature(raw_body, shared_secret)
    return hmac.compare_digest(
        expected.encode("utf-8"), provided_signature.strip().encode("utf-8")
    )


def verify_hex(raw_body: bytes, provided_signature: str, shared_secret: str) -> bool:
    """Hex-digest variant of verify(); case-insensitive on the provided digest."""
    if not provided_signature or not shared_secret:
        return False
    expected = compute_hex_signature(raw_body, shared_secret)
    return hmac.compare_digest(
        expected.encode("utf-8"), provided_signature.strip().lower().encode("utf-8")
    )


class VerificationFailureReason(str, Enum):
    MISSING_HEADERS = "missing_headers"
    INVALID_SIGNATURE = "invalid_signature"
    NOT_CONFIGURED = "not_configured"


class MissingSignatureError(ValueError):
    """The request carried no signature header at all."""


@dataclass
class VerificationResult:
    """Result of webhook verification."""

    success: bool
    error: str | None = None
    reason: VerificationFailureReason | None = None


class WebhookVerifier(Protocol):
    """Protocol for webhook verification handlers.

    Verification is CPU-only; callers resolve the shared secret (app-wide or
    per endpoint) and pass it in.
    """

    source_type: str

    def verify(self, headers: dict[str, str], body: bytes, secret: str) -> VerificationResult:
        """Verify a webhook against a shared secret.

        Args:
            headers: HTTP headers from the webhook request, lowercase keys
            body: Raw request body as bytes
            secret: Shared signing secret for this source

        Returns:
            VerificationResult indicating success or failure with error message
        """
        ...


# Raises ValueError (or MissingSignatureError) on failure
VerifyFunc = Callable[[dict[str, str], bytes, str], None]


class BaseSigningSecretVerifier:
    """Base class for verifiers backed by a shared signing secret.

    Subclasses only need to define:
    - source_type: The platform identifier (e.g., "shopify", "stripe")
    - verify_func: The function that performs the actual verification
    """

    source_type: str
    verify_func: VerifyFunc

    def verify(self, headers: dict[str, str], body: bytes, secret: str) -> VerificationResult:
        if not secret:
            return VerificationResult(
                success=False,
                error=f"No signing secret configured for {self.source_type}",
                reason=VerificationFailureReason.NOT_CONFIGURED,
            )

        try:
            self.verify_func(headers, body, secret)
            return VerificationResult(success=True)
        except MissingSignatureError as e:
            return VerificationResult(
                success=False, error=str(e), reason=VerificationFailureReason.MISSING_HEADERS
            )
        except ValueError as e:
            return VerificationResult(
                success=False, error=str(e), reason=VerificationFailureReason.INVALID_SIGNATURE
            )


GENERIC_SIGNATURE_HEADERS = ("x-webhook-signature", "x-signature")


def verify_generic_webhook(headers: dict[str, str], body: bytes, secret: str) -> None:
    """Hex HMAC-SHA256 in X-Webhook-Signature or X-Signature."""
    signature = next((headers[h] for h in GENERIC_SIGNATURE_HEADERS if headers.get(h)), None)
    if not signature:
        raise MissingSignatureError("Missing webhook signature header")
    if not verify_hex(body, signature, secret):
        raise ValueError("Webhook signature verification failed")


class GenericWebhookVerifier(BaseSigningSecretVerifier):
    """Fallback verifier for platforms without a dedicated scheme."""

    source_type = "generic"
    verify_func = staticmethod(lambda h, b, s: verify_generic_webhook(h, b, s))
