"""
Klaviyo webhook verification utilities.
"""

from src.gateway.verification import (
    BaseSigningSecretVerifier,
    MissingSignatureError,
    verify_hex,
)

KLAVIYO_SIGNATURE_HEADER = "x-klaviyo-signature"


class KlaviyoWebhookVerifier(BaseSigningSecretVerifier):
    """Verifier for Klaviyo webhooks using hex HMAC-SHA256 signatures."""

    source_type = "klaviyo"
    verify_func = staticmethod(lambda h, b, s: verify_klaviyo_webhook(h, b, s))


def verify_klaviyo_webhook(headers: dict[str, str], body: bytes, secret: str) -> None:
    signature = headers.get(KLAVIYO_SIGNATURE_HEADER)
    if not signature:
        raise MissingSignatureError("Missing X-Klaviyo-Signature header")

    if not verify_hex(body, signature, secret):
        raise ValueError("Klaviyo webhook signature verification failed")
