"""
Shopify webhook verification utilities.

Shopify signs the raw body with the app's client secret and sends the
base64-encoded HMAC-SHA256 digest in X-Shopify-Hmac-Sha256.
"""

import json

from src.gateway.verification import (
    BaseSigningSecretVerifier,
    MissingSignatureError,
    verify,
)

SHOPIFY_TOPIC_HEADER = "x-shopify-topic"
SHOPIFY_SHOP_DOMAIN_HEADER = "x-shopify-shop-domain"
SHOPIFY_HMAC_HEADER = "x-shopify-hmac-sha256"
SHOPIFY_WEBHOOK_ID_HEADER = "x-shopify-webhook-id"

SHOPIFY_REQUIRED_HEADERS = (
    SHOPIFY_TOPIC_HEADER,
    SHOPIFY_SHOP_DOMAIN_HEADER,
    SHOPIFY_HMAC_HEADER,
)


class ShopifyWebhookVerifier(BaseSigningSecretVerifier):
    """Verifier for Shopify webhooks using base64 HMAC-SHA256 signatures."""

    source_type = "shopify"
    verify_func = staticmethod(lambda h, b, s: verify_shopify_webhook(h, b, s))


def verify_shopify_webhook(headers: dict[str, str], body: bytes, secret: str) -> None:
    """Verify the X-Shopify-Hmac-Sha256 header against the raw body."""
    signature = headers.get(SHOPIFY_HMAC_HEADER)
    if not signature:
        raise MissingSignatureError("Missing X-Shopify-Hmac-Sha256 header")

    if not verify(body, signature, secret):
        raise ValueError("Shopify webhook signature verification failed")


def missing_shopify_headers(headers: dict[str, str]) -> list[str]:
    """Return the required Shopify headers that are absent or blank."""
    return [h for h in SHOPIFY_REQUIRED_HEADERS if not (headers.get(h) or "").strip()]


def extract_shopify_webhook_metadata(
    headers: dict[str, str], body_str: str
) -> dict[str, str | int]:
    """Extract metadata from a Shopify webhook for observability.

    Never fails; parse problems are recorded in the returned dict.
    """
    metadata: dict[str, str | int] = {"payload_size": len(body_str)}

    if api_version := headers.get("x-shopify-api-version"):
        metadata["api_version"] = api_version
    if webhook_id := headers.get(SHOPIFY_WEBHOOK_ID_HEADER):
        metadata["webhook_id"] = webhook_id
    if triggered_at := headers.get("x-shopify-triggered-at"):
        metadata["triggered_at"] = triggered_at

    try:
        payload = json.loads(body_str)
    except (json.JSONDecodeError, ValueError):
        metadata["parse_error"] = "Failed to parse JSON"
        return metadata

    if isinstance(payload, dict):
        if (entity_id := payload.get("id")) is not None:
            metadata["entity_id"] = str(entity_id)
        if admin_graphql_api_id := payload.get("admin_graphql_api_id"):
            metadata["admin_graphql_api_id"] = str(admin_graphql_api_id)

    return metadata
