from platforms.shopify.shopify_webhook_handler import (
    SHOPIFY_HMAC_HEADER,
    SHOPIFY_REQUIRED_HEADERS,
    SHOPIFY_SHOP_DOMAIN_HEADER,
    SHOPIFY_TOPIC_HEADER,
    SHOPIFY_WEBHOOK_ID_HEADER,
    ShopifyWebhookVerifier,
    extract_shopify_webhook_metadata,
    missing_shopify_headers,
    verify_shopify_webhook,
)

__all__ = [
    # Headers
    "SHOPIFY_HMAC_HEADER",
    "SHOPIFY_REQUIRED_HEADERS",
    "SHOPIFY_SHOP_DOMAIN_HEADER",
    "SHOPIFY_TOPIC_HEADER",
    "SHOPIFY_WEBHOOK_ID_HEADER",
    # Webhook Handlers
    "ShopifyWebhookVerifier",
    "verify_shopify_webhook",
    "missing_shopify_headers",
    "extract_shopify_webhook_metadata",
]
