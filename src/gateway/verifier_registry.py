"""Webhook verifier registry and factory.

Maps platform identifiers to their signature scheme. Platforms without a
dedicated entry fall back to the generic hex HMAC verifier.
"""

from enum import Enum

from src.gateway.verification import GenericWebhookVerifier, WebhookVerifier


class WebhookSourceType(str, Enum):
    """Webhook sources with a dedicated signature scheme."""

    SHOPIFY = "shopify"
    KLAVIYO = "klaviyo"
    STRIPE = "stripe"


def _build_verifier_registry() -> dict[WebhookSourceType, WebhookVerifier]:
    """Build the verifier registry lazily to avoid circular imports."""
    # platforms.* import src.gateway.verification
    from platforms.klaviyo import KlaviyoWebhookVerifier
    from platforms.shopify import ShopifyWebhookVerifier
    from platforms.stripe import StripeWebhookVerifier

    return {
        WebhookSourceType.SHOPIFY: ShopifyWebhookVerifier(),
        WebhookSourceType.KLAVIYO: KlaviyoWebhookVerifier(),
        WebhookSourceType.STRIPE: StripeWebhookVerifier(),
    }


# Lazily initialized registry
_verifier_registry: dict[WebhookSourceType, WebhookVerifier] | None = None
_default_verifier = GenericWebhookVerifier()


def get_verifier(source_type: WebhookSourceType | str) -> WebhookVerifier:
    """Get the verifier for a given source type.

    Args:
        source_type: The webhook source type (enum or string value)

    Returns:
        The platform's verifier, or the generic verifier for unknown platforms
    """
    global _verifier_registry
    if _verifier_registry is None:
        _verifier_registry = _build_verifier_registry()

    if isinstance(source_type, str):
        try:
            source_type = WebhookSourceType(source_type)
        except ValueError:
            return _default_verifier

    return _verifier_registry.get(source_type, _default_verifier)


def get_all_source_types() -> list[WebhookSourceType]:
    return list(WebhookSourceType)
