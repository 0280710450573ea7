from platforms.stripe.stripe_webhook_handler import (
    StripeWebhookVerifier,
    parse_stripe_signature_header,
    verify_stripe_webhook,
)

__all__ = ["StripeWebhookVerifier", "parse_stripe_signature_header", "verify_stripe_webhook"]
