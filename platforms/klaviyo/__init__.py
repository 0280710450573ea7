from platforms.klaviyo.klaviyo_webhook_handler import (
    KlaviyoWebhookVerifier,
    verify_klaviyo_webhook,
)

__all__ = ["KlaviyoWebhookVerifier", "verify_klaviyo_webhook"]
