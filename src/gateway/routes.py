"""Route definitions for the integration gateway service."""

from fastapi import APIRouter, Request

from src.gateway.models import OAuthTokenResponse, WebhookResponse
from src.gateway.oauth_handlers import handle_oauth_token_exchange
from src.gateway.webhook_handlers import handle_platform_webhook, handle_shopify_webhook

router = APIRouter()


# Registered before the generic route so /webhooks/shopify never matches {platform}
@router.post("/webhooks/shopify", response_model=WebhookResponse)
async def shopify_webhook(request: Request):
    """Process Shopify webhooks (orders/create, app/uninstalled, ...)."""
    return await handle_shopify_webhook(request)


@router.post("/webhooks/{platform}", response_model=WebhookResponse)
async def platform_webhook(request: Request, platform: str):
    """Process webhooks for platforms with a registered webhook endpoint."""
    return await handle_platform_webhook(request, platform)


@router.post(
    "/integrations/oauth/token",
    response_model=OAuthTokenResponse,
    response_model_exclude_none=True,
)
async def oauth_token_exchange(request: Request):
    """Complete an OAuth connection for the caller's organization."""
    return await handle_oauth_token_exchange(request)
