"""Webhook handler functions for the integration gateway."""

import json
import re
from typing import Any

from fastapi import Request

from platforms.shopify import (
    SHOPIFY_HMAC_HEADER,
    SHOPIFY_SHOP_DOMAIN_HEADER,
    SHOPIFY_TOPIC_HEADER,
    SHOPIFY_WEBHOOK_ID_HEADER,
    extract_shopify_webhook_metadata,
    missing_shopify_headers,
)
from src.gateway.dispatcher import WebhookDispatcher
from src.gateway.errors import (
    InfrastructureError,
    InvalidSignatureError,
    OrganizationNotFoundError,
    RequestValidationError,
)
from src.gateway.models import (
    DispatchError,
    DispatchFailureReason,
    WebhookEnvelope,
    WebhookResponse,
)
from src.gateway.organization_resolver import OrganizationResolver
from src.gateway.verification import VerificationFailureReason, WebhookVerifier
from src.gateway.verifier_registry import WebhookSourceType, get_verifier
from src.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

# Checked in order when recording which signature a delivery carried
SIGNATURE_HEADERS = (
    SHOPIFY_HMAC_HEADER,
    "x-klaviyo-signature",
    "stripe-signature",
    "x-webhook-signature",
    "x-signature",
)
WEBHOOK_ID_HEADERS = (SHOPIFY_WEBHOOK_ID_HEADER, "x-webhook-id", "webhook-id")
SIGNATURE_LOG_PREFIX_LENGTH = 8


def validate_platform_name(platform: str) -> None:
    """Platform path segments are lowercase identifiers like "klaviyo"."""
    if not re.match(r"^[a-z0-9_-]{1,64}$", platform):
        raise RequestValidationError("Invalid platform", platform=platform[:64])


def _first_header(headers: dict[str, str], names: tuple[str, ...]) -> str | None:
    return next((headers[name] for name in names if headers.get(name)), None)


def _extract_webhook_metadata(
    source_type: str, headers: dict[str, str], body_str: str
) -> dict[str, str | int]:
    """Extract metadata from a webhook payload for observability.

    Always includes payload_size.
    """
    try:
        if source_type == WebhookSourceType.SHOPIFY:
            return extract_shopify_webhook_metadata(headers, body_str)
        return {"payload_size": len(body_str), "source_type": source_type}
    except Exception as e:
        logger.error(f"Error extracting webhook metadata for {source_type}: {e}")
        return {"payload_size": len(body_str), "metadata_extraction_error": str(e)}


def _is_validation_disabled(request: Request) -> bool:
    """Check if webhook validation is disabled via app state."""
    return getattr(request.app.state, "dangerously_disable_webhook_validation", False)


def _verify_and_raise(
    verifier: WebhookVerifier,
    headers: dict[str, str],
    body: bytes,
    secret: str | None,
    source_type: str,
    request: Request,
) -> None:
    """Verify a webhook and raise the matching GatewayError on failure.

    Raises:
        RequestValidationError: No signature header was sent
        InvalidSignatureError: The signature does not match the body
        InfrastructureError: No signing secret is configured for the source
    """
    if _is_validation_disabled(request):
        logger.warning(
            f"⚠️ Skipping {source_type} webhook verification (DANGEROUSLY_DISABLE_WEBHOOK_VALIDATION=true)",
        )
        return

    result = verifier.verify(headers, body, secret or "")
    if result.success:
        return

    signature = _first_header(headers, SIGNATURE_HEADERS) or ""

    if result.reason == VerificationFailureReason.NOT_CONFIGURED:
        raise InfrastructureError(
            reason=result.reason.value, detail=result.error, source_type=source_type
        )

    if result.reason == VerificationFailureReason.MISSING_HEADERS:
        raise RequestValidationError(
            "Missing required headers", reason=result.reason.value, source_type=source_type
        )

    raise InvalidSignatureError(
        "Invalid signature",
        reason=VerificationFailureReason.INVALID_SIGNATURE.value,
        detail=result.error,
        source_type=source_type,
        signature_prefix=signature[:SIGNATURE_LOG_PREFIX_LENGTH],
    )


async def _dispatch_verified_webhook(
    request: Request,
    envelope: WebhookEnvelope,
    organization_id: str,
    source_type: str,
    headers: dict[str, str],
) -> WebhookResponse:
    """Enqueue an already-verified, tenant-resolved webhook.

    Raises:
        RequestValidationError: The body is not JSON
        InfrastructureError: The job could not be handed to the queue
    """
    body_str = envelope.raw_body.decode("utf-8", errors="replace")
    webhook_metadata = _extract_webhook_metadata(source_type, headers, body_str)
    tracking_context = {f"webhook_meta_{key}": value for key, value in webhook_metadata.items()}

    with LogContext(organization_id=organization_id, **tracking_context):
        logger.info(f"Webhook verification successful for {source_type}")

        dispatcher: WebhookDispatcher = request.app.state.webhook_dispatcher
        outcome = await dispatcher.dispatch(envelope, organization_id, source=source_type)

        if isinstance(outcome, DispatchError):
            if outcome.reason == DispatchFailureReason.INVALID_PAYLOAD:
                raise RequestValidationError(
                    "Invalid JSON payload",
                    reason=outcome.reason.value,
                    organization_id=organization_id,
                    topic=outcome.topic,
                )
            raise InfrastructureError(
                reason=outcome.reason.value,
                organization_id=organization_id,
                topic=outcome.topic,
            )

        return WebhookResponse(success=True)


async def handle_shopify_webhook(request: Request) -> WebhookResponse:
    """Verify a Shopify webhook, resolve its store and enqueue a job.

    Headers are checked before any cryptography, and the signature before any
    database lookup.
    """
    headers = dict(request.headers)

    missing = missing_shopify_headers(headers)
    if missing:
        raise RequestValidationError(
            "Missing required headers",
            reason=VerificationFailureReason.MISSING_HEADERS.value,
            missing_headers=",".join(missing),
        )

    topic = headers[SHOPIFY_TOPIC_HEADER].strip()
    shop_domain = headers[SHOPIFY_SHOP_DOMAIN_HEADER].strip()
    body = await request.body()

    with LogContext(shop_domain=shop_domain, topic=topic):
        try:
            _verify_and_raise(
                get_verifier(WebhookSourceType.SHOPIFY),
                headers,
                body,
                request.app.state.shopify_webhook_secret,
                WebhookSourceType.SHOPIFY.value,
                request,
            )
        except InvalidSignatureError as e:
            e.context["shop_domain"] = shop_domain
            raise

        resolver: OrganizationResolver = request.app.state.organization_resolver
        organization = await resolver.resolve_by_shop_domain(shop_domain)

        envelope = WebhookEnvelope(
            topic=topic,
            source_domain=shop_domain,
            raw_body=body,
            signature=headers[SHOPIFY_HMAC_HEADER],
            webhook_id=headers.get(SHOPIFY_WEBHOOK_ID_HEADER),
        )
        return await _dispatch_verified_webhook(
            request, envelope, organization.id, WebhookSourceType.SHOPIFY.value, headers
        )


def extract_event_type(payload: Any) -> str:
    """Event name from a generic webhook payload: `event`, then `type`, else "unknown"."""
    if isinstance(payload, dict):
        for key in ("event", "type"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return "unknown"


async def handle_platform_webhook(request: Request, platform: str) -> WebhookResponse:
    """Verify a webhook against the platform's registered endpoint and enqueue a job.

    The endpoint row supplies both the signing secret and the owning
    organization.
    """
    validate_platform_name(platform)
    headers = dict(request.headers)
    body = await request.body()

    with LogContext(platform=platform):
        endpoint = await request.app.state.webhook_endpoints.get_active_by_platform(platform)
        if endpoint is None:
            raise OrganizationNotFoundError("Webhook endpoint not found", platform=platform)

        try:
            _verify_and_raise(
                get_verifier(platform), headers, body, endpoint.secret, platform, request
            )
        except InvalidSignatureError as e:
            e.context["platform"] = platform
            raise

        try:
            payload = json.loads(body)
        except ValueError:
            raise RequestValidationError("Invalid JSON payload", platform=platform) from None

        envelope = WebhookEnvelope(
            topic=extract_event_type(payload),
            source_domain=platform,
            raw_body=body,
            signature=_first_header(headers, SIGNATURE_HEADERS) or "",
            webhook_id=_first_header(headers, WEBHOOK_ID_HEADERS),
        )
        return await _dispatch_verified_webhook(
            request, envelope, endpoint.organization_id, platform, headers
        )
