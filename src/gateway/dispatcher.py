"""Hands verified, tenant-resolved webhooks off to the webhook jobs queue."""

import json
from datetime import UTC, datetime

from src.clients.sqs import SQSClient
from src.gateway.models import (
    DispatchError,
    DispatchFailureReason,
    JobHandle,
    WebhookEnvelope,
)
from src.jobs.models import WebhookJobMessage
from src.utils.logging import get_logger

logger = get_logger(__name__)


class WebhookDispatcher:
    """Enqueues one job per webhook delivery.

    Topics and payloads are not interpreted here. Duplicate deliveries are
    enqueued again; consumers own deduplication. Every call ends in a JobHandle
    or a DispatchError.
    """

    def __init__(self, sqs_client: SQSClient):
        self.sqs_client = sqs_client

    async def dispatch(
        self, envelope: WebhookEnvelope, organization_id: str, source: str = "shopify"
    ) -> JobHandle | DispatchError:
        try:
            payload = json.loads(envelope.raw_body)
        except ValueError:
            logger.info(
                "Webhook body is not valid JSON",
                organization_id=organization_id,
                topic=envelope.topic,
                payload_size=len(envelope.raw_body),
            )
            return DispatchError(
                reason=DispatchFailureReason.INVALID_PAYLOAD,
                organization_id=organization_id,
                topic=envelope.topic,
            )

        job = WebhookJobMessage(
            organization_id=organization_id,
            source=source,
            source_domain=envelope.source_domain,
            topic=envelope.topic,
            payload=payload,
            webhook_id=envelope.webhook_id,
        )

        message_id = await self.sqs_client.send_webhook_job(job)
        if not message_id:
            return DispatchError(
                reason=DispatchFailureReason.QUEUE_UNAVAILABLE,
                organization_id=organization_id,
                topic=envelope.topic,
            )

        logger.info(
            f"Enqueued {source} webhook job",
            organization_id=organization_id,
            topic=envelope.topic,
            message_id=message_id,
        )
        return JobHandle(message_id=message_id, queued_at=datetime.now(UTC))
