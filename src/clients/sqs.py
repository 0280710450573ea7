"""AWS SQS client for publishing webhook jobs."""

import asyncio
import json
import uuid
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

import sqs_extended_client  # noqa: F401 # Required for monkey-patching boto3 SQS client
from botocore.client import BaseClient

from src.clients.aws_base import AWSBaseClient
from src.jobs.models import WebhookJobMessage
from src.utils.config import (
    get_sqs_extended_enabled,
    get_sqs_extended_s3_bucket,
    get_webhook_jobs_queue_arn,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Plain SQS rejects message bodies above this size
LARGE_PAYLOAD_SIZE = 256 * 1024

T = TypeVar("T")


def run_in_executor(func: Callable[..., T]) -> Callable[..., asyncio.Future[T]]:
    """Decorator to run boto3 calls in a thread pool to avoid blocking the event loop."""

    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(self, *args, **kwargs))

    return wrapper


def is_fifo_queue(queue_url: str) -> bool:
    return queue_url.endswith(".fifo")


class SQSClient(AWSBaseClient):
    """Client for AWS SQS (Simple Queue Service) operations."""

    def __init__(self, queue_arn: str | None = None, region_name: str | None = None):
        """Initialize SQS client.

        Args:
            queue_arn: Webhook jobs queue ARN or URL, defaults to WEBHOOK_JOBS_QUEUE_ARN
            region_name: AWS region name, defaults to config value
        """
        super().__init__("sqs", region_name)
        self.queue_arn = queue_arn or get_webhook_jobs_queue_arn()
        self._extended_client: BaseClient | None = None
        self._extended_client_enabled = get_sqs_extended_enabled()
        self._extended_client_s3_bucket = get_sqs_extended_s3_bucket()

        if self._extended_client_enabled and not self._extended_client_s3_bucket:
            logger.warning("SQS Extended Client enabled but no S3 bucket configured")
            self._extended_client_enabled = False

    def _convert_arn_to_url(self, queue_arn: str) -> str:
        """Convert SQS queue ARN to URL format required by boto3.

        Args:
            queue_arn: SQS queue ARN (e.g., arn:aws:sqs:us-east-1:123456789012:my-queue)

        Returns:
            Queue URL (e.g., https://sqs.us-east-1.amazonaws.com/123456789012/my-queue)

        Raises:
            ValueError: If ARN format is invalid
        """
        if queue_arn.startswith("https://") or queue_arn.startswith("http://"):
            return queue_arn

        # arn:aws:sqs:region:account-id:queue-name
        arn_parts = queue_arn.split(":")
        if len(arn_parts) != 6 or arn_parts[0] != "arn" or arn_parts[2] != "sqs":
            raise ValueError(f"Invalid SQS ARN format: {queue_arn}")

        region, account_id, queue_name = arn_parts[3], arn_parts[4], arn_parts[5]
        return f"https://sqs.{region}.amazonaws.com/{account_id}/{queue_name}"

    def _get_extended_client(self) -> BaseClient | None:
        """Get or create the extended SQS client used for oversized payloads."""
        if not self._extended_client_enabled:
            return None

        if self._extended_client is None:
            extended_client = self.session.client("sqs")
            extended_client.large_payload_support = self._extended_client_s3_bucket
            extended_client.use_legacy_attribute = False
            extended_client.delete_payload_from_s3 = True
            logger.info(
                f"Created extended SQS client with bucket: {self._extended_client_s3_bucket}"
            )
            self._extended_client = extended_client
        return self._extended_client

    @run_in_executor
    def _send_message_sync(self, send_params: dict[str, Any], large: bool) -> dict[str, Any]:
        client = (self._get_extended_client() if large else None) or self.client
        return client.send_message(**send_params)

    async def send_message(
        self,
        queue_arn: str,
        message_body: str | dict[str, Any],
        message_group_id: str | None = None,
        message_attributes: dict[str, Any] | None = None,
    ) -> str | None:
        """Send message to SQS queue.

        FIFO queues get a group id and a fresh deduplication id on every send, so
        a redelivered webhook is always enqueued again.

        Args:
            queue_arn: SQS queue ARN or URL
            message_body: Message body (string or dict that will be JSON-encoded)
            message_group_id: Group id, only used for FIFO queues
            message_attributes: Optional message attributes

        Returns:
            Message ID if successful, None otherwise
        """
        try:
            queue_url = self._convert_arn_to_url(queue_arn)
            body = json.dumps(message_body) if isinstance(message_body, dict) else message_body
            large = len(body.encode("utf-8")) > LARGE_PAYLOAD_SIZE

            if large:
                logger.info(
                    "Large webhook job will be stored in S3",
                    payload_size=len(body),
                    s3_bucket=self._extended_client_s3_bucket,
                )

            send_params: dict[str, Any] = {"QueueUrl": queue_url, "MessageBody": body}

            if message_attributes:
                send_params["MessageAttributes"] = message_attributes

            if is_fifo_queue(queue_url):
                send_params["MessageGroupId"] = message_group_id or "default"
                send_params["MessageDeduplicationId"] = str(uuid.uuid4())

            response = await self._send_message_sync(send_params, large)
            return response["MessageId"]

        except Exception as e:
            self.log_aws_error(e, f"send_message to {queue_arn}")
            return None

    async def send_webhook_job(self, job: WebhookJobMessage) -> str | None:
        """Send a webhook job to the webhook jobs queue.

        Returns:
            Message ID if successful, None otherwise
        """
        if not self.queue_arn:
            logger.error("WEBHOOK_JOBS_QUEUE_ARN is not configured; cannot enqueue webhook job")
            return None

        message_attributes = {
            "organization_id": {"StringValue": job.organization_id, "DataType": "String"},
            "source": {"StringValue": job.source, "DataType": "String"},
            "topic": {"StringValue": job.topic, "DataType": "String"},
        }

        message_id = await self.send_message(
            queue_arn=self.queue_arn,
            message_body=job.model_dump_json(),
            message_group_id=job.organization_id,
            message_attributes=message_attributes,
        )

        if not message_id:
            logger.error(
                "Failed to send webhook job",
                organization_id=job.organization_id,
                source=job.source,
                topic=job.topic,
            )

        return message_id
