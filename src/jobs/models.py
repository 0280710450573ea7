"""
Pydantic models for SQS job messages.

WARNING: WebhookJobMessage is consumed by the sync worker (outside this service). Any change to its fields must be
reflected in the worker's job schema.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class WebhookJobMessage(BaseModel):
    """A verified, tenant-resolved webhook handed off for asynchronous processing.

    The gateway does not interpret `topic` or `payload`. Duplicate deliveries from
    the source platform produce duplicate jobs; consumers deduplicate on
    `webhook_id` when the platform supplies one.
    """

    message_type: Literal["webhook"] = "webhook"
    organization_id: str
    source: str
    source_domain: str | None = None
    topic: str
    payload: Any
    webhook_id: str | None = None
    enqueued_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
