"""Pydantic models for the integration gateway service."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from platforms.base import Platform


class WebhookEnvelope(BaseModel):
    """An inbound webhook exactly as received. Immutable."""

    model_config = ConfigDict(frozen=True)

    topic: str
    source_domain: str
    raw_body: bytes
    signature: str
    received_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    webhook_id: str | None = None


class WebhookResponse(BaseModel):
    """Webhook response model. Carries no job identifier."""

    success: bool = True


class OAuthTokenRequest(BaseModel):
    """Body of POST /integrations/oauth/token.

    `platform` stays a plain string here so an unknown value is reported as
    "Unsupported platform" rather than a generic validation failure.
    """

    platform: str = Field(min_length=1)
    code: str = Field(min_length=1)
    state: str | None = None


class OAuthExchangeRequest(BaseModel):
    """Input to the exchange orchestrator. Never persisted."""

    platform: Platform
    authorization_code: str
    redirect_uri: str
    state: str | None = None

    def __repr__(self) -> str:
        return f"OAuthExchangeRequest(platform={self.platform.value!r}, redirect_uri={self.redirect_uri!r})"


class OAuthTokenResponse(BaseModel):
    """Success body for the token exchange. The refresh token stays server-side."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    platform: Platform
    credential_id: str
    access_token: str
    token_type: str
    expires_in: int | None = None
    scope: str | None = None
    platform_metadata: dict[str, str] = Field(default_factory=dict)


@dataclass(frozen=True)
class JobHandle:
    message_id: str
    queued_at: datetime


class DispatchFailureReason(str, Enum):
    INVALID_PAYLOAD = "invalid_payload"
    QUEUE_UNAVAILABLE = "queue_unavailable"


@dataclass(frozen=True)
class DispatchError:
    reason: DispatchFailureReason
    organization_id: str
    topic: str
