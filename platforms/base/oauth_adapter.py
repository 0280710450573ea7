"""OAuth adapter protocol and shared types.

Each platform implements PlatformAdapter to translate between its token
endpoint's wire format and the gateway's canonical NormalizedCredential:

1. build_exchange_request() describes the HTTP request that trades an
   authorization code for tokens (payload shape and client authentication
   differ per platform).
2. normalize_response() turns the platform's response into either a
   NormalizedCredential or an ExchangeError. It never raises.

Adapters perform no I/O; the OAuth exchange orchestrator sends the request.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from platforms.base.platform import Platform

DEFAULT_TOKEN_TYPE = "Bearer"


class PlatformAdapterConfig(BaseModel):
    """Client registration for one platform. Loaded once at startup, read-only."""

    model_config = ConfigDict(frozen=True)

    platform: Platform
    token_endpoint: str
    client_id: str
    client_secret: SecretStr


class NormalizedCredential(BaseModel):
    """Canonical credential produced by every adapter.

    Optional fields are None when the platform's protocol does not return them.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    organization_id: str | None = None
    platform: Platform
    access_token: str
    refresh_token: str | None = None
    expires_in_seconds: int | None = None
    token_type: str = DEFAULT_TOKEN_TYPE
    scope: str | None = None
    platform_metadata: dict[str, str] = Field(default_factory=dict)


@dataclass(frozen=True)
class OutboundRequest:
    """Platform-specific token exchange request. Exactly one of json/data is set."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    json: dict[str, Any] | None = None
    data: dict[str, str] | None = None
    auth: tuple[str, str] | None = None


class ExchangeErrorKind(str, Enum):
    # Platform answered but rejected the code or sent something unusable
    UPSTREAM = "upstream"
    # Network failure or timeout; no usable answer
    TRANSPORT = "transport"
    # Client id/secret missing for the platform
    CONFIGURATION = "configuration"


@dataclass(frozen=True)
class ExchangeError:
    platform: Platform
    message: str
    kind: ExchangeErrorKind = ExchangeErrorKind.UPSTREAM
    status_code: int | None = None


class PlatformAdapter(Protocol):
    """Protocol every platform OAuth adapter implements."""

    platform: Platform

    def build_exchange_request(
        self, code: str, redirect_uri: str, config: PlatformAdapterConfig
    ) -> OutboundRequest:
        """Construct the authorization-code exchange request."""
        ...

    def normalize_response(
        self, status_code: int, body: Any
    ) -> NormalizedCredential | ExchangeError:
        """Normalize a token endpoint response.

        Args:
            status_code: HTTP status returned by the token endpoint
            body: Decoded JSON body, or None if the body was not JSON
        """
        ...


def coerce_optional_str(value: Any) -> str | None:
    """Stringify a scalar token field, treating empty values as absent."""
    if value is None or value == "":
        return None
    if isinstance(value, list):
        return ",".join(str(item) for item in value) or None
    return str(value)


def coerce_optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


class BaseOAuthAdapter:
    """Shared normalization for adapters whose tokens sit in a flat JSON object.

    Subclasses set `platform`, implement build_exchange_request, and may override
    `is_success`, `token_fields` or `extract_metadata` for their envelope.
    """

    platform: Platform
    # Keys checked, in order, for the platform's own error message
    error_message_keys: tuple[str, ...] = ("error", "message", "error_description")

    def is_success(self, status_code: int, body: dict[str, Any]) -> bool:
        return 200 <= status_code < 300

    def token_fields(self, body: dict[str, Any]) -> dict[str, Any]:
        return body

    def extract_metadata(self, body: dict[str, Any]) -> dict[str, str]:
        return {}

    def error_message(self, status_code: int, body: Any) -> str:
        if isinstance(body, dict):
            for key in self.error_message_keys:
                message = body.get(key)
                if isinstance(message, str) and message:
                    return message
        return f"Token exchange failed (HTTP {status_code})"

    def normalize_response(
        self, status_code: int, body: Any
    ) -> NormalizedCredential | ExchangeError:
        if not isinstance(body, dict):
            return ExchangeError(
                platform=self.platform,
                message=self.error_message(status_code, body)
                if status_code >= 300
                else "Malformed token response",
                status_code=status_code,
            )

        if not self.is_success(status_code, body):
            return ExchangeError(
                platform=self.platform,
                message=self.error_message(status_code, body),
                status_code=status_code,
            )

        tokens = self.token_fields(body)
        access_token = coerce_optional_str(tokens.get("access_token"))
        if not access_token:
            return ExchangeError(
                platform=self.platform,
                message="Token response did not include an access token",
                status_code=status_code,
            )

        return NormalizedCredential(
            platform=self.platform,
            access_token=access_token,
            refresh_token=coerce_optional_str(tokens.get("refresh_token")),
            expires_in_seconds=coerce_optional_int(tokens.get("expires_in")),
            token_type=coerce_optional_str(tokens.get("token_type")) or DEFAULT_TOKEN_TYPE,
            scope=coerce_optional_str(tokens.get("scope")),
            platform_metadata=self.extract_metadata(body),
        )
