"""
OAuth authorization-code exchange orchestrator.

Drives one exchange through validated -> requested -> succeeded | failed using
the platform's adapter. Authorization codes are single-use, so nothing here
retries; the caller decides whether the user restarts the flow. Persisting the
resulting credential is the caller's job.
"""

from dataclasses import dataclass
from enum import Enum

import httpx

from platforms.base import (
    ExchangeError,
    ExchangeErrorKind,
    NormalizedCredential,
    Platform,
    PlatformAdapterConfig,
)
from src.gateway.adapter_registry import get_adapter
from src.gateway.models import OAuthExchangeRequest
from src.utils.config import get_oauth_http_timeout_seconds
from src.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


class ExchangeState(str, Enum):
    VALIDATED = "validated"
    REQUESTED = "requested"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ExchangeResult:
    state: ExchangeState
    platform: Platform
    credential: NormalizedCredential | None = None
    error: ExchangeError | None = None

    @property
    def succeeded(self) -> bool:
        return self.state == ExchangeState.SUCCEEDED


class OAuthExchangeOrchestrator:
    """Exchanges authorization codes for tokens through the platform adapters."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        platform_configs: dict[Platform, PlatformAdapterConfig],
        timeout_seconds: float | None = None,
    ):
        self.http_client = http_client
        self.platform_configs = platform_configs
        self.timeout_seconds = timeout_seconds or get_oauth_http_timeout_seconds()

    def _failed(self, error: ExchangeError) -> ExchangeResult:
        return ExchangeResult(state=ExchangeState.FAILED, platform=error.platform, error=error)

    async def exchange(self, request: OAuthExchangeRequest) -> ExchangeResult:
        platform = request.platform

        with LogContext(platform=platform.value):
            adapter = get_adapter(platform)
            config = self.platform_configs.get(platform)
            if adapter is None or config is None:
                logger.error(
                    f"OAuth exchange for {platform.value} rejected: platform is not configured",
                    state=ExchangeState.FAILED.value,
                )
                return self._failed(
                    ExchangeError(
                        platform=platform,
                        message=f"OAuth is not configured for {platform.value}",
                        kind=ExchangeErrorKind.CONFIGURATION,
                    )
                )

            logger.info("OAuth exchange validated", state=ExchangeState.VALIDATED.value)
            outbound = adapter.build_exchange_request(
                request.authorization_code, request.redirect_uri, config
            )

            logger.info("OAuth exchange requested", state=ExchangeState.REQUESTED.value)
            try:
                response = await self.http_client.request(
                    outbound.method,
                    outbound.url,
                    headers=outbound.headers,
                    json=outbound.json,
                    data=outbound.data,
                    auth=outbound.auth,
                    timeout=self.timeout_seconds,
                )
            except httpx.HTTPError as e:
                logger.warning(
                    f"OAuth exchange for {platform.value} failed to reach token endpoint",
                    state=ExchangeState.FAILED.value,
                    error_type=type(e).__name__,
                )
                return self._failed(
                    ExchangeError(
                        platform=platform,
                        message=f"Could not reach {platform.value} token endpoint",
                        kind=ExchangeErrorKind.TRANSPORT,
                    )
                )

            try:
                body = response.json()
            except ValueError:
                body = None

            outcome = adapter.normalize_response(response.status_code, body)
            if isinstance(outcome, ExchangeError):
                logger.warning(
                    f"OAuth exchange for {platform.value} rejected by platform: {outcome.message}",
                    state=ExchangeState.FAILED.value,
                    upstream_status=response.status_code,
                )
                return self._failed(outcome)

            logger.info(
                "OAuth exchange succeeded",
                state=ExchangeState.SUCCEEDED.value,
                upstream_status=response.status_code,
                has_refresh_token=outcome.refresh_token is not None,
            )
            return ExchangeResult(
                state=ExchangeState.SUCCEEDED, platform=platform, credential=outcome
            )
