"""OAuth token exchange handler for the integration gateway."""

import asyncio

from fastapi import Request
from pydantic import ValidationError

from platforms.base import ExchangeErrorKind, Platform
from src.database.integrations import CredentialStore, StoredCredential
from src.gateway.adapter_registry import get_adapter, parse_platform
from src.gateway.errors import (
    InfrastructureError,
    MissingBearerTokenError,
    RequestValidationError,
    TokenExchangeError,
    UnknownPlatformError,
)
from src.gateway.models import OAuthExchangeRequest, OAuthTokenRequest, OAuthTokenResponse
from src.gateway.oauth_orchestrator import OAuthExchangeOrchestrator
from src.gateway.organization_resolver import OrganizationResolver
from src.utils.config import get_app_base_url
from src.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

# Must match the redirect URI registered with every platform's OAuth app
OAUTH_CALLBACK_PATH = "/integrations/oauth/callback"


def build_redirect_uri(origin: str | None) -> str:
    base_url = (origin or get_app_base_url()).rstrip("/")
    return f"{base_url}{OAUTH_CALLBACK_PATH}"


def extract_bearer_token(authorization: str | None) -> str:
    """Pull the token out of an `Authorization: Bearer <token>` header.

    Raises:
        MissingBearerTokenError: The header is absent or not a Bearer credential
    """
    if not authorization:
        raise MissingBearerTokenError(reason="missing_authorization")

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise MissingBearerTokenError(reason="malformed_authorization")

    return token.strip()


async def _parse_token_request(request: Request) -> OAuthTokenRequest:
    try:
        raw = await request.json()
    except ValueError:
        raise RequestValidationError("Invalid JSON body") from None

    try:
        return OAuthTokenRequest.model_validate(raw)
    except ValidationError:
        raise RequestValidationError("Missing required parameters") from None


async def _exchange_and_store(
    orchestrator: OAuthExchangeOrchestrator,
    credential_store: CredentialStore,
    exchange_request: OAuthExchangeRequest,
    organization_id: str,
) -> StoredCredential:
    result = await orchestrator.exchange(exchange_request)

    if not result.succeeded or result.credential is None:
        error = result.error
        platform = exchange_request.platform.value
        if error is None:
            raise InfrastructureError(platform=platform)
        if error.kind == ExchangeErrorKind.CONFIGURATION:
            raise InfrastructureError(
                "Integration not configured", reason=error.kind.value, platform=platform
            )
        if error.kind == ExchangeErrorKind.TRANSPORT:
            raise InfrastructureError(error.message, reason=error.kind.value, platform=platform)
        raise TokenExchangeError(
            error.message,
            reason=error.kind.value,
            platform=platform,
            upstream_status=error.status_code,
        )

    credential = result.credential.model_copy(update={"organization_id": organization_id})
    return await credential_store.upsert(organization_id, exchange_request.platform, credential)


async def handle_oauth_token_exchange(request: Request) -> OAuthTokenResponse:
    """Exchange an authorization code for tokens and store the credential.

    The platform, caller and organization are all checked before the code is
    sent upstream, since a code can only be exchanged once.
    """
    token_request = await _parse_token_request(request)

    platform: Platform | None = parse_platform(token_request.platform)
    if platform is None or get_adapter(platform) is None:
        raise UnknownPlatformError("Unsupported platform", platform=token_request.platform[:64])

    with LogContext(platform=platform.value):
        bearer_token = extract_bearer_token(request.headers.get("authorization"))

        resolver: OrganizationResolver = request.app.state.organization_resolver
        organization = await resolver.resolve_by_session(bearer_token)

        exchange_request = OAuthExchangeRequest(
            platform=platform,
            authorization_code=token_request.code,
            redirect_uri=build_redirect_uri(request.headers.get("origin")),
            state=token_request.state,
        )

        with LogContext(organization_id=organization.id):
            # Shielded: once the code is sent upstream it is spent, so a client
            # disconnect must not abandon the exchange or the write.
            stored = await asyncio.shield(
                _exchange_and_store(
                    request.app.state.oauth_orchestrator,
                    request.app.state.credential_store,
                    exchange_request,
                    organization.id,
                )
            )

            logger.info("OAuth connection completed", credential_id=stored.id)
            return OAuthTokenResponse(
                platform=platform,
                credential_id=stored.id,
                access_token=stored.access_token,
                token_type=stored.token_type,
                expires_in=stored.expires_in_seconds,
                scope=stored.scope,
                platform_metadata=stored.platform_metadata,
            )
