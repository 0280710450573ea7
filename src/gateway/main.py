"""Integration gateway FastAPI service: webhook ingestion and OAuth token exchange."""

import datetime
from contextlib import asynccontextmanager
from pathlib import Path

import newrelic.agent

from src.utils.config import get_config_value_str, get_gateway_environment

# New Relic is optional locally; initialize only when a license key is present
if get_config_value_str("NEW_RELIC_LICENSE_KEY"):
    config_path = Path(__file__).parent / "newrelic.toml"
    newrelic.agent.initialize(str(config_path), environment=get_gateway_environment())

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.clients.sqs import SQSClient
from src.clients.supabase import SupabaseSessionResolver, create_control_db_pool
from src.database.integrations import CredentialStore
from src.database.organizations import OrganizationsRepository
from src.database.webhook_endpoints import WebhookEndpointsRepository
from src.gateway.adapter_registry import load_platform_configs
from src.gateway.dispatcher import WebhookDispatcher
from src.gateway.errors import ErrorCategory, GatewayError
from src.gateway.oauth_orchestrator import OAuthExchangeOrchestrator
from src.gateway.organization_resolver import OrganizationResolver
from src.gateway.routes import router as gateway_router
from src.gateway.verifier_registry import get_all_source_types
from src.utils.config import (
    get_config_value,
    get_dangerously_disable_webhook_validation,
    get_oauth_http_timeout_seconds,
    get_shopify_webhook_secret,
)
from src.utils.logging import get_logger, get_uvicorn_log_config

logger = get_logger(__name__)

# Allow disabling webhook validation for development/testing
DANGEROUSLY_DISABLE_WEBHOOK_VALIDATION = get_dangerously_disable_webhook_validation()

if DANGEROUSLY_DISABLE_WEBHOOK_VALIDATION:
    logger.warning(
        "⚠️ DANGEROUSLY_DISABLE_WEBHOOK_VALIDATION is enabled. "
        "Webhook signatures will NOT be verified!"
    )

_LOG_LEVEL_BY_CATEGORY = {
    ErrorCategory.VALIDATION: "info",
    ErrorCategory.AUTHENTICATION: "warning",
    ErrorCategory.NOT_FOUND: "warning",
    ErrorCategory.MISCONFIGURED: "error",
    ErrorCategory.UPSTREAM: "warning",
    ErrorCategory.INFRASTRUCTURE: "error",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup and handle graceful shutdown."""
    logger.info("🚀 Starting integration gateway...")

    db_pool = await create_control_db_pool()
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(get_oauth_http_timeout_seconds()))
    sqs_client = SQSClient()

    session_resolver = SupabaseSessionResolver(http_client)
    organization_resolver = OrganizationResolver(OrganizationsRepository(db_pool), session_resolver)

    app.state.db_pool = db_pool
    app.state.http_client = http_client
    app.state.sqs_client = sqs_client
    app.state.organization_resolver = organization_resolver
    app.state.webhook_endpoints = WebhookEndpointsRepository(db_pool)
    app.state.credential_store = CredentialStore(db_pool)
    app.state.webhook_dispatcher = WebhookDispatcher(sqs_client)
    app.state.oauth_orchestrator = OAuthExchangeOrchestrator(http_client, load_platform_configs())
    app.state.shopify_webhook_secret = get_shopify_webhook_secret()
    app.state.dangerously_disable_webhook_validation = DANGEROUSLY_DISABLE_WEBHOOK_VALIDATION

    if not app.state.shopify_webhook_secret:
        logger.warning("SHOPIFY_WEBHOOK_SECRET is not set; Shopify webhooks will be rejected")

    logger.info(
        "Webhook signature schemes registered",
        source_types=[source_type.value for source_type in get_all_source_types()],
    )
    logger.info("✅ Integration gateway startup complete")

    yield

    logger.info("🛑 Shutting down integration gateway...")

    await http_client.aclose()
    await db_pool.close()

    logger.info("✅ Integration gateway shutdown complete")


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Render a GatewayError as {"error": message} and log it at its category's level."""
    log = getattr(logger, _LOG_LEVEL_BY_CATEGORY.get(exc.category, "error"))
    log(
        f"Request failed: {exc.message}",
        status=exc.status_code,
        category=exc.category.value,
        path=request.url.path,
        **exc.context,
    )
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    newrelic.agent.notice_error(error=(type(exc), exc, exc.__traceback__))
    logger.error(
        f"Unhandled error on {request.url.path}: {type(exc).__name__}",
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Integration Gateway",
        description="Verifies platform webhooks, enqueues jobs, and completes OAuth connections",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/health/live")
    async def liveness_check():
        """Liveness probe endpoint - checks if the application is alive."""
        return {"status": "alive", "timestamp": datetime.datetime.now().isoformat()}

    app.include_router(gateway_router)
    return app


app = create_app()


def main():
    """Run the integration gateway."""
    import uvicorn

    port = get_config_value("GATEWAY_PORT", 8001)

    uvicorn.run(
        "src.gateway.main:app",
        host="0.0.0.0",
        port=port,
        log_config=get_uvicorn_log_config(),
    )


if __name__ == "__main__":
    main()
