"""Tests for the gateway app wiring: health check and error rendering."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from src.gateway.errors import (
    InfrastructureError,
    InvalidSignatureError,
    OrganizationMembershipError,
    RequestValidationError,
)
from src.gateway.main import create_app, lifespan


@pytest.fixture
def test_app():
    app = create_app()

    @app.post("/raise/{kind}")
    async def raise_error(kind: str):
        errors = {
            "validation": RequestValidationError("Missing required parameters", field="code"),
            "signature": InvalidSignatureError(signature_prefix="abcd1234"),
            "membership": OrganizationMembershipError("No organization found", user_id="u1"),
            "infrastructure": InfrastructureError(detail="db timeout"),
        }
        if kind in errors:
            raise errors[kind]
        raise RuntimeError("secret internals")

    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app, raise_server_exceptions=False)


def test_liveness(client):
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json()["status"] == "alive"


@pytest.mark.parametrize(
    "kind,status,message",
    [
        ("validation", 400, "Missing required parameters"),
        ("signature", 401, "Invalid signature"),
        ("membership", 400, "No organization found"),
        ("infrastructure", 500, "Internal server error"),
    ],
)
def test_gateway_errors_render_message_only(client, kind, status, message):
    response = client.post(f"/raise/{kind}")

    assert response.status_code == status
    assert response.json() == {"error": message}


def test_context_is_not_rendered(client):
    response = client.post("/raise/infrastructure")
    assert "db timeout" not in response.text


def test_unhandled_error_is_reported_and_hidden(client):
    with patch("src.gateway.main.newrelic.agent.notice_error") as mock_notice_error:
        response = client.post("/raise/boom")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "secret internals" not in response.text
    mock_notice_error.assert_called()


@pytest.mark.asyncio
async def test_startup_wires_state_and_logs_signature_schemes():
    app = create_app()
    db_pool = AsyncMock()

    with (
        patch("src.gateway.main.create_control_db_pool", AsyncMock(return_value=db_pool)),
        patch("src.gateway.main.SQSClient", MagicMock()),
        patch("src.gateway.main.get_shopify_webhook_secret", return_value="shop-secret"),
        patch("src.gateway.main.logger") as mock_logger,
    ):
        async with lifespan(app):
            assert app.state.db_pool is db_pool
            assert app.state.shopify_webhook_secret == "shop-secret"

    registered = [
        call.kwargs["source_types"]
        for call in mock_logger.info.call_args_list
        if call.args and call.args[0] == "Webhook signature schemes registered"
    ]
    assert registered == [["shopify", "klaviyo", "stripe"]]
    db_pool.close.assert_awaited_once()
