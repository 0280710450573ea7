"""Tests for organization and webhook endpoint lookups."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.database.organizations import Organization, OrganizationsRepository
from src.database.webhook_endpoints import WebhookEndpointsRepository
from src.gateway.errors import InfrastructureError


def make_pool(conn) -> MagicMock:
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    pool.acquire.return_value.__aexit__.return_value = False
    return pool


@pytest.mark.asyncio
async def test_get_by_shop_domain():
    conn = AsyncMock()
    conn.fetchrow.return_value = {"id": "store-1", "user_id": "user-1"}
    repo = OrganizationsRepository(make_pool(conn))

    organization = await repo.get_by_shop_domain("shop1.example")

    assert organization == Organization(id="store-1", owner_user_id="user-1")
    assert conn.fetchrow.call_args.args[1] == "shop1.example"
    assert "FROM stores" in conn.fetchrow.call_args.args[0]


@pytest.mark.asyncio
async def test_get_by_shop_domain_not_found():
    conn = AsyncMock()
    conn.fetchrow.return_value = None
    repo = OrganizationsRepository(make_pool(conn))

    assert await repo.get_by_shop_domain("unknown.example") is None


@pytest.mark.asyncio
async def test_get_by_user_id():
    conn = AsyncMock()
    conn.fetchrow.return_value = {"organization_id": "org_1", "user_id": "user-1"}
    repo = OrganizationsRepository(make_pool(conn))

    organization = await repo.get_by_user_id("user-1")

    assert organization == Organization(id="org_1", owner_user_id="user-1")
    assert "FROM organization_members" in conn.fetchrow.call_args.args[0]


@pytest.mark.asyncio
async def test_lookup_failure_raises_infrastructure_error():
    conn = AsyncMock()
    conn.fetchrow.side_effect = OSError("connection refused")
    repo = OrganizationsRepository(make_pool(conn))

    with pytest.raises(InfrastructureError):
        await repo.get_by_user_id("user-1")


def _endpoint_row(**overrides) -> dict:
    row = {
        "id": "ep-1",
        "organization_id": "org_1",
        "platform": "klaviyo",
        "secret": "endpoint-secret",
        "is_active": True,
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_get_active_webhook_endpoint():
    conn = AsyncMock()
    conn.fetch.return_value = [_endpoint_row()]
    repo = WebhookEndpointsRepository(make_pool(conn))

    endpoint = await repo.get_active_by_platform("klaviyo")

    assert endpoint.organization_id == "org_1"
    assert endpoint.secret == "endpoint-secret"
    assert "endpoint-secret" not in repr(endpoint)


@pytest.mark.asyncio
async def test_missing_webhook_endpoint():
    conn = AsyncMock()
    conn.fetch.return_value = []
    repo = WebhookEndpointsRepository(make_pool(conn))

    assert await repo.get_active_by_platform("klaviyo") is None


@pytest.mark.asyncio
async def test_several_active_webhook_endpoints_resolve_to_none():
    conn = AsyncMock()
    conn.fetch.return_value = [
        _endpoint_row(),
        _endpoint_row(id="ep-2", organization_id="org_2", secret="other-secret"),
    ]
    repo = WebhookEndpointsRepository(make_pool(conn))

    assert await repo.get_active_by_platform("klaviyo") is None
    assert "LIMIT 2" in conn.fetch.call_args.args[0]


@pytest.mark.asyncio
async def test_webhook_endpoint_lookup_failure_raises_infrastructure_error():
    conn = AsyncMock()
    conn.fetch.side_effect = OSError("connection refused")
    repo = WebhookEndpointsRepository(make_pool(conn))

    with pytest.raises(InfrastructureError):
        await repo.get_active_by_platform("klaviyo")
