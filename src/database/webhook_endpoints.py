"""Repository for per-platform webhook endpoint registrations."""

from dataclasses import dataclass

import asyncpg

from src.clients.supabase import DATABASE_ERRORS
from src.gateway.errors import InfrastructureError
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class WebhookEndpoint:
    id: str
    organization_id: str
    platform: str
    secret: str
    is_active: bool = True

    def __repr__(self) -> str:
        return (
            f"WebhookEndpoint(id={self.id!r}, organization_id={self.organization_id!r}, "
            f"platform={self.platform!r}, is_active={self.is_active!r})"
        )


class WebhookEndpointsRepository:
    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    async def get_active_by_platform(self, platform: str) -> WebhookEndpoint | None:
        """Get the active endpoint (signing secret and owning organization) for a platform.

        Returns None unless exactly one endpoint is active: with several, neither
        the secret nor the owning organization can be chosen safely.
        """
        try:
            async with self.db_pool.acquire() as conn:
                rows = await conn.fetch(
                    """
                    SELECT id, organization_id, platform, secret, is_active
                    FROM webhook_endpoints
                    WHERE platform = $1 AND is_active = TRUE
                    LIMIT 2
                    """,
                    platform,
                )
        except DATABASE_ERRORS as e:
            logger.error(f"Webhook endpoint lookup failed for {platform}: {type(e).__name__}")
            raise InfrastructureError() from e

        if not rows:
            return None

        if len(rows) > 1:
            logger.error(
                f"Multiple active webhook endpoints for {platform}; refusing to pick one",
                platform=platform,
            )
            return None

        row = rows[0]

        return WebhookEndpoint(
            id=str(row["id"]),
            organization_id=str(row["organization_id"]),
            platform=row["platform"],
            secret=row["secret"] or "",
            is_active=row["is_active"],
        )
