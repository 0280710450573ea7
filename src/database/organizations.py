"""Repository for organization lookups in the control database."""

from dataclasses import dataclass

import asyncpg

from src.clients.supabase import DATABASE_ERRORS
from src.gateway.errors import InfrastructureError
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Organization:
    """The tenant a webhook or credential belongs to."""

    id: str
    owner_user_id: str | None = None


class OrganizationsRepository:
    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    async def get_by_shop_domain(self, shop_domain: str) -> Organization | None:
        """Get the organization that registered a store domain."""
        row = await self._fetchrow(
            """
            SELECT id, user_id
            FROM stores
            WHERE shop_domain = $1
            """,
            shop_domain,
        )
        if not row:
            return None
        return Organization(
            id=str(row["id"]),
            owner_user_id=str(row["user_id"]) if row["user_id"] else None,
        )

    async def get_by_user_id(self, user_id: str) -> Organization | None:
        """Get the organization a user is a member of (earliest membership first)."""
        row = await self._fetchrow(
            """
            SELECT organization_id, user_id
            FROM organization_members
            WHERE user_id = $1
            ORDER BY created_at ASC
            LIMIT 1
            """,
            user_id,
        )
        if not row:
            return None
        return Organization(id=str(row["organization_id"]), owner_user_id=str(row["user_id"]))

    async def _fetchrow(self, query: str, *args) -> asyncpg.Record | None:
        try:
            async with self.db_pool.acquire() as conn:
                return await conn.fetchrow(query, *args)
        except DATABASE_ERRORS as e:
            logger.error(f"Organization lookup failed: {type(e).__name__}")
            raise InfrastructureError() from e
