"""Credential store backed by the control database `integrations` table."""

import json
from datetime import datetime
from enum import Enum
from typing import Any

import asyncpg

from platforms.base import NormalizedCredential, Platform
from src.clients.supabase import DATABASE_ERRORS
from src.gateway.errors import InfrastructureError
from src.utils.logging import get_logger

logger = get_logger(__name__)

_CREDENTIAL_COLUMNS = """
    id, organization_id, platform, access_token, refresh_token, expires_in,
    token_type, scope, platform_metadata, status, created_at, updated_at
"""


class IntegrationStatus(str, Enum):
    ACTIVE = "active"
    DISCONNECTED = "disconnected"


class StoredCredential(NormalizedCredential):
    """A NormalizedCredential bound to its organization and persisted."""

    organization_id: str
    status: IntegrationStatus = IntegrationStatus.ACTIVE
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: asyncpg.Record | dict[str, Any]) -> "StoredCredential":
        metadata = row["platform_metadata"] or {}
        if isinstance(metadata, str):
            metadata = json.loads(metadata)

        return cls(
            id=str(row["id"]),
            organization_id=str(row["organization_id"]),
            platform=Platform(row["platform"]),
            access_token=row["access_token"],
            refresh_token=row["refresh_token"],
            expires_in_seconds=row["expires_in"],
            token_type=row["token_type"],
            scope=row["scope"],
            platform_metadata={k: str(v) for k, v in metadata.items()},
            status=IntegrationStatus(row["status"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class CredentialStore:
    """Upserts normalized credentials keyed by (organization_id, platform).

    A second connection for the same pair replaces every credential column;
    concurrent writes for the same pair are last-write-wins.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    async def upsert(
        self, organization_id: str, platform: Platform, credential: NormalizedCredential
    ) -> StoredCredential:
        try:
            async with self.db_pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO integrations (
                        id, organization_id, platform, access_token, refresh_token,
                        expires_in, token_type, scope, platform_metadata, status
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                    ON CONFLICT (organization_id, platform) DO UPDATE SET
                        access_token = EXCLUDED.access_token,
                        refresh_token = EXCLUDED.refresh_token,
                        expires_in = EXCLUDED.expires_in,
                        token_type = EXCLUDED.token_type,
                        scope = EXCLUDED.scope,
                        platform_metadata = EXCLUDED.platform_metadata,
                        status = EXCLUDED.status,
                        updated_at = NOW()
                    RETURNING {_CREDENTIAL_COLUMNS}
                    """,
                    credential.id,
                    organization_id,
                    platform.value,
                    credential.access_token,
                    credential.refresh_token,
                    credential.expires_in_seconds,
                    credential.token_type,
                    credential.scope,
                    json.dumps(credential.platform_metadata),
                    IntegrationStatus.ACTIVE.value,
                )
        except DATABASE_ERRORS as e:
            logger.error(
                f"Failed to store {platform.value} credential: {type(e).__name__}",
                organization_id=organization_id,
            )
            raise InfrastructureError() from e

        if row is None:
            raise InfrastructureError()

        stored = StoredCredential.from_row(row)
        logger.info(
            f"Stored {platform.value} credential",
            organization_id=organization_id,
            credential_id=stored.id,
        )
        return stored

    async def get(self, organization_id: str, platform: Platform) -> StoredCredential | None:
        try:
            async with self.db_pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    SELECT {_CREDENTIAL_COLUMNS}
                    FROM integrations
                    WHERE organization_id = $1 AND platform = $2
                    """,
                    organization_id,
                    platform.value,
                )
        except DATABASE_ERRORS as e:
            logger.error(f"Failed to load {platform.value} credential: {type(e).__name__}")
            raise InfrastructureError() from e

        return StoredCredential.from_row(row) if row else None
