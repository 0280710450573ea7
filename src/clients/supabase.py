"""Supabase access: control database pool and Auth session resolution."""

import asyncpg
import httpx

from src.gateway.errors import InfrastructureError, InvalidSessionError
from src.utils.config import (
    get_database_command_timeout_seconds,
    get_database_url,
    get_supabase_service_role_key,
    get_supabase_url,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)

SUPABASE_AUTH_TIMEOUT_SECONDS = 10.0

# Failures that mean the control database is unavailable, not that a row is missing
DATABASE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, TimeoutError)


async def create_control_db_pool(min_size: int = 2, max_size: int = 10) -> asyncpg.Pool:
    """Create the asyncpg pool for the control database (stores, members, integrations)."""
    return await asyncpg.create_pool(
        get_database_url(),
        min_size=min_size,
        max_size=max_size,
        timeout=30,
        command_timeout=get_database_command_timeout_seconds(),
    )


class SupabaseSessionResolver:
    """Resolves a Supabase access token (the caller's bearer token) to a user id.

    Calls GET {SUPABASE_URL}/auth/v1/user, the same check supabase-js performs
    in auth.getUser(token).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        supabase_url: str | None = None,
        service_role_key: str | None = None,
    ):
        self.http_client = http_client
        self.supabase_url = supabase_url or get_supabase_url()
        self.service_role_key = service_role_key or get_supabase_service_role_key()

    async def resolve_user_id(self, bearer_token: str) -> str:
        """Return the user id for a session token.

        Raises:
            InvalidSessionError: The token is invalid or expired
            InfrastructureError: Supabase is unreachable or not configured
        """
        if not self.supabase_url or not self.service_role_key:
            logger.error(
                "Supabase session resolution is not configured "
                "(SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY)"
            )
            raise InfrastructureError()

        try:
            response = await self.http_client.get(
                f"{self.supabase_url}/auth/v1/user",
                headers={
                    "apikey": self.service_role_key,
                    "Authorization": f"Bearer {bearer_token}",
                },
                timeout=SUPABASE_AUTH_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as e:
            logger.error(f"Supabase auth request failed: {type(e).__name__}")
            raise InfrastructureError() from e

        if response.status_code in (401, 403):
            raise InvalidSessionError(reason="session_rejected")

        if response.status_code != 200:
            logger.error(f"Supabase auth returned unexpected status {response.status_code}")
            raise InfrastructureError()

        try:
            user_id = response.json().get("id")
        except (ValueError, AttributeError):
            user_id = None

        if not user_id:
            raise InvalidSessionError(reason="session_without_user")

        return str(user_id)
