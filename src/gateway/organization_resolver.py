"""Resolves the organization a webhook or OAuth connection belongs to."""

from typing import Protocol

from src.database.organizations import Organization, OrganizationsRepository
from src.gateway.errors import OrganizationMembershipError, OrganizationNotFoundError


class SessionResolver(Protocol):
    async def resolve_user_id(self, bearer_token: str) -> str:
        """Return the user id behind a bearer token, raising InvalidSessionError if none."""
        ...


class OrganizationResolver:
    """Maps a store domain or an authenticated session to an Organization.

    Resolution failure is terminal for the request: nothing is enqueued or
    stored without a resolved organization.
    """

    def __init__(self, organizations: OrganizationsRepository, session_resolver: SessionResolver):
        self.organizations = organizations
        self.session_resolver = session_resolver

    async def resolve_by_shop_domain(self, shop_domain: str) -> Organization:
        organization = await self.organizations.get_by_shop_domain(shop_domain.strip().lower())
        if organization is None:
            raise OrganizationNotFoundError(
                "Store not found", reason="unregistered_domain", shop_domain=shop_domain
            )
        return organization

    async def resolve_by_session(self, bearer_token: str) -> Organization:
        user_id = await self.session_resolver.resolve_user_id(bearer_token)

        organization = await self.organizations.get_by_user_id(user_id)
        if organization is None:
            # Authenticated user whose account was never attached to an organization
            raise OrganizationMembershipError(
                "No organization found", reason="missing_membership", user_id=user_id
            )

        return organization
