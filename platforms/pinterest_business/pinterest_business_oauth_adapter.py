"""
Pinterest (v5 API) OAuth adapter.

Pinterest authenticates the client with an HTTP Basic header; the form body
carries only the grant. Errors are plain OAuth2 JSON with `error` set.
"""

from typing import Any

from platforms.base.oauth_adapter import (
    BaseOAuthAdapter,
    OutboundRequest,
    PlatformAdapterConfig,
    coerce_optional_str,
)
from platforms.base.platform import Platform

PINTEREST_TOKEN_URL = "https://api.pinterest.com/v5/oauth/token"


class PinterestBusinessOAuthAdapter(BaseOAuthAdapter):
    platform = Platform.PINTEREST_BUSINESS

    def build_exchange_request(
        self, code: str, redirect_uri: str, config: PlatformAdapterConfig
    ) -> OutboundRequest:
        return OutboundRequest(
            method="POST",
            url=config.token_endpoint,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            },
            auth=(config.client_id, config.client_secret.get_secret_value()),
        )

    def extract_metadata(self, body: dict[str, Any]) -> dict[str, str]:
        metadata: dict[str, str] = {}
        if refresh_expires_in := coerce_optional_str(body.get("refresh_token_expires_in")):
            metadata["refreshTokenExpiresIn"] = refresh_expires_in
        if response_type := coerce_optional_str(body.get("response_type")):
            metadata["responseType"] = response_type
        return metadata
