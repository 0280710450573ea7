"""
TikTok Ads (TikTok for Business) OAuth adapter.

The Marketing API token endpoint takes a JSON body with the client secret in it
and wraps every response in a {code, message, request_id, data} envelope. A
rejected auth code still comes back as HTTP 200 with a non-zero `code`.
"""

from typing import Any

from platforms.base.oauth_adapter import (
    BaseOAuthAdapter,
    OutboundRequest,
    PlatformAdapterConfig,
)
from platforms.base.platform import Platform

TIKTOK_ADS_TOKEN_URL = "https://business-api.tiktok.com/open_api/v1.3/oauth2/access_token/"
TIKTOK_SUCCESS_CODE = 0


class TikTokAdsOAuthAdapter(BaseOAuthAdapter):
    platform = Platform.TIKTOK_ADS
    error_message_keys = ("message", "error")

    def build_exchange_request(
        self, code: str, redirect_uri: str, config: PlatformAdapterConfig
    ) -> OutboundRequest:
        return OutboundRequest(
            method="POST",
            url=config.token_endpoint,
            headers={"Content-Type": "application/json"},
            json={
                "client_id": config.client_id,
                "client_secret": config.client_secret.get_secret_value(),
                "auth_code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri,
            },
        )

    def is_success(self, status_code: int, body: dict[str, Any]) -> bool:
        if not super().is_success(status_code, body):
            return False
        # Older responses omit `code` on success
        return body.get("code", TIKTOK_SUCCESS_CODE) == TIKTOK_SUCCESS_CODE

    def token_fields(self, body: dict[str, Any]) -> dict[str, Any]:
        data = body.get("data")
        return data if isinstance(data, dict) else {}

    def extract_metadata(self, body: dict[str, Any]) -> dict[str, str]:
        metadata: dict[str, str] = {}
        data = self.token_fields(body)

        advertiser_ids = data.get("advertiser_ids")
        if isinstance(advertiser_ids, list) and advertiser_ids:
            metadata["advertiserIds"] = ",".join(str(a) for a in advertiser_ids)

        if request_id := body.get("request_id"):
            metadata["requestId"] = str(request_id)

        return metadata
