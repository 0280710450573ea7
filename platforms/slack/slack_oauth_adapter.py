"""
Slack (oauth.v2.access) OAuth adapter.

Slack returns HTTP 200 for failed exchanges too; the `ok` flag is the real
outcome and `error` carries a machine-readable reason such as "invalid_code".
"""

from typing import Any

from platforms.base.oauth_adapter import (
    BaseOAuthAdapter,
    OutboundRequest,
    PlatformAdapterConfig,
    coerce_optional_str,
)
from platforms.base.platform import Platform

SLACK_TOKEN_URL = "https://slack.com/api/oauth.v2.access"


class SlackOAuthAdapter(BaseOAuthAdapter):
    platform = Platform.SLACK
    error_message_keys = ("error",)

    def build_exchange_request(
        self, code: str, redirect_uri: str, config: PlatformAdapterConfig
    ) -> OutboundRequest:
        return OutboundRequest(
            method="POST",
            url=config.token_endpoint,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data={
                "client_id": config.client_id,
                "client_secret": config.client_secret.get_secret_value(),
                "code": code,
                "redirect_uri": redirect_uri,
            },
        )

    def is_success(self, status_code: int, body: dict[str, Any]) -> bool:
        return super().is_success(status_code, body) and body.get("ok") is not False

    def extract_metadata(self, body: dict[str, Any]) -> dict[str, str]:
        metadata: dict[str, str] = {}

        team = body.get("team")
        if isinstance(team, dict):
            if team_id := coerce_optional_str(team.get("id")):
                metadata["teamId"] = team_id
            if team_name := coerce_optional_str(team.get("name")):
                metadata["teamName"] = team_name

        enterprise = body.get("enterprise")
        if isinstance(enterprise, dict):
            if enterprise_id := coerce_optional_str(enterprise.get("id")):
                metadata["enterpriseId"] = enterprise_id

        authed_user = body.get("authed_user")
        if isinstance(authed_user, dict):
            if authed_user_id := coerce_optional_str(authed_user.get("id")):
                metadata["authedUserId"] = authed_user_id

        if bot_user_id := coerce_optional_str(body.get("bot_user_id")):
            metadata["botUserId"] = bot_user_id
        if app_id := coerce_optional_str(body.get("app_id")):
            metadata["appId"] = app_id

        return metadata
