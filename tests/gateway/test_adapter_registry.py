"""Tests for the platform OAuth adapter registry."""

import os
from unittest.mock import patch

import pytest

from platforms.base import Platform
from platforms.pinterest_business import PinterestBusinessOAuthAdapter
from platforms.slack import SLACK_TOKEN_URL, SlackOAuthAdapter
from platforms.tiktok_ads import TikTokAdsOAuthAdapter
from src.gateway.adapter_registry import get_adapter, load_platform_configs, parse_platform


class TestAdapterRegistry:
    @pytest.mark.parametrize(
        "platform,adapter_class",
        [
            (Platform.TIKTOK_ADS, TikTokAdsOAuthAdapter),
            (Platform.PINTEREST_BUSINESS, PinterestBusinessOAuthAdapter),
            (Platform.SLACK, SlackOAuthAdapter),
        ],
    )
    def test_every_platform_has_an_adapter(self, platform, adapter_class):
        assert isinstance(get_adapter(platform), adapter_class)
        assert isinstance(get_adapter(platform.value), adapter_class)

    def test_unknown_platform(self):
        assert get_adapter("myspace") is None
        assert parse_platform("myspace") is None

    def test_parse_platform(self):
        assert parse_platform("tiktok-ads") == Platform.TIKTOK_ADS


class TestLoadPlatformConfigs:
    def test_loads_only_fully_configured_platforms(self):
        env = {
            "SLACK_CLIENT_ID": "123.456",
            "SLACK_CLIENT_SECRET": "slack-secret",
            "TIKTOK_CLIENT_ID": "7012345678901234567",
        }
        with patch.dict(os.environ, env, clear=True):
            configs = load_platform_configs()

        assert set(configs) == {Platform.SLACK}
        slack = configs[Platform.SLACK]
        assert slack.client_id == "123.456"
        assert slack.client_secret.get_secret_value() == "slack-secret"
        assert slack.token_endpoint == SLACK_TOKEN_URL

    def test_numeric_client_id_is_kept_as_string(self):
        env = {"TIKTOK_CLIENT_ID": "7012345678901234567", "TIKTOK_CLIENT_SECRET": "s"}
        with patch.dict(os.environ, env, clear=True):
            configs = load_platform_configs()

        assert configs[Platform.TIKTOK_ADS].client_id == "7012345678901234567"

    def test_no_credentials(self):
        with patch.dict(os.environ, {}, clear=True):
            assert load_platform_configs() == {}
