from platforms.tiktok_ads.tiktok_ads_oauth_adapter import (
    TIKTOK_ADS_TOKEN_URL,
    TikTokAdsOAuthAdapter,
)

__all__ = ["TIKTOK_ADS_TOKEN_URL", "TikTokAdsOAuthAdapter"]
