from enum import Enum


class Platform(str, Enum):
    """Platforms the gateway completes OAuth connections for.

    Values are the identifiers clients send in the token exchange request and
    the keys credentials are stored under. Keep in sync with the dashboard's
    integration ids.
    """

    TIKTOK_ADS = "tiktok-ads"
    PINTEREST_BUSINESS = "pinterest-business"
    SLACK = "slack"
