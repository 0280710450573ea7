"""Platform OAuth adapter registry.

Maps platform identifiers to their adapter and loads each platform's client
registration from the environment once at startup.
"""

from platforms.base import Platform, PlatformAdapter, PlatformAdapterConfig
from src.utils.config import get_config_value_str
from src.utils.logging import get_logger

logger = get_logger(__name__)

# (client id env var, client secret env var)
PLATFORM_CREDENTIAL_ENV: dict[Platform, tuple[str, str]] = {
    Platform.TIKTOK_ADS: ("TIKTOK_CLIENT_ID", "TIKTOK_CLIENT_SECRET"),
    Platform.PINTEREST_BUSINESS: ("PINTEREST_CLIENT_ID", "PINTEREST_CLIENT_SECRET"),
    Platform.SLACK: ("SLACK_CLIENT_ID", "SLACK_CLIENT_SECRET"),
}


def _build_adapter_registry() -> dict[Platform, PlatformAdapter]:
    from platforms.pinterest_business import PinterestBusinessOAuthAdapter
    from platforms.slack import SlackOAuthAdapter
    from platforms.tiktok_ads import TikTokAdsOAuthAdapter

    return {
        Platform.TIKTOK_ADS: TikTokAdsOAuthAdapter(),
        Platform.PINTEREST_BUSINESS: PinterestBusinessOAuthAdapter(),
        Platform.SLACK: SlackOAuthAdapter(),
    }


# Lazily initialized registry
_adapter_registry: dict[Platform, PlatformAdapter] | None = None


def parse_platform(value: str) -> Platform | None:
    """Return the Platform for an identifier, or None if it is not supported."""
    try:
        return Platform(value)
    except ValueError:
        return None


def get_adapter(platform: Platform | str) -> PlatformAdapter | None:
    """Get the adapter for a platform.

    Args:
        platform: Platform enum or its string identifier (e.g. "tiktok-ads")

    Returns:
        The adapter instance, or None if the platform is not supported
    """
    global _adapter_registry
    if _adapter_registry is None:
        _adapter_registry = _build_adapter_registry()

    if isinstance(platform, str) and not isinstance(platform, Platform):
        resolved = parse_platform(platform)
        if resolved is None:
            return None
        platform = resolved

    return _adapter_registry.get(platform)


def get_token_endpoint(platform: Platform) -> str:
    from platforms.pinterest_business import PINTEREST_TOKEN_URL
    from platforms.slack import SLACK_TOKEN_URL
    from platforms.tiktok_ads import TIKTOK_ADS_TOKEN_URL

    return {
        Platform.TIKTOK_ADS: TIKTOK_ADS_TOKEN_URL,
        Platform.PINTEREST_BUSINESS: PINTEREST_TOKEN_URL,
        Platform.SLACK: SLACK_TOKEN_URL,
    }[platform]


def load_platform_configs() -> dict[Platform, PlatformAdapterConfig]:
    """Load client registrations for every platform that has both id and secret set.

    Platforms with missing credentials are left out; exchanges for them fail
    with a configuration error instead of reaching the platform.
    """
    configs: dict[Platform, PlatformAdapterConfig] = {}

    for platform, (id_env, secret_env) in PLATFORM_CREDENTIAL_ENV.items():
        client_id = get_config_value_str(id_env)
        client_secret = get_config_value_str(secret_env)
        if not client_id or not client_secret:
            logger.warning(
                f"OAuth client credentials for {platform.value} not configured "
                f"({id_env}/{secret_env}); exchanges for this platform will fail"
            )
            continue

        configs[platform] = PlatformAdapterConfig(
            platform=platform,
            token_endpoint=get_token_endpoint(platform),
            client_id=client_id,
            client_secret=client_secret,
        )

    logger.info(
        "Loaded OAuth platform configs",
        platforms=sorted(p.value for p in configs),
    )
    return configs
