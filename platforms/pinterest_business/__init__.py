from platforms.pinterest_business.pinterest_business_oauth_adapter import (
    PINTEREST_TOKEN_URL,
    PinterestBusinessOAuthAdapter,
)

__all__ = ["PINTEREST_TOKEN_URL", "PinterestBusinessOAuthAdapter"]
