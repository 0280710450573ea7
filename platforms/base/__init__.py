from platforms.base.oauth_adapter import (
    DEFAULT_TOKEN_TYPE,
    BaseOAuthAdapter,
    ExchangeError,
    ExchangeErrorKind,
    NormalizedCredential,
    OutboundRequest,
    PlatformAdapter,
    PlatformAdapterConfig,
)
from platforms.base.platform import Platform

__all__ = [
    "DEFAULT_TOKEN_TYPE",
    "BaseOAuthAdapter",
    "ExchangeError",
    "ExchangeErrorKind",
    "NormalizedCredential",
    "OutboundRequest",
    "Platform",
    "PlatformAdapter",
    "PlatformAdapterConfig",
]
