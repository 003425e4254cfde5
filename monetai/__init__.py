"""Monetai SDK core: event queueing, initialization lifecycle and discount state."""

__version__ = "1.0.0"

from core.domain import (
    ABTestGroup,
    Campaign,
    Discount,
    InitializeResult,
    Prediction,
    PredictionOutcome,
    QueuedEvent,
)

from .config import SDKConfig, load_config
from .discount import DiscountCoordinator
from .errors import (
    ApiError,
    BillingError,
    InvalidSDKKey,
    InvalidUserId,
    MonetaiError,
    NetworkError,
    NotInitialized,
)
from .event_queue import EventQueue
from .facade import LogEventOptions, MonetaiSDK, PlatformOptions
from .paywall import (
    BannerParams,
    Feature,
    PaywallConfig,
    PaywallParams,
    PaywallStyle,
    banner_url,
    is_promotion_expired,
    paywall_url,
)
from .remote_client import RemoteClient
from .session_state import SessionPhase, SessionState

__all__ = [
    "__version__",
    "MonetaiSDK",
    "PlatformOptions",
    "LogEventOptions",
    "SDKConfig",
    "load_config",
    "RemoteClient",
    "SessionState",
    "SessionPhase",
    "EventQueue",
    "DiscountCoordinator",
    "ABTestGroup",
    "Campaign",
    "Discount",
    "InitializeResult",
    "Prediction",
    "PredictionOutcome",
    "QueuedEvent",
    "MonetaiError",
    "InvalidSDKKey",
    "InvalidUserId",
    "NotInitialized",
    "ApiError",
    "NetworkError",
    "BillingError",
    "PaywallConfig",
    "PaywallParams",
    "PaywallStyle",
    "BannerParams",
    "Feature",
    "paywall_url",
    "banner_url",
    "is_promotion_expired",
]
