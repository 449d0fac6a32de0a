"""Pydantic request/response schemas."""

from cashflowops.schemas.account import (
    Account,
    AccountEnvelope,
    AccountOut,
    ActiveAccountItem,
    AvatarResponse,
    ProfileUpdateRequest,
    PublicProfile,
    PublicProfileEnvelope,
    Role,
    Tier,
)
from cashflowops.schemas.alert import (
    Alert,
    AlertCategory,
    AlertCreateRequest,
    AlertEnvelope,
    AlertOut,
    AlertPriority,
    AlertStatus,
    AlertUpdateRequest,
    TierShapedList,
)
from cashflowops.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from cashflowops.schemas.billing import CheckoutRequest, CheckoutResponse, WebhookResponse
from cashflowops.schemas.health import HealthResponse
from cashflowops.schemas.strategy import (
    Strategy,
    StrategyCreateRequest,
    StrategyEnvelope,
    StrategyLevels,
    StrategyList,
    StrategyOut,
)

__all__ = [
    "Account",
    "AccountEnvelope",
    "AccountOut",
    "ActiveAccountItem",
    "AvatarResponse",
    "Alert",
    "AlertCategory",
    "AlertCreateRequest",
    "AlertEnvelope",
    "AlertOut",
    "AlertPriority",
    "AlertStatus",
    "AlertUpdateRequest",
    "CheckoutRequest",
    "CheckoutResponse",
    "HealthResponse",
    "LoginRequest",
    "ProfileUpdateRequest",
    "PublicProfile",
    "PublicProfileEnvelope",
    "RegisterRequest",
    "Role",
    "Strategy",
    "StrategyCreateRequest",
    "StrategyEnvelope",
    "StrategyLevels",
    "StrategyList",
    "StrategyOut",
    "Tier",
    "TierShapedList",
    "TokenResponse",
    "WebhookResponse",
]
