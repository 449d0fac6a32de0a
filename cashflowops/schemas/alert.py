"""Pydantic schemas for trading alerts and tier-shaped listings."""

from datetime import UTC, datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cashflowops.schemas.account import CamelModel, Tier, _as_utc

AlertCategory = Literal["BOT_SIGNAL", "NEWS", "MARKET_UPDATE"]
AlertPriority = Literal["LOW", "MEDIUM", "HIGH"]
AlertStatus = Literal["ACTIVE", "CLOSED", "ARCHIVED"]

TITLE_MAX_LENGTH = 200
BODY_MAX_LENGTH = 5_000
SYMBOL_MAX_LENGTH = 32
BOT_NAME_MAX_LENGTH = 100
PNL_MAX_LENGTH = 32

T = TypeVar("T")


class Alert(BaseModel):
    """Stored alert record, independent of the backing store."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    body: str
    category: AlertCategory
    priority: AlertPriority = "MEDIUM"
    symbol: str = ""
    bot_name: str = ""
    pnl: str | None = None
    status: AlertStatus = "ACTIVE"
    author_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class AlertCreateRequest(CamelModel):
    """Body for POST /alerts (admin only)."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    body: str = Field(..., min_length=1, max_length=BODY_MAX_LENGTH)
    category: AlertCategory = Field(..., description="BOT_SIGNAL, NEWS or MARKET_UPDATE")
    priority: AlertPriority = Field(default="MEDIUM", description="LOW, MEDIUM or HIGH")
    symbol: str = Field(default="", max_length=SYMBOL_MAX_LENGTH, description="Ticker symbol, upper-cased")
    bot_name: str = Field(default="", max_length=BOT_NAME_MAX_LENGTH, description="Bot that produced a BOT_SIGNAL")

    @field_validator("title", "body")
    @classmethod
    def strip_required(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("must be non-empty")
        return stripped

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("bot_name")
    @classmethod
    def strip_bot_name(cls, v: str) -> str:
        return v.strip()


class AlertUpdateRequest(CamelModel):
    """Body for PATCH /alerts/{id} (admin only). Omitted fields are unchanged."""

    status: AlertStatus | None = Field(
        default=None, description="ACTIVE, CLOSED or ARCHIVED; ARCHIVED hides the alert from listings"
    )
    pnl: str | None = Field(default=None, max_length=PNL_MAX_LENGTH, description="Signal result, e.g. +4.2%")


class AlertOut(CamelModel):
    id: str
    title: str
    body: str
    category: AlertCategory
    priority: AlertPriority
    symbol: str
    bot_name: str
    pnl: str | None = None
    status: AlertStatus
    author_id: str | None = None
    created_at: datetime


class AlertEnvelope(CamelModel):
    alert: AlertOut


class TierShapedList(CamelModel, Generic[T]):
    """
    Listing after tier-based truncation.

    total is the size of the full result; truncated is True when the caller received only a prefix.
    """

    items: list[T]
    total: int = Field(..., ge=0)
    truncated: bool
    tier: Tier = Field(..., description="Tier the result was shaped for")
