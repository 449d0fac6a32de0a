"""Pydantic schemas for shared trading strategies (chart script plus price levels)."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cashflowops.schemas.account import CamelModel, _as_utc

NAME_MAX_LENGTH = 200
TIMEFRAME_MAX_LENGTH = 16
SCRIPT_MAX_LENGTH = 50_000
LEVEL_MAX_LENGTH = 32


class StrategyLevels(CamelModel):
    """Price levels as entered by the author; free-form strings such as "4,512.25"."""

    resistance: str = Field(default="", max_length=LEVEL_MAX_LENGTH)
    support: str = Field(default="", max_length=LEVEL_MAX_LENGTH)
    target: str = Field(default="", max_length=LEVEL_MAX_LENGTH)
    stop: str = Field(default="", max_length=LEVEL_MAX_LENGTH)

    @field_validator("resistance", "support", "target", "stop")
    @classmethod
    def strip(cls, v: str) -> str:
        return v.strip()


class Strategy(BaseModel):
    """Stored strategy record, independent of the backing store."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    symbol: str
    timeframe: str
    script: str
    levels: StrategyLevels = Field(default_factory=StrategyLevels)
    is_active: bool = True
    created_by: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class StrategyCreateRequest(CamelModel):
    """Body for POST /strategies."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    symbol: str = Field(..., min_length=1, max_length=32, description="Ticker symbol, upper-cased")
    timeframe: str = Field(..., min_length=1, max_length=TIMEFRAME_MAX_LENGTH, description='Chart timeframe, e.g. "5m"')
    script: str = Field(..., min_length=1, max_length=SCRIPT_MAX_LENGTH, description="Indicator or strategy source")
    levels: StrategyLevels = Field(default_factory=StrategyLevels)

    @field_validator("name", "timeframe", "script")
    @classmethod
    def strip_required(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("must be non-empty")
        return stripped

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        stripped = v.strip().upper()
        if not stripped:
            raise ValueError("must be non-empty")
        return stripped


class StrategyOut(CamelModel):
    id: str
    name: str
    symbol: str
    timeframe: str
    script: str
    levels: StrategyLevels
    is_active: bool
    created_by: str | None = None
    created_at: datetime


class StrategyEnvelope(CamelModel):
    strategy: StrategyOut


class StrategyList(CamelModel):
    items: list[StrategyOut]
    total: int = Field(..., ge=0)
