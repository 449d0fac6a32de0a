"""ORM model for trading strategies shared by accounts."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB

from cashflowops.models.base import Base


class StrategyRow(Base):
    """Persisted strategy. Listing shows is_active rows only, created_at descending."""

    __tablename__ = "strategies"

    id = Column(String(32), primary_key=True)
    name = Column(String(200), nullable=False)
    symbol = Column(String(32), nullable=False, index=True)
    timeframe = Column(String(16), nullable=False)
    script = Column(Text, nullable=False)
    # {"resistance", "support", "target", "stop"}
    levels = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_by = Column(
        String(32),
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
