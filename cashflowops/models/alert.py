"""ORM model for trading alerts published by admins."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func

from cashflowops.models.base import Base


class AlertRow(Base):
    """Persisted alert. Listing order is created_at descending (newest first)."""

    __tablename__ = "alerts"

    id = Column(String(32), primary_key=True)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    category = Column(String(32), nullable=False, index=True)
    priority = Column(String(16), nullable=False, default="MEDIUM", index=True)
    symbol = Column(String(32), nullable=False, default="")
    bot_name = Column(String(100), nullable=False, default="")
    pnl = Column(String(32), nullable=True)
    # ACTIVE, CLOSED or ARCHIVED; ARCHIVED rows are left out of listings.
    status = Column(String(16), nullable=False, default="ACTIVE", index=True)
    author_id = Column(
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
