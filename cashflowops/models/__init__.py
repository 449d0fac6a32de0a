"""SQLAlchemy ORM models."""

from cashflowops.models.account import AccountRow
from cashflowops.models.alert import AlertRow
from cashflowops.models.base import Base
from cashflowops.models.strategy import StrategyRow

__all__ = ["AccountRow", "AlertRow", "Base", "StrategyRow"]
