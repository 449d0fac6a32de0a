"""Shared trading strategies: any signed-in account may publish one; everyone sees the active ones."""

import logging
import uuid
from datetime import UTC, datetime

from cashflowops.schemas.account import Account
from cashflowops.schemas.strategy import Strategy, StrategyCreateRequest
from cashflowops.stores.base import StrategyStore

logger = logging.getLogger(__name__)


def create_strategy(store: StrategyStore, author: Account, data: StrategyCreateRequest) -> Strategy:
    strategy = Strategy(
        id=uuid.uuid4().hex,
        name=data.name,
        symbol=data.symbol,
        timeframe=data.timeframe,
        script=data.script,
        levels=data.levels,
        created_by=author.id,
        created_at=datetime.now(UTC),
    )
    strategy = store.insert(strategy)
    logger.info("Strategy created id=%s symbol=%s by=%s", strategy.id, strategy.symbol, author.id)
    return strategy


def list_strategies(store: StrategyStore, max_items: int) -> list[Strategy]:
    """Active strategies, newest first, capped at max_items."""
    return store.list_active(limit=max_items)
