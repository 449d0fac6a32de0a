"""Trading strategy endpoints: list active strategies and publish new ones."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from cashflowops.api.deps import get_strategy_store
from cashflowops.api.v1.auth import get_current_account
from cashflowops.core.config import get_settings
from cashflowops.schemas.account import Account
from cashflowops.schemas.strategy import StrategyCreateRequest, StrategyEnvelope, StrategyList, StrategyOut
from cashflowops.services.strategies import create_strategy, list_strategies
from cashflowops.stores.base import StrategyStore

router = APIRouter()


@router.get("", response_model=StrategyList)
def get_strategies(
    current: Annotated[Account, Depends(get_current_account)],
    store: Annotated[StrategyStore, Depends(get_strategy_store)],
) -> StrategyList:
    """Active strategies, newest first."""
    items = list_strategies(store, get_settings().STRATEGIES_LIST_LIMIT)
    return StrategyList(items=[StrategyOut.model_validate(s) for s in items], total=len(items))


@router.post("", response_model=StrategyEnvelope, status_code=status.HTTP_201_CREATED)
def post_strategy(
    body: StrategyCreateRequest,
    current: Annotated[Account, Depends(get_current_account)],
    store: Annotated[StrategyStore, Depends(get_strategy_store)],
) -> StrategyEnvelope:
    """Publish a strategy (chart script plus resistance, support, target and stop levels)."""
    strategy = create_strategy(store, current, body)
    return StrategyEnvelope(strategy=StrategyOut.model_validate(strategy))
