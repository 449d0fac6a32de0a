"""Account directory endpoints: recently active users (tier-gated) and public profiles."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from cashflowops.api.deps import get_account_store
from cashflowops.api.v1.auth import get_current_account
from cashflowops.core.config import get_settings
from cashflowops.schemas.account import (
    Account,
    ActiveAccountItem,
    PublicProfile,
    PublicProfileEnvelope,
    Tier,
)
from cashflowops.schemas.alert import TierShapedList
from cashflowops.services.entitlement import higher_tier
from cashflowops.services.users import list_active_accounts, public_profile
from cashflowops.stores.base import AccountStore

router = APIRouter()

# Lowest tier that may call the listing at all; FREE callers get a truncated prefix.
ACTIVE_USERS_FLOOR_TIER: Tier = "FREE"


@router.get("/active", response_model=TierShapedList[ActiveAccountItem])
def get_active_users(
    current: Annotated[Account, Depends(get_current_account)],
    store: Annotated[AccountStore, Depends(get_account_store)],
    required_tier: Annotated[Tier | None, Query(alias="requiredTier")] = None,
) -> TierShapedList[ActiveAccountItem]:
    """
    Accounts active in the configured window, most recently active first.

    FREE accounts receive only the first FREE_TIER_RESULT_LIMIT entries. requiredTier can
    raise the gate above the route's floor; 402 when the caller's tier does not satisfy it.
    """
    settings = get_settings()
    items, total, shaped_for = list_active_accounts(
        store,
        current,
        required_tier=higher_tier(ACTIVE_USERS_FLOOR_TIER, required_tier or ACTIVE_USERS_FLOOR_TIER),
        window_hours=settings.ACTIVE_USERS_WINDOW_HOURS,
        max_items=settings.ACTIVE_USERS_LIMIT,
        free_limit=settings.FREE_TIER_RESULT_LIMIT,
    )
    return TierShapedList[ActiveAccountItem](
        items=[ActiveAccountItem.model_validate(a) for a in items],
        total=total,
        truncated=len(items) < total,
        tier=shaped_for,
    )


@router.get("/{account_id}", response_model=PublicProfileEnvelope)
def get_public_profile(
    account_id: str,
    _current: Annotated[Account, Depends(get_current_account)],
    store: Annotated[AccountStore, Depends(get_account_store)],
) -> PublicProfileEnvelope:
    """Public profile of another account. 404 if it does not exist."""
    account = public_profile(store, account_id)
    return PublicProfileEnvelope(user=PublicProfile.model_validate(account))
