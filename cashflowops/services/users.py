"""Account directory: recently active users and public profiles."""

from datetime import UTC, datetime, timedelta

from cashflowops.schemas.account import Account, Tier
from cashflowops.services.entitlement import effective_tier, require_entitlement, truncate_for_tier
from cashflowops.services.identity import get_account
from cashflowops.stores.base import AccountStore


def list_active_accounts(
    store: AccountStore,
    account: Account,
    *,
    required_tier: Tier,
    window_hours: int,
    max_items: int,
    free_limit: int,
    now: datetime | None = None,
) -> tuple[list[Account], int, Tier]:
    """
    Accounts active within the last window_hours, most recently active first, after the
    entitlement check and tier truncation. Returns (items, total, shaped-for tier).
    """
    now = now or datetime.now(UTC)
    require_entitlement(store, account, required_tier, now)
    full = store.list_active_since(now - timedelta(hours=window_hours), max_items)
    items = truncate_for_tier(full, account, free_limit, now)
    return items, len(full), effective_tier(account, now)


def public_profile(store: AccountStore, account_id: str) -> Account:
    """Look up another account for its public profile. Raises NotFoundError."""
    return get_account(store, account_id)
