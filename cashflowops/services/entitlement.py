"""Tier entitlement: decide whether an authenticated account may use a tier-gated capability.

Rules, in order:
  1. ADMIN role -> allow.
  2. Required tier FREE -> allow.
  3. Paid tier whose subscription_expiry has passed -> downgrade to FREE (persisted), deny SubscriptionExpired.
  4. FREE tier -> deny SubscriptionRequired.
  5. Otherwise -> allow.

The decision is recomputed on every request (expiry is time-dependent). Rule 3 only fires
while the stored tier is still paid, so a repeat call after the downgrade falls through to
rule 4 and yields SubscriptionRequired.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Sequence, TypeVar

from cashflowops.core.errors import EntitlementError
from cashflowops.schemas.account import Account, Tier
from cashflowops.stores.base import AccountStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

REASON_SUBSCRIPTION_REQUIRED = "SubscriptionRequired"
REASON_SUBSCRIPTION_EXPIRED = "SubscriptionExpired"

_TIER_RANK: dict[str, int] = {"FREE": 0, "WEEKLY": 1, "MONTHLY": 2}


@dataclass(frozen=True)
class Decision:
    """Outcome of an entitlement check. reason is None when allowed."""

    allowed: bool
    required_tier: Tier
    current_tier: Tier
    reason: str | None = None

    @property
    def message(self) -> str:
        if self.reason == REASON_SUBSCRIPTION_EXPIRED:
            return "Your subscription has expired. Renew to regain access."
        if self.reason == REASON_SUBSCRIPTION_REQUIRED:
            return f"A {self.required_tier} subscription is required for this feature."
        return "Allowed"


def _allow(required_tier: Tier, account: Account) -> Decision:
    return Decision(allowed=True, required_tier=required_tier, current_tier=account.tier)


def _deny(reason: str, required_tier: Tier, current_tier: Tier) -> Decision:
    return Decision(allowed=False, required_tier=required_tier, current_tier=current_tier, reason=reason)


def is_expired(account: Account, now: datetime) -> bool:
    """True when the account holds a paid tier past its subscription_expiry."""
    return (
        account.tier != "FREE"
        and account.subscription_expiry is not None
        and account.subscription_expiry <= now
    )


def effective_tier(account: Account, now: datetime | None = None) -> Tier:
    """Tier the account is entitled to right now, without touching storage."""
    now = now or datetime.now(UTC)
    if not account.is_admin and is_expired(account, now):
        return "FREE"
    return account.tier


def higher_tier(a: Tier, b: Tier) -> Tier:
    return a if _TIER_RANK[a] >= _TIER_RANK[b] else b


def check_entitlement(
    store: AccountStore,
    account: Account,
    required_tier: Tier,
    now: datetime | None = None,
) -> Decision:
    """
    Decide whether account may access a capability gated at required_tier.

    Side effect: an expired paid account is downgraded to FREE in the store (and on the
    passed-in object) before being denied. The store performs the downgrade as a single
    conditional write, so concurrent requests converge on the same state.
    """
    now = now or datetime.now(UTC)

    if account.is_admin:
        return _allow(required_tier, account)
    if required_tier == "FREE":
        return _allow(required_tier, account)

    if is_expired(account, now):
        previous_tier = account.tier
        changed = store.downgrade_if_expired(account.id, now)
        account.tier = "FREE"
        account.updated_at = now
        logger.info(
            "Subscription expired: account=%s tier=%s expiry=%s downgraded=%s",
            account.id,
            previous_tier,
            account.subscription_expiry.isoformat() if account.subscription_expiry else None,
            changed,
        )
        return _deny(REASON_SUBSCRIPTION_EXPIRED, required_tier, account.tier)

    if account.tier == "FREE":
        return _deny(REASON_SUBSCRIPTION_REQUIRED, required_tier, account.tier)

    return _allow(required_tier, account)


def require_entitlement(
    store: AccountStore,
    account: Account,
    required_tier: Tier,
    now: datetime | None = None,
) -> Decision:
    """check_entitlement that raises EntitlementError on deny."""
    decision = check_entitlement(store, account, required_tier, now)
    if not decision.allowed:
        raise EntitlementError(
            decision.reason or REASON_SUBSCRIPTION_REQUIRED,
            decision.message,
            required_tier=decision.required_tier,
            current_tier=decision.current_tier,
        )
    return decision


def truncate_for_tier(
    items: Sequence[T],
    account: Account,
    limit: int,
    now: datetime | None = None,
) -> list[T]:
    """
    Tier-based result shaping: FREE non-admin accounts get the first limit items, everyone
    else gets the full list. Order is preserved, so the result is always a prefix.
    """
    if account.is_admin or effective_tier(account, now) != "FREE":
        return list(items)
    return list(items[:limit])
